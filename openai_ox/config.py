"""Configuration management for the API client."""

import os
from typing import Any

import httpx
import yaml
from dotenv import load_dotenv

from .rate_limiting import RateLimitConfig
from .streaming.models import StreamSettings

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")


class Configuration:
    """Manages configuration and environment variables for the API client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.load_env()  # Load .env for API keys
        self._config = self._load_yaml_config()

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config

    def get_client_config(self) -> dict[str, Any]:
        """Get client configuration (base URL, API key variable) from YAML."""
        client_config = self._config.get("client", {})
        return {
            "base_url": client_config.get("base_url", "https://api.openai.com"),
            "api_key_env": client_config.get("api_key_env", "OPENAI_API_KEY"),
        }

    @property
    def api_key(self) -> str:
        """Get the API key.

        Raises:
            ValueError: If the API key is not found in environment variables.
        """
        env_key = self.get_client_config()["api_key_env"]
        api_key = os.getenv(env_key)
        if not api_key:
            raise ValueError(
                f"API key '{env_key}' not found in environment variables"
            )
        return api_key

    def get_http_client_config(self) -> dict[str, Any]:
        """Get HTTP connection pool and timeout configuration.

        Returns:
            HTTP client configuration dictionary with validated values.

        Raises:
            ValueError: If required HTTP client parameters are missing or invalid.
        """
        http_config = self._config.get("http_client", {})

        required_keys = [
            "max_connections", "max_keepalive", "keepalive_expiry",
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout",
        ]
        for key in required_keys:
            if key not in http_config:
                raise ValueError(
                    f"http_client.{key} must be explicitly configured in config.yaml"
                )

        if http_config["max_connections"] < 1:
            raise ValueError("http_client.max_connections must be at least 1")
        if http_config["max_keepalive"] > http_config["max_connections"]:
            raise ValueError("http_client.max_keepalive must be <= max_connections")

        timeout_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout"
        ]
        for key in timeout_keys:
            if http_config[key] <= 0:
                raise ValueError(f"http_client.{key} must be positive")

        return http_config

    def get_streaming_config(self) -> StreamSettings:
        """Get streaming configuration from YAML.

        Raises:
            ValueError: If streaming parameters are invalid.
        """
        streaming_config = self._config.get("streaming", {})
        channel_size = streaming_config.get("channel_size", 64)
        suppress = streaming_config.get("suppress_empty_deltas", True)

        if not isinstance(channel_size, int) or channel_size < 0:
            raise ValueError("streaming.channel_size must be a non-negative integer")
        if not isinstance(suppress, bool):
            raise ValueError("streaming.suppress_empty_deltas must be a boolean")

        return StreamSettings(
            channel_size=channel_size, suppress_empty_deltas=suppress
        )

    def get_rate_limit_config(self) -> RateLimitConfig | None:
        """Get rate limit configuration, or None when rate limiting is disabled.

        Raises:
            ValueError: If required rate limit parameters are missing or invalid.
        """
        rate_config = self._config.get("rate_limit", {})
        if not rate_config.get("enabled", False):
            return None

        required_keys = ["max_tokens", "refill", "interval", "initial"]
        for key in required_keys:
            if key not in rate_config:
                raise ValueError(
                    f"rate_limit.{key} must be explicitly configured "
                    "when rate_limit.enabled is true"
                )

        max_tokens = rate_config["max_tokens"]
        if max_tokens < 1:
            raise ValueError("rate_limit.max_tokens must be at least 1")
        if rate_config["refill"] < 1:
            raise ValueError("rate_limit.refill must be at least 1")
        if rate_config["interval"] <= 0:
            raise ValueError("rate_limit.interval must be positive")
        if not 0 <= rate_config["initial"] <= max_tokens:
            raise ValueError("rate_limit.initial must be between 0 and max_tokens")

        return RateLimitConfig(
            max_tokens=max_tokens,
            refill=rate_config["refill"],
            interval=float(rate_config["interval"]),
            initial=rate_config["initial"],
        )

    def build_http_client(self) -> httpx.AsyncClient:
        """Create the shared connection pool from the http_client section."""
        http_config = self.get_http_client_config()
        return httpx.AsyncClient(
            limits=httpx.Limits(
                max_connections=http_config["max_connections"],
                max_keepalive_connections=http_config["max_keepalive"],
                keepalive_expiry=http_config["keepalive_expiry"],
            ),
            timeout=httpx.Timeout(
                connect=http_config["connect_timeout"],
                read=http_config["read_timeout"],
                write=http_config["write_timeout"],
                pool=http_config["pool_timeout"],
            ),
        )
