#!/usr/bin/env python3
"""
Test explicit configuration requirements.
"""

import tempfile

import httpx
import pytest
import yaml

from openai_ox import OpenAi
from openai_ox.config import Configuration
from openai_ox.rate_limiting import RateLimitConfig
from openai_ox.streaming.models import StreamSettings

BASE_CONFIG = {
    "client": {
        "base_url": "http://localhost:8080",
        "api_key_env": "OX_TEST_API_KEY",
    },
    "http_client": {
        "max_connections": 10,
        "max_keepalive": 5,
        "keepalive_expiry": 5.0,
        "connect_timeout": 2.0,
        "read_timeout": 30.0,
        "write_timeout": 2.0,
        "pool_timeout": 2.0,
    },
    "streaming": {
        "channel_size": 8,
        "suppress_empty_deltas": False,
    },
    "rate_limit": {
        "enabled": True,
        "max_tokens": 10,
        "refill": 2,
        "interval": 0.5,
        "initial": 4,
    },
}


def write_config(config):
    """Write a config dict to a temporary YAML file and return its path."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(config, f)
        return f.name


def config_with(section, **overrides):
    config = {key: dict(value) for key, value in BASE_CONFIG.items()}
    config[section].update(overrides)
    return Configuration(write_config(config))


class TestConfiguration:
    """Test loading and validation of config sections."""

    def test_default_config_loads(self):
        configuration = Configuration()
        assert configuration.get_client_config()["base_url"] == "https://api.openai.com"
        assert configuration.get_streaming_config() == StreamSettings()
        assert configuration.get_rate_limit_config() is None

    def test_non_dict_yaml_is_rejected(self):
        path = write_config(["not", "a", "dict"])
        with pytest.raises(ValueError, match="YAML dict"):
            Configuration(path)

    def test_sections_are_read(self):
        configuration = Configuration(write_config(BASE_CONFIG))

        assert configuration.get_client_config() == BASE_CONFIG["client"]
        assert configuration.get_streaming_config() == StreamSettings(
            channel_size=8, suppress_empty_deltas=False
        )
        assert configuration.get_rate_limit_config() == RateLimitConfig(
            max_tokens=10, refill=2, interval=0.5, initial=4
        )

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OX_TEST_API_KEY", "sk-from-env")
        configuration = Configuration(write_config(BASE_CONFIG))
        assert configuration.api_key == "sk-from-env"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OX_TEST_API_KEY", raising=False)
        configuration = Configuration(write_config(BASE_CONFIG))
        with pytest.raises(ValueError, match="OX_TEST_API_KEY"):
            configuration.api_key

    def test_http_client_requires_every_key(self):
        config = {key: dict(value) for key, value in BASE_CONFIG.items()}
        del config["http_client"]["read_timeout"]
        configuration = Configuration(write_config(config))

        with pytest.raises(ValueError, match="http_client.read_timeout"):
            configuration.get_http_client_config()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_connections": 0},
            {"max_keepalive": 50},
            {"connect_timeout": 0},
            {"pool_timeout": -1.0},
        ],
    )
    def test_http_client_validation(self, overrides):
        configuration = config_with("http_client", **overrides)
        with pytest.raises(ValueError):
            configuration.get_http_client_config()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"channel_size": -1},
            {"channel_size": "big"},
            {"suppress_empty_deltas": "yes"},
        ],
    )
    def test_streaming_validation(self, overrides):
        configuration = config_with("streaming", **overrides)
        with pytest.raises(ValueError):
            configuration.get_streaming_config()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_tokens": 0},
            {"refill": 0},
            {"interval": 0},
            {"initial": 11},
        ],
    )
    def test_rate_limit_validation(self, overrides):
        configuration = config_with("rate_limit", **overrides)
        with pytest.raises(ValueError):
            configuration.get_rate_limit_config()

    def test_rate_limit_disabled(self):
        configuration = config_with("rate_limit", enabled=False)
        assert configuration.get_rate_limit_config() is None

    @pytest.mark.asyncio
    async def test_build_http_client(self):
        configuration = Configuration(write_config(BASE_CONFIG))
        client = configuration.build_http_client()
        try:
            assert isinstance(client, httpx.AsyncClient)
            assert client.timeout.read == 30.0
            assert client.timeout.connect == 2.0
        finally:
            await client.aclose()


class TestClientFromConfig:
    """Test building the client facade from configuration."""

    @pytest.mark.asyncio
    async def test_from_config(self, monkeypatch):
        monkeypatch.setenv("OX_TEST_API_KEY", "sk-from-env")
        configuration = Configuration(write_config(BASE_CONFIG))

        async with OpenAi.from_config(configuration) as openai:
            assert openai.transport.base_url == "http://localhost:8080"
            assert openai.transport.rate_limiter is not None
            assert openai.transport.rate_limiter.config.max_tokens == 10
            assert openai.stream_settings.channel_size == 8
            assert openai._owns_client

        assert openai.http_client.is_closed

    @pytest.mark.asyncio
    async def test_from_config_with_shared_client(self, monkeypatch):
        monkeypatch.setenv("OX_TEST_API_KEY", "sk-from-env")
        configuration = config_with("rate_limit", enabled=False)
        shared = httpx.AsyncClient()

        async with OpenAi.from_config(configuration, shared) as openai:
            assert openai.http_client is shared
            assert openai.transport.rate_limiter is None

        assert not shared.is_closed
        await shared.aclose()
