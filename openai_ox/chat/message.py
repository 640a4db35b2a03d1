"""
OpenAI-compatible chat messages, discriminated by ``role``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class SystemMessage(BaseModel):
    role: Literal["system"] = "system"
    content: str
    name: str | None = None


class UserMessage(BaseModel):
    role: Literal["user"] = "user"
    content: str
    name: str | None = None


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str | None = None
    name: str | None = None
    tool_calls: list[dict[str, Any]] | None = None
    refusal: str | None = None


class ToolMessage(BaseModel):
    role: Literal["tool"] = "tool"
    content: str
    tool_call_id: str


Message = Annotated[
    SystemMessage | UserMessage | AssistantMessage | ToolMessage,
    Field(discriminator="role"),
]


def system(content: str, name: str | None = None) -> SystemMessage:
    return SystemMessage(content=content, name=name)


def user(content: str, name: str | None = None) -> UserMessage:
    return UserMessage(content=content, name=name)


def assistant(content: str, name: str | None = None) -> AssistantMessage:
    return AssistantMessage(content=content, name=name)


def tool(content: str, tool_call_id: str) -> ToolMessage:
    return ToolMessage(content=content, tool_call_id=tool_call_id)


def message_content(message: SystemMessage | UserMessage | AssistantMessage | ToolMessage) -> str | None:
    """Text content of any message; assistant messages may have none."""
    return message.content
