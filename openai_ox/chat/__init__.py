from .message import (
    AssistantMessage,
    Message,
    SystemMessage,
    ToolMessage,
    UserMessage,
    assistant,
    message_content,
    system,
    tool,
    user,
)
from .models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    Choice,
    ResponseFormat,
)

__all__ = [
    "AssistantMessage",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "Choice",
    "Message",
    "ResponseFormat",
    "SystemMessage",
    "ToolMessage",
    "UserMessage",
    "assistant",
    "message_content",
    "system",
    "tool",
    "user",
]
