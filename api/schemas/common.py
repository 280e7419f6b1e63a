from __future__ import annotations

from typing import Any

from app.chat.contracts import ChatReply
from app.contracts.results import AgentResponse


def result_response(result: Any, *, message: str | None = None) -> AgentResponse:
    return AgentResponse(
        success=result.success,
        data=result.model_dump(mode="json"),
        error=result.error,
        message=message,
    )


def chat_response(reply: ChatReply) -> AgentResponse:
    return AgentResponse(
        success=reply.result.success,
        data=reply.model_dump(mode="json"),
        error=reply.result.error,
        message=reply.message.content,
        transaction=reply.transaction,
    )


def data_response(data: Any, *, message: str | None = None) -> AgentResponse:
    return AgentResponse(success=True, data=data, message=message)
