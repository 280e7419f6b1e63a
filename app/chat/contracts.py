from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.contracts.results import OperationResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _message_id() -> str:
    return f"msg_{uuid.uuid4().hex[:12]}"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


ActionType = Literal["transaction", "update", "confirmation", "ens_operation"]
ActionStatus = Literal["pending", "completed", "failed", "confirmed"]


class PendingAction(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    description: str
    message_id: str | None = None
    ens_name: str | None = None
    recipient: str | None = None
    amount: str | None = None
    token: str | None = None
    cost: str | None = None
    tx_hash: str | None = None
    # everything needed to execute on confirmation
    payload: dict[str, Any] = Field(default_factory=dict)


class MessageAction(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: ActionType
    description: str
    status: ActionStatus
    tx_hash: str | None = None


class ChatMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    intent: str | None = None
    ens_query: str | None = None
    action: str | None = None
    confidence: float = Field(default=0.1, ge=0, le=1)
    suggestions: list[str] = Field(default_factory=list)


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=_message_id)
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    pending_action: PendingAction | None = None
    actions: list[MessageAction] = Field(default_factory=list)
    metadata: ChatMetadata | None = None


class ConversationContext(BaseModel):
    """
    Mutable per-session state behind follow-ups like "yes" or "what about it".
    """

    model_config = ConfigDict(extra="forbid")

    last_recipient: str | None = None
    last_amount: str | None = None
    last_token: str | None = None
    last_operation: str | None = None
    last_ens_name: str | None = None
    pending_payments: list[dict[str, Any]] = Field(default_factory=list)
    pending_action: PendingAction | None = None
    user_address: str | None = None
    session_data: dict[str, Any] = Field(default_factory=dict)
    operations_executed: int = 0


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1, max_length=2000)
    user_address: str | None = None
    is_confirmation: bool = False


class ChatReply(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: ChatMessage
    result: OperationResult
    needs_confirmation: bool = False
    transaction: dict[str, Any] | None = None


class ChatHistory(BaseModel):
    model_config = ConfigDict(extra="forbid")

    session_id: str
    messages: list[ChatMessage] = Field(default_factory=list)
    context: ConversationContext
