from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RecordUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., min_length=1, max_length=64)
    value: str = Field(..., min_length=1, max_length=2048)
    record_type: Literal["text", "address"] = "text"
    coin_type: int = 60


class RegisterRequest(BaseModel):
    """
    step=commit returns the secret and ready_at; send them back with step=reveal.
    """

    model_config = ConfigDict(extra="forbid")

    owner: str = Field(..., min_length=42, max_length=42)
    duration_days: int = Field(365, ge=28)
    step: Literal["commit", "reveal"] = "commit"
    secret: str | None = None
    ready_at: int | None = None


class RenewRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    duration_days: int = Field(365, ge=1)


class TransferRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    new_owner: str = Field(..., min_length=42, max_length=42)
