from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SendRequest(BaseModel):
    """
    `to` is a 0x address or an ENS name.
    """

    model_config = ConfigDict(extra="forbid")

    to: str = Field(..., min_length=3, max_length=255)
    amount: str = Field(..., min_length=1, max_length=64)
    token: str = "ETH"
    message: str | None = None
