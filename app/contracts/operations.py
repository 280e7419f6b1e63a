from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Token = Literal["ETH", "USDC"]

ENSOperationType = Literal[
    "register",
    "renew",
    "setResolver",
    "setRecord",
    "transfer",
    "resolve",
    "commit",
    "reveal",
]


class PaymentRequest(BaseModel):
    """
    Raw payment intent. Checked by services.payments.validate_payment_request
    before anything touches the chain.
    """

    model_config = ConfigDict(extra="forbid")

    to: str = ""
    amount: str = ""
    token: str = "ETH"
    ens_name: str | None = None
    message: str | None = None


class ENSOperation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: ENSOperationType
    name: str
    data: dict[str, Any] = Field(default_factory=dict)
    gas_estimate: int | None = None
    value: str | None = None
