from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from app.contracts.operations import ENSOperation, PaymentRequest


class _Result(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool = True
    error: str | None = None


class BalanceResult(_Result):
    kind: Literal["balance"] = "balance"
    address: str
    network: str
    # symbol -> formatted amount, zero balances omitted
    balances: dict[str, str] = Field(default_factory=dict)


class PaymentProposal(_Result):
    kind: Literal["payment_proposal"] = "payment_proposal"
    request: PaymentRequest
    recipient_display: str
    network: str


class PaymentResult(_Result):
    kind: Literal["payment"] = "payment"
    request: PaymentRequest
    status: Literal["submitted", "awaiting_signature", "failed"]
    mode: Literal["gasless", "standard", "unsigned"] | None = None
    tx_hash: str | None = None
    explorer_url: str | None = None
    unsigned_tx: dict[str, Any] | None = None
    network: str | None = None


class BatchPaymentResult(_Result):
    kind: Literal["batch_payment"] = "batch_payment"
    results: list[PaymentResult] = Field(default_factory=list)
    succeeded: int = 0
    failed: int = 0


class BatchPaymentProposal(_Result):
    kind: Literal["batch_payment_proposal"] = "batch_payment_proposal"
    requests: list[PaymentRequest] = Field(default_factory=list)
    network: str


class TxStatusResult(_Result):
    kind: Literal["tx_status"] = "tx_status"
    tx_hash: str
    status: Literal["confirmed", "pending", "failed", "not_found"]
    explorer_url: str | None = None


class ENSAvailabilityResult(_Result):
    kind: Literal["ens_availability"] = "ens_availability"
    name: str
    available: bool
    cost_eth: str | None = None
    owner: str | None = None
    expires: int | None = None


class ENSPriceResult(_Result):
    kind: Literal["ens_price"] = "ens_price"
    name: str
    duration: int
    base: str
    premium: str
    total: str


class ENSResolutionResult(_Result):
    kind: Literal["ens_resolution"] = "ens_resolution"
    name: str
    available: bool = False
    address: str | None = None
    owner: str | None = None
    resolver: str | None = None
    expires: int | None = None
    text_records: dict[str, str] = Field(default_factory=dict)
    contenthash: str | None = None


class ENSReverseResult(_Result):
    kind: Literal["ens_reverse"] = "ens_reverse"
    address: str
    name: str | None = None


class ENSRecordResult(_Result):
    kind: Literal["ens_record"] = "ens_record"
    name: str
    key: str
    value: str | None = None


class ENSOperationProposal(_Result):
    kind: Literal["ens_operation_proposal"] = "ens_operation_proposal"
    operation: ENSOperation
    description: str
    cost_eth: str | None = None


class ENSCommitResult(_Result):
    kind: Literal["ens_commit"] = "ens_commit"
    name: str
    owner: str
    duration: int
    commitment: str
    secret: str
    tx_hash: str
    ready_at: int
    wait_seconds: int


class ENSOperationResult(_Result):
    kind: Literal["ens_operation"] = "ens_operation"
    operation: ENSOperation
    tx_hash: str | None = None
    message: str = ""


class ENSNameOptions(_Result):
    kind: Literal["ens_name_options"] = "ens_name_options"
    name: str
    available: bool
    options: list[str] = Field(default_factory=list)


class LLMReply(_Result):
    kind: Literal["llm_reply"] = "llm_reply"
    text: str
    fallback: bool = False


class InfoResult(_Result):
    kind: Literal["info"] = "info"
    text: str


class ErrorResult(_Result):
    kind: Literal["error"] = "error"
    success: bool = False
    error: str


OperationResult = Annotated[
    Union[
        BalanceResult,
        PaymentProposal,
        PaymentResult,
        BatchPaymentProposal,
        BatchPaymentResult,
        TxStatusResult,
        ENSAvailabilityResult,
        ENSPriceResult,
        ENSResolutionResult,
        ENSReverseResult,
        ENSRecordResult,
        ENSOperationProposal,
        ENSCommitResult,
        ENSOperationResult,
        ENSNameOptions,
        LLMReply,
        InfoResult,
        ErrorResult,
    ],
    Field(discriminator="kind"),
]


class AgentResponse(BaseModel):
    """
    JSON envelope returned by every HTTP endpoint.
    """

    model_config = ConfigDict(extra="forbid")

    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None
    transaction: dict[str, Any] | None = None
