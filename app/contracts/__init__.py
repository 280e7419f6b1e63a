from app.contracts.activity import ActivityRecord, ActivityStatus, ActivityType
from app.contracts.operations import ENSOperation, PaymentRequest
from app.contracts.results import (
    AgentResponse,
    BalanceResult,
    BatchPaymentProposal,
    BatchPaymentResult,
    ENSAvailabilityResult,
    ENSCommitResult,
    ENSNameOptions,
    ENSOperationProposal,
    ENSOperationResult,
    ENSPriceResult,
    ENSRecordResult,
    ENSResolutionResult,
    ENSReverseResult,
    ErrorResult,
    InfoResult,
    LLMReply,
    OperationResult,
    PaymentProposal,
    PaymentResult,
    TxStatusResult,
)

__all__ = [
    "ActivityRecord",
    "ActivityStatus",
    "ActivityType",
    "AgentResponse",
    "BalanceResult",
    "BatchPaymentProposal",
    "BatchPaymentResult",
    "ENSAvailabilityResult",
    "ENSCommitResult",
    "ENSNameOptions",
    "ENSOperation",
    "ENSOperationProposal",
    "ENSOperationResult",
    "ENSPriceResult",
    "ENSRecordResult",
    "ENSResolutionResult",
    "ENSReverseResult",
    "ErrorResult",
    "InfoResult",
    "LLMReply",
    "OperationResult",
    "PaymentProposal",
    "PaymentRequest",
    "PaymentResult",
    "TxStatusResult",
]
