from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from app.chat.contracts import ChatMessage, ChatMetadata, MessageAction, PendingAction, Role
from app.chat.extract import SECONDS_PER_DAY, short_address
from app.chat.prompts import name_suggestions
from app.contracts.activity import ActivityStatus, ActivityType
from app.contracts.results import (
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
    PaymentProposal,
    PaymentResult,
    TxStatusResult,
)
from app.services.activities import ActivityManager

logger = logging.getLogger(__name__)

RULE_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.1


class UnknownResultKindError(ValueError):
    pass


def format_date(timestamp: int | None) -> str:
    if not timestamp:
        return "unknown"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def format_balances(result: BalanceResult) -> str:
    if not result.balances:
        return "No balances found"
    parts = [f"{amount} {symbol}" for symbol, amount in result.balances.items()]
    return "Your balances: " + ", ".join(parts)


def _error(result: ErrorResult) -> dict[str, Any]:
    return {"content": f"❌ {result.error}"}


def _balance(result: BalanceResult) -> dict[str, Any]:
    return {"content": format_balances(result)}


def _payment_proposal(result: PaymentProposal) -> dict[str, Any]:
    req = result.request
    content = (
        f"I can send {req.amount} {req.token} to {result.recipient_display} on {result.network}. "
        "This transaction cannot be reversed. Would you like me to proceed?"
    )
    pending = PendingAction(
        type="payment",
        description=f"Send {req.amount} {req.token} to {result.recipient_display}",
        recipient=req.to,
        ens_name=req.ens_name,
        amount=req.amount,
        token=req.token,
        payload={"request": req.model_dump()},
    )
    action = MessageAction(type="confirmation", description=pending.description, status="pending")
    return {"content": content, "pending_action": pending, "action": action}


def _payment(result: PaymentResult) -> dict[str, Any]:
    req = result.request
    display = req.ens_name or short_address(req.to)
    description = f"Send {req.amount} {req.token} to {display}"
    if result.status == "failed":
        return {
            "content": f"❌ Payment failed: {result.error}",
            "action": MessageAction(type="transaction", description=description, status="failed"),
        }
    if result.status == "awaiting_signature":
        return {
            "content": (
                f"Payment of {req.amount} {req.token} to {display} is ready. "
                "Please sign the transaction in your wallet to send it."
            ),
            "action": MessageAction(type="transaction", description=description, status="pending"),
        }

    lines = [f"✅ Payment sent! {req.amount} {req.token} to {display}."]
    if result.mode == "gasless":
        lines.append("Gas was sponsored, no ETH was spent on fees.")
    lines.append(f"Transaction: {result.tx_hash}")
    if result.explorer_url:
        lines.append(f"View on explorer: {result.explorer_url}")
    return {
        "content": "\n".join(lines),
        "action": MessageAction(
            type="transaction", description=description, status="completed", tx_hash=result.tx_hash
        ),
    }


def _batch_payment_proposal(result: BatchPaymentProposal) -> dict[str, Any]:
    lines = [f"I can send {len(result.requests)} payments on {result.network}:"]
    for req in result.requests:
        lines.append(f"- {req.amount} {req.token} to {req.ens_name or short_address(req.to)}")
    lines.append("These transactions cannot be reversed. Would you like me to proceed?")
    description = f"Batch of {len(result.requests)} payments"
    pending = PendingAction(
        type="batch_payment",
        description=description,
        payload={"requests": [req.model_dump() for req in result.requests]},
    )
    action = MessageAction(type="confirmation", description=description, status="pending")
    return {"content": "\n".join(lines), "pending_action": pending, "action": action}


def _batch_payment(result: BatchPaymentResult) -> dict[str, Any]:
    total = len(result.results)
    lines = [f"Batch payment: {result.succeeded} of {total} payments sent."]
    for item in result.results:
        req = item.request
        target = req.ens_name or short_address(req.to)
        if item.success:
            lines.append(f"- {req.amount} {req.token} to {target}: {item.status}")
        else:
            lines.append(f"- {req.amount} {req.token} to {target}: failed ({item.error})")
    status = "completed" if result.failed == 0 else "failed"
    return {
        "content": "\n".join(lines),
        "action": MessageAction(type="transaction", description=f"Batch of {total} payments", status=status),
    }


def _tx_status(result: TxStatusResult) -> dict[str, Any]:
    short = short_address(result.tx_hash)
    copy = {
        "confirmed": "confirmed ✅",
        "pending": "pending, not yet included in a block",
        "failed": "failed ❌",
        "not_found": "not found on this network",
    }[result.status]
    content = f"Transaction {short} status: {copy}."
    if result.explorer_url:
        content += f"\nView on explorer: {result.explorer_url}"
    return {"content": content}


def _ens_availability(result: ENSAvailabilityResult) -> dict[str, Any]:
    if result.available:
        content = f"✅ {result.name} is available for registration!"
        if result.cost_eth:
            content += f" Registration cost: {result.cost_eth} ETH for 1 year."
    else:
        content = f"❌ {result.name} is not available for registration."
        if result.owner:
            content += f"\nOwned by: {short_address(result.owner)}"
        if result.expires:
            content += f"\nExpires: {format_date(result.expires)}"
    return {
        "content": content,
        "suggestions": name_suggestions(result.name, available=result.available),
    }


def _ens_price(result: ENSPriceResult) -> dict[str, Any]:
    days = result.duration // SECONDS_PER_DAY
    content = f"Registering {result.name} for {days} days costs {result.total} ETH"
    if result.premium not in ("0", "0.0"):
        content += f" (base {result.base} ETH + premium {result.premium} ETH)"
    return {"content": content + "."}


def _ens_resolution(result: ENSResolutionResult) -> dict[str, Any]:
    details = result.owner is not None or result.resolver is not None or result.expires is not None
    if not details:
        if result.address:
            return {"content": f"{result.name} resolves to {result.address}"}
        if result.available:
            return {"content": f"{result.name} is not registered yet. It is available for registration!"}
        return {"content": f"{result.name} does not resolve to an address."}

    lines = [f"ENS details for {result.name}:"]
    if result.owner:
        lines.append(f"Owner: {result.owner}")
    if result.address:
        lines.append(f"Address: {result.address}")
    if result.resolver:
        lines.append(f"Resolver: {result.resolver}")
    if result.expires:
        lines.append(f"Expires: {format_date(result.expires)}")
    for key, value in result.text_records.items():
        lines.append(f"{key}: {value}")
    if result.contenthash:
        lines.append(f"Content hash: {result.contenthash}")
    return {"content": "\n".join(lines)}


def _ens_reverse(result: ENSReverseResult) -> dict[str, Any]:
    if result.name:
        return {"content": f"{short_address(result.address)} is {result.name}"}
    return {"content": f"No primary ENS name is set for {result.address}."}


def _ens_record(result: ENSRecordResult) -> dict[str, Any]:
    if result.value:
        return {"content": f"{result.key} for {result.name}: {result.value}"}
    return {"content": f"No {result.key} record is set for {result.name}."}


def _ens_operation_proposal(result: ENSOperationProposal) -> dict[str, Any]:
    op = result.operation
    content = f"{result.description}."
    if result.cost_eth:
        content += f" Estimated cost: {result.cost_eth} ETH plus gas."
    if op.type == "register":
        content += " Registration takes two transactions about a minute apart."
    if op.type == "transfer":
        content += " Transfers cannot be undone."
    content += " Would you like me to proceed?"
    pending = PendingAction(
        type="ens_operation",
        description=result.description,
        ens_name=op.name,
        recipient=op.data.get("new_owner"),
        cost=result.cost_eth,
        payload={"operation": op.model_dump()},
    )
    action = MessageAction(type="confirmation", description=result.description, status="pending")
    return {"content": content, "pending_action": pending, "action": action}


def _ens_commit(result: ENSCommitResult) -> dict[str, Any]:
    content = (
        f"✅ Commitment submitted for {result.name} (tx {short_address(result.tx_hash)}). "
        f"Please wait about {result.wait_seconds} seconds, then say \"complete registration\" "
        f"to register {result.name}."
    )
    action = MessageAction(
        type="ens_operation",
        description=f"Commit registration of {result.name}",
        status="pending",
        tx_hash=result.tx_hash,
    )
    return {"content": content, "action": action}


def _ens_operation(result: ENSOperationResult) -> dict[str, Any]:
    content = f"✅ {result.message}"
    if result.tx_hash:
        content += f"\nTransaction: {result.tx_hash}"
    action = MessageAction(
        type="ens_operation",
        description=f"{result.operation.type} {result.operation.name}",
        status="completed",
        tx_hash=result.tx_hash,
    )
    return {"content": content, "action": action}


def _ens_name_options(result: ENSNameOptions) -> dict[str, Any]:
    if result.available:
        head = f"{result.name} is available! You can:"
    else:
        head = f"{result.name} is registered. You can:"
    lines = [head] + [f"- {option}" for option in result.options]
    return {"content": "\n".join(lines), "suggestions": list(result.options)}


def _llm_reply(result: LLMReply) -> dict[str, Any]:
    return {"content": result.text}


def _info(result: InfoResult) -> dict[str, Any]:
    return {"content": result.text}


_FORMATTERS: dict[str, Callable[[Any], dict[str, Any]]] = {
    "error": _error,
    "balance": _balance,
    "payment_proposal": _payment_proposal,
    "payment": _payment,
    "batch_payment_proposal": _batch_payment_proposal,
    "batch_payment": _batch_payment,
    "tx_status": _tx_status,
    "ens_availability": _ens_availability,
    "ens_price": _ens_price,
    "ens_resolution": _ens_resolution,
    "ens_reverse": _ens_reverse,
    "ens_record": _ens_record,
    "ens_operation_proposal": _ens_operation_proposal,
    "ens_commit": _ens_commit,
    "ens_operation": _ens_operation,
    "ens_name_options": _ens_name_options,
    "llm_reply": _llm_reply,
    "info": _info,
}


def transaction_payload(result: Any) -> dict[str, Any] | None:
    """
    Transaction details for the HTTP envelope, when the result carries any.
    """
    if isinstance(result, PaymentResult):
        if result.unsigned_tx is not None:
            return {"status": result.status, "tx": result.unsigned_tx}
        if result.tx_hash:
            return {"status": result.status, "tx_hash": result.tx_hash, "explorer_url": result.explorer_url}
    if isinstance(result, (ENSCommitResult, ENSOperationResult)) and result.tx_hash:
        return {"status": "submitted", "tx_hash": result.tx_hash}
    return None


class ResponseFormatter:
    """
    Turns tagged results into assistant ChatMessages and records activities.
    """

    def __init__(self, *, activities: ActivityManager | None = None) -> None:
        self.activities = activities

    def format(
        self,
        result: Any,
        *,
        intent: str | None = None,
        ens_query: str | None = None,
        session_id: str | None = None,
    ) -> ChatMessage:
        kind = getattr(result, "kind", None)
        handler = _FORMATTERS.get(kind)
        if handler is None:
            raise UnknownResultKindError(f"No formatter for result kind {kind!r}")

        parts = handler(result)
        pending: PendingAction | None = parts.get("pending_action")
        action: MessageAction | None = parts.get("action")
        metadata = ChatMetadata(
            intent=intent,
            ens_query=ens_query,
            action=pending.type if pending else None,
            confidence=FALLBACK_CONFIDENCE if kind == "llm_reply" else RULE_CONFIDENCE,
            suggestions=parts.get("suggestions") or [],
        )
        message = ChatMessage(
            role=Role.ASSISTANT,
            content=parts["content"],
            pending_action=pending,
            actions=[action] if action else [],
            metadata=metadata,
        )
        if pending is not None:
            message = message.model_copy(
                update={"pending_action": pending.model_copy(update={"message_id": message.id})}
            )
        if self.activities is not None:
            self.record_activity(result, session_id=session_id)
        return message

    def record_activity(self, result: Any, *, session_id: str | None = None) -> None:
        entry = _activity_for(result)
        if entry is None:
            return
        try:
            self.activities.add(session_id=session_id, **entry)
        except SQLAlchemyError:
            logger.warning("activity not recorded type=%s", entry["type"], exc_info=True)


def _activity_for(result: Any) -> dict[str, Any] | None:
    if isinstance(result, BalanceResult):
        return {
            "type": ActivityType.BALANCE_CHECK,
            "title": "Balance checked",
            "description": format_balances(result),
            "metadata": {"address": result.address, "network": result.network},
        }
    if isinstance(result, PaymentResult):
        req = result.request
        status = {
            "submitted": ActivityStatus.COMPLETED,
            "awaiting_signature": ActivityStatus.PENDING,
            "failed": ActivityStatus.FAILED,
        }[result.status]
        return {
            "type": ActivityType.PAYMENT,
            "title": f"Payment of {req.amount} {req.token}",
            "description": f"To {req.ens_name or req.to}" + (f": {result.error}" if result.error else ""),
            "status": status,
            "tx_hash": result.tx_hash,
            "ens_name": req.ens_name,
            "amount": f"{req.amount} {req.token}",
            "metadata": {"mode": result.mode, "network": result.network},
        }
    if isinstance(result, BatchPaymentResult):
        return {
            "type": ActivityType.PAYMENT,
            "title": f"Batch payment ({len(result.results)} recipients)",
            "description": f"{result.succeeded} sent, {result.failed} failed",
            "status": ActivityStatus.COMPLETED if result.failed == 0 else ActivityStatus.FAILED,
            "metadata": {"tx_hashes": [r.tx_hash for r in result.results if r.tx_hash]},
        }
    if isinstance(result, TxStatusResult):
        return {
            "type": ActivityType.TRANSACTION,
            "title": f"Transaction {short_address(result.tx_hash)}",
            "description": f"Status: {result.status}",
            "tx_hash": result.tx_hash,
        }
    if isinstance(result, ENSAvailabilityResult):
        return {
            "type": ActivityType.ENS_AVAILABILITY,
            "title": f"Checked {result.name}",
            "description": "Available" if result.available else "Not available",
            "ens_name": result.name,
            "metadata": {"available": result.available, "cost_eth": result.cost_eth},
        }
    if isinstance(result, ENSResolutionResult):
        return {
            "type": ActivityType.ENS_RESOLUTION,
            "title": f"Resolved {result.name}",
            "description": result.address or "No address set",
            "ens_name": result.name,
        }
    if isinstance(result, ENSReverseResult):
        return {
            "type": ActivityType.ENS_RESOLUTION,
            "title": f"Reverse lookup {short_address(result.address)}",
            "description": result.name or "No primary name",
            "ens_name": result.name,
        }
    if isinstance(result, ENSCommitResult):
        return {
            "type": ActivityType.ENS_REGISTRATION,
            "title": f"Commitment for {result.name}",
            "description": f"Ready to register after {format_date(result.ready_at)}",
            "status": ActivityStatus.PENDING,
            "tx_hash": result.tx_hash,
            "ens_name": result.name,
        }
    if isinstance(result, ENSOperationResult):
        op = result.operation
        registration = op.type in ("register", "reveal")
        return {
            "type": ActivityType.ENS_REGISTRATION if registration else ActivityType.ENS_UPDATE,
            "title": result.message or f"{op.type} {op.name}",
            "description": f"{op.type} {op.name}",
            "tx_hash": result.tx_hash,
            "ens_name": op.name,
            "amount": f"{op.value} ETH" if op.value else None,
        }
    if isinstance(result, ErrorResult):
        return {
            "type": ActivityType.ERROR,
            "title": "Operation failed",
            "description": result.error,
            "status": ActivityStatus.FAILED,
        }
    return None
