from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.chat.contracts import (
    ChatHistory,
    ChatMessage,
    ChatReply,
    ChatRequest,
    ConversationContext,
    PendingAction,
    Role,
)
from app.chat.extract import is_confirmation, is_rejection
from app.chat.formatter import ResponseFormatter, transaction_payload
from app.chat.llm import ChatFallback
from app.chat.state_store import SessionStore
from app.contracts.operations import ENSOperation, PaymentRequest
from app.contracts.results import ENSCommitResult, ErrorResult, InfoResult
from app.services.ens_agent import ENSAgent
from app.services.payments import PaymentAgent

logger = logging.getLogger(__name__)

PENDING_COMMIT_KEY = "pending_commit"


@dataclass
class Dispatch:
    result: Any
    intent: str | None = None
    ens_query: str | None = None


def _nothing_to_confirm() -> Dispatch:
    return Dispatch(ErrorResult(error="There is no pending action to confirm."), intent="confirmation")


def _batch_requests(pending: PendingAction) -> list[dict[str, Any]]:
    if pending.type != "batch_payment":
        return []
    return list(pending.payload.get("requests", []))


class ChatIntegration:
    """
    Shared message loop for the chat façades.

    Each message: load the session context, settle any pending proposal,
    otherwise let the subclass classify and dispatch, then format the result,
    append both turns to the history and save the context.
    """

    name = "chat"

    def __init__(
        self,
        *,
        store: SessionStore,
        formatter: ResponseFormatter,
        fallback: ChatFallback,
        ens_agent: ENSAgent,
        payment_agent: PaymentAgent | None = None,
    ) -> None:
        self.store = store
        self.formatter = formatter
        self.fallback = fallback
        self.ens_agent = ens_agent
        self.payment_agent = payment_agent

    def process_message(self, session_id: str, req: ChatRequest) -> ChatReply:
        context = self.store.get_context(session_id)
        if req.user_address:
            context.user_address = req.user_address
        history = self.store.history(session_id)

        self.store.append(session_id, ChatMessage(role=Role.USER, content=req.message))
        logger.info("%s message session=%s len=%s", self.name, session_id, len(req.message))

        dispatch = self._settle_pending(session_id, req, context)
        if dispatch is None:
            dispatch = self.dispatch(req.message, context, history=history)

        reply = self.formatter.format(
            dispatch.result,
            intent=dispatch.intent,
            ens_query=dispatch.ens_query,
            session_id=session_id,
        )
        if reply.pending_action is not None:
            # a new proposal replaces whatever was pending
            context.pending_action = reply.pending_action
            context.pending_payments = _batch_requests(reply.pending_action)
        self._remember(dispatch.result, context)

        self.store.append(session_id, reply)
        # only a new proposal may write the pending action; settling already cleared it
        self.store.save_context(session_id, context, keep_pending=reply.pending_action is None)
        return ChatReply(
            message=reply,
            result=dispatch.result,
            needs_confirmation=reply.pending_action is not None,
            transaction=transaction_payload(dispatch.result),
        )

    def dispatch(
        self,
        message: str,
        context: ConversationContext,
        *,
        history: list[ChatMessage],
    ) -> Dispatch:
        raise NotImplementedError

    # ---------------------------
    # Confirmation
    # ---------------------------

    def _settle_pending(
        self,
        session_id: str,
        req: ChatRequest,
        context: ConversationContext,
    ) -> Dispatch | None:
        if context.pending_action is None:
            if req.is_confirmation:
                return _nothing_to_confirm()
            return None

        confirmed = req.is_confirmation or is_confirmation(req.message)
        if not confirmed and not is_rejection(req.message):
            return None

        # cleared in the store before anything runs, so a second "yes" finds nothing
        pending = self.store.take_pending(session_id)
        context.pending_action = None
        context.pending_payments = []
        if pending is None:
            logger.warning("%s pending action already settled session=%s", self.name, session_id)
            return _nothing_to_confirm() if confirmed else None

        if not confirmed:
            return Dispatch(InfoResult(text=f"Okay, I've cancelled: {pending.description}."), intent="rejection")

        logger.info("%s executing pending action type=%s", self.name, pending.type)
        result = self.execute_pending(pending, context)
        context.operations_executed += 1
        return Dispatch(result, intent="confirmation", ens_query=pending.ens_name)

    def execute_pending(self, pending: PendingAction, context: ConversationContext) -> Any:
        if pending.type == "payment" and self.payment_agent is not None:
            req = PaymentRequest.model_validate(pending.payload["request"])
            return self.payment_agent.send_payment(req)
        if pending.type == "batch_payment" and self.payment_agent is not None:
            reqs = [PaymentRequest.model_validate(item) for item in pending.payload["requests"]]
            return self.payment_agent.send_batch(reqs)
        if pending.type == "ens_operation":
            op = ENSOperation.model_validate(pending.payload["operation"])
            return self.ens_agent.execute_operation(op)
        return ErrorResult(error=f"Cannot execute pending action of type {pending.type}")

    # ---------------------------
    # Registration second step
    # ---------------------------

    def complete_registration(self, context: ConversationContext) -> Any:
        commit = context.session_data.get(PENDING_COMMIT_KEY)
        if not commit:
            return ErrorResult(error='No pending registration to complete. Start with "Register myname.eth".')
        op = ENSOperation(
            type="reveal",
            name=commit["name"],
            data={
                "owner": commit["owner"],
                "duration": commit["duration"],
                "secret": commit["secret"],
                "ready_at": commit["ready_at"],
            },
        )
        result = self.ens_agent.execute_operation(op)
        if getattr(result, "kind", None) == "ens_operation":
            context.session_data.pop(PENDING_COMMIT_KEY, None)
            context.operations_executed += 1
        return result

    def _remember(self, result: Any, context: ConversationContext) -> None:
        if isinstance(result, ENSCommitResult):
            context.session_data[PENDING_COMMIT_KEY] = {
                "name": result.name,
                "owner": result.owner,
                "duration": result.duration,
                "secret": result.secret,
                "ready_at": result.ready_at,
            }
            context.last_ens_name = result.name
        context.last_operation = getattr(result, "kind", None)

    # ---------------------------
    # Session views
    # ---------------------------

    def get_history(self, session_id: str) -> ChatHistory:
        return ChatHistory(
            session_id=session_id,
            messages=self.store.history(session_id),
            context=self.store.get_context(session_id),
        )

    def clear_history(self, session_id: str) -> None:
        self.store.clear(session_id)

    def get_stats(self, session_id: str) -> dict[str, Any]:
        messages = self.store.history(session_id)
        context = self.store.get_context(session_id)
        return {
            "session_id": session_id,
            "total_messages": len(messages),
            "user_messages": sum(1 for m in messages if m.role == Role.USER),
            "assistant_messages": sum(1 for m in messages if m.role == Role.ASSISTANT),
            "operations_executed": context.operations_executed,
            "last_ens_name": context.last_ens_name,
            "pending_action": context.pending_action.model_dump() if context.pending_action else None,
        }
