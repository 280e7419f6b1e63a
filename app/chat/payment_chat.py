from __future__ import annotations

import logging
from typing import Any

from app.chat.classifier import ENS_NAMELESS_RULES, Intent, classify, classify_payment
from app.chat.contracts import ChatMessage, ConversationContext
from app.chat.extract import (
    ONE_YEAR,
    extract_address,
    extract_duration,
    extract_ens_name,
    extract_tx_hash,
)
from app.chat.integration import PENDING_COMMIT_KEY, ChatIntegration, Dispatch
from app.chat.prompts import PAYMENT_CAPABILITIES, PAYMENT_HELP_MESSAGE, PAYMENT_SUGGESTED_PROMPTS
from app.contracts.operations import ENSOperation
from app.contracts.results import ErrorResult, PaymentProposal

logger = logging.getLogger(__name__)

# messages that act on the user's own wallet
_WALLET_WORDS = ("send", "pay", "transfer", "balance", "register")


def requires_wallet(message: str) -> bool:
    lower = message.lower()
    return any(word in lower for word in _WALLET_WORDS)


class PaymentChatIntegration(ChatIntegration):
    """
    Payment chat: ETH/USDC transfers, balances, tx status, and the ENS
    lookups people ask for while paying someone.
    """

    name = "payment"

    def dispatch(
        self,
        message: str,
        context: ConversationContext,
        *,
        history: list[ChatMessage],
    ) -> Dispatch:
        if context.session_data.get(PENDING_COMMIT_KEY) and classify(message, ENS_NAMELESS_RULES) == Intent.COMPLETE_REGISTRATION:
            return Dispatch(self.complete_registration(context), intent=Intent.COMPLETE_REGISTRATION.value)

        intent = classify_payment(message)
        logger.info("payment intent=%s", intent.value if intent else None)
        if intent is None:
            reply = self.fallback.reply(message, history=history, user_address=context.user_address)
            return Dispatch(reply)

        ens_name = extract_ens_name(message)
        result = self._run(intent, message, context, ens_name)
        return Dispatch(result, intent=intent.value, ens_query=ens_name)

    def _run(self, intent: Intent, message: str, context: ConversationContext, ens_name: str | None) -> Any:
        agent = self.payment_agent

        if intent == Intent.BATCH_PAYMENT:
            return agent.propose_batch(message)

        if intent == Intent.PAYMENT:
            proposal = agent.propose_payment(message)
            if isinstance(proposal, PaymentProposal):
                context.last_recipient = proposal.request.to
                context.last_amount = proposal.request.amount
                context.last_token = proposal.request.token
            return proposal

        if intent == Intent.ENS_REGISTER:
            if not ens_name:
                return ErrorResult(error='Please tell me which name to register, e.g. "Register myname.eth"')
            context.last_ens_name = ens_name
            op = ENSOperation(
                type="register",
                name=ens_name,
                data={"owner": context.user_address, "duration": extract_duration(message) or ONE_YEAR},
            )
            return self.ens_agent.propose(op)

        if intent == Intent.ENS_AVAILABILITY:
            context.last_ens_name = ens_name
            return self.ens_agent.check_availability(ens_name or "")

        if intent == Intent.ENS_RESOLVE:
            context.last_ens_name = ens_name
            return self.ens_agent.resolve_name(ens_name or "")

        if intent == Intent.BALANCE:
            return agent.get_balance(context.user_address or extract_address(message))

        if intent == Intent.TX_STATUS:
            return agent.get_transaction_status(extract_tx_hash(message))

        raise ValueError(f"Unhandled payment intent: {intent}")

    # ---------------------------
    # Agent info
    # ---------------------------

    def get_status(self) -> dict[str, Any]:
        pay = self.payment_agent.pay
        return {
            "agent": self.name,
            "network": pay.network.name,
            "chain_id": pay.chain_id,
            "supported_tokens": list(self.payment_agent.allowed_tokens),
            "min_amount": str(self.payment_agent.min_amount),
            "max_amount": str(self.payment_agent.max_amount),
            "gasless_enabled": pay.gasless_enabled,
            "llm_enabled": self.fallback.enabled,
            "capabilities": list(PAYMENT_CAPABILITIES),
        }

    def get_help(self) -> str:
        return PAYMENT_HELP_MESSAGE

    def get_suggestions(self) -> list[str]:
        return list(PAYMENT_SUGGESTED_PROMPTS)
