from __future__ import annotations

import logging
from typing import Any

from app.chat.classifier import Intent, classify_ens, classify_ens_followup
from app.chat.contracts import ChatMessage, ConversationContext
from app.chat.extract import (
    ONE_YEAR,
    extract_address,
    extract_duration,
    extract_ens_name,
    extract_record,
)
from app.chat.integration import PENDING_COMMIT_KEY, ChatIntegration, Dispatch
from app.chat.prompts import ENS_CAPABILITIES, ENS_HELP_MESSAGE, ENS_SUGGESTIONS, name_suggestions
from app.contracts.operations import ENSOperation
from app.contracts.results import ENSNameOptions, ErrorResult

logger = logging.getLogger(__name__)

RECORD_HINT = 'Please specify the record and value, e.g. "Set email for myname.eth to user@example.com"'


class ENSChatIntegration(ChatIntegration):
    """
    ENS chat: names, records, registration and resolution on the ENS network.
    """

    name = "ens"

    def dispatch(
        self,
        message: str,
        context: ConversationContext,
        *,
        history: list[ChatMessage],
    ) -> Dispatch:
        ens_name = extract_ens_name(message)
        intent = classify_ens(message, has_name=ens_name is not None)
        if intent == Intent.COMPLETE_REGISTRATION and not context.session_data.get(PENDING_COMMIT_KEY):
            intent = None

        if ens_name is None and intent is None and context.last_ens_name:
            intent = classify_ens_followup(message)
            if intent is not None:
                ens_name = context.last_ens_name
                logger.info("ens follow-up intent=%s name=%s", intent.value, ens_name)

        if intent is None:
            reply = self.fallback.reply(message, history=history, user_address=context.user_address)
            return Dispatch(reply)

        logger.info("ens intent=%s name=%s", intent.value, ens_name)
        if ens_name:
            context.last_ens_name = ens_name
        result = self._run(intent, message, context, ens_name)
        return Dispatch(result, intent=intent.value, ens_query=ens_name)

    def _run(self, intent: Intent, message: str, context: ConversationContext, name: str | None) -> Any:
        agent = self.ens_agent

        if intent == Intent.REVERSE:
            return agent.resolve_address(extract_address(message) or "")
        if intent == Intent.COMPLETE_REGISTRATION:
            return self.complete_registration(context)

        if intent == Intent.AVAILABILITY:
            return agent.check_availability(name)
        if intent == Intent.PRICE:
            return agent.get_price(name, extract_duration(message) or ONE_YEAR)
        if intent == Intent.RESOLVE:
            return agent.get_name_info(name)
        if intent == Intent.NAME_OPTIONS:
            return self._name_options(name)

        op = self._operation_for(intent, message, context, name)
        if isinstance(op, ErrorResult):
            return op
        return agent.propose(op)

    def _operation_for(
        self,
        intent: Intent,
        message: str,
        context: ConversationContext,
        name: str,
    ) -> ENSOperation | ErrorResult:
        duration = extract_duration(message) or ONE_YEAR
        if intent == Intent.REGISTER:
            return ENSOperation(
                type="register",
                name=name,
                data={"owner": context.user_address, "duration": duration},
            )
        if intent == Intent.RENEW:
            return ENSOperation(type="renew", name=name, data={"duration": duration})
        if intent == Intent.TRANSFER:
            return ENSOperation(type="transfer", name=name, data={"new_owner": extract_address(message)})
        if intent == Intent.SET_RECORD:
            if "resolver" in message.lower():
                return ENSOperation(type="setResolver", name=name, data={"resolver": extract_address(message)})
            record = extract_record(message)
            if record is None:
                return ErrorResult(error=RECORD_HINT)
            return ENSOperation(type="setRecord", name=name, data=record)
        raise ValueError(f"Unhandled ENS intent: {intent}")

    def _name_options(self, name: str) -> Any:
        availability = self.ens_agent.check_availability(name)
        if isinstance(availability, ErrorResult):
            return availability
        return ENSNameOptions(
            name=availability.name,
            available=availability.available,
            options=name_suggestions(availability.name, available=availability.available),
        )

    # ---------------------------
    # Agent info
    # ---------------------------

    def get_status(self) -> dict[str, Any]:
        manager = self.ens_agent.manager
        addresses = manager.addresses
        return {
            "agent": self.name,
            "chain_id": manager.chain_id,
            "contracts": {
                "registry": addresses.registry,
                "base_registrar": addresses.base_registrar,
                "controller": addresses.controller,
                "public_resolver": addresses.public_resolver,
                "universal_resolver": addresses.universal_resolver,
                "reverse_registrar": addresses.reverse_registrar,
                "name_wrapper": addresses.name_wrapper,
            },
            "llm_enabled": self.fallback.enabled,
            "capabilities": list(ENS_CAPABILITIES),
        }

    def get_help(self) -> str:
        return ENS_HELP_MESSAGE

    def get_suggestions(self, session_id: str | None = None) -> list[str]:
        if session_id:
            context = self.store.get_context(session_id)
            if context.last_ens_name:
                name = context.last_ens_name
                return [
                    f"How much does {name} cost?",
                    f"Tell me more about {name}",
                    f"Register {name}",
                    f"Set records for {name}",
                ] + ENS_SUGGESTIONS[:2]
        return list(ENS_SUGGESTIONS)
