from __future__ import annotations

import logging
from typing import Callable, Sequence

from app.config import Settings
from app.chat.contracts import ChatMessage, Role
from app.chat.prompts import build_user_message
from app.contracts.results import LLMReply
from llm.client import LLMClient

logger = logging.getLogger(__name__)


class ChatFallback:
    """
    Free-text replies for messages no rule understood.

    Sends the recent turns plus a fixed system prompt to the configured
    chat-completion endpoint; any failure degrades to a canned string.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        system_prompt: str,
        canned: Callable[[str], str],
    ) -> None:
        self.enabled = settings.LLM_ENABLED
        self.history_turns = settings.llm_history_turns
        self.system_prompt = system_prompt
        self.canned = canned
        self.client = LLMClient(
            model=settings.LLM_MODEL,
            provider=settings.LLM_PROVIDER,
            api_key=settings.LLM_API_KEY,
            base_url=settings.llm_base_url,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout_s=settings.llm_timeout_s,
        )

    def reply(
        self,
        message: str,
        *,
        history: Sequence[ChatMessage],
        user_address: str | None = None,
    ) -> LLMReply:
        if not self.enabled:
            return LLMReply(text=self.canned(message), fallback=True)

        recent = [
            {"role": "assistant" if m.role == Role.ASSISTANT else "user", "content": m.content}
            for m in list(history)[-self.history_turns :]
        ]
        try:
            text = self.client.chat(
                system=self.system_prompt,
                history=recent,
                user=build_user_message(message, user_address),
            )
        except Exception as e:
            logger.warning("LLM fallback failed, using canned reply: %s", e)
            return LLMReply(text=self.canned(message), fallback=True)
        return LLMReply(text=text or "I apologize, but I could not generate a response.")
