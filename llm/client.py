from __future__ import annotations

import json
import logging
from typing import Any, Dict, Sequence

logger = logging.getLogger(__name__)


class LLMClient:
    def __init__(
        self,
        *,
        model: str | None = None,
        provider: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        timeout_s: int = 30,
    ) -> None:
        self.model = model
        self.provider = provider
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s

    def chat(self, *, system: str, history: Sequence[Dict[str, str]], user: str) -> str:
        """
        One chat completion. history items are {"role": "user"|"assistant", "content"}.
        """
        prompt = {"system": system, "history": list(history), "user": user}
        return self._call_provider(prompt=prompt)

    def _call_provider(self, *, prompt: dict) -> str:
        if self.provider == "openai":
            return self._call_openai(prompt=prompt)
        raise RuntimeError("LLM provider not configured")

    def _call_openai(self, *, prompt: dict) -> str:
        if not self.api_key:
            raise RuntimeError("LLM_API_KEY is not set")
        try:
            from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
            from langchain_openai import ChatOpenAI
        except Exception as e:
            raise RuntimeError(f"LangChain OpenAI client not available: {e}") from e

        messages: list[Any] = [SystemMessage(content=prompt["system"])]
        for item in prompt.get("history") or []:
            if item.get("role") == "assistant":
                messages.append(AIMessage(content=item["content"]))
            else:
                messages.append(HumanMessage(content=item["content"]))
        messages.append(HumanMessage(content=prompt["user"]))

        logger.info(
            "LLM call start provider=openai model=%s history=%s",
            self.model or "gpt-4o-mini",
            len(messages) - 2,
        )
        llm = ChatOpenAI(
            model=self.model or "gpt-4o-mini",
            temperature=self.temperature,
            timeout=self.timeout_s,
            api_key=self.api_key,
            base_url=self.base_url or None,
            max_tokens=self.max_tokens,
        )
        response = llm.invoke(messages)
        output_text = response.content
        if not output_text:
            raise RuntimeError("LLM returned empty content")
        if not isinstance(output_text, str):
            output_text = json.dumps(output_text)
        logger.info("LLM call success provider=openai output_len=%s", len(output_text))
        return output_text.strip()
