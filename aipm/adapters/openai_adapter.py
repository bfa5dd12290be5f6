from __future__ import annotations

import logging
import random
import string
import time
from typing import Any, Dict, Optional

from openai import APIConnectionError, APIStatusError, AsyncOpenAI, OpenAIError

from aipm.config import TRACE_HEADER, AIConfig
from aipm.errors import EmptyResponseError, ServiceError, TransportError

from .llm_base import LLMAdapter, LLMResponse, build_messages

logger = logging.getLogger(__name__)

_TRACE_ALPHABET = string.ascii_lowercase + string.digits


def generate_trace_id() -> str:
    suffix = "".join(random.choices(_TRACE_ALPHABET, k=9))
    return f"aipm-{int(time.time() * 1000)}-{suffix}"


class OpenAIAdapter(LLMAdapter):
    """Chat-completions client for any OpenAI-compatible endpoint.

    One attempt per call: the SDK retry loop is switched off so the stage
    controllers see the first failure and can fall back immediately.
    """

    def __init__(self, config: AIConfig, http_client: Optional[Any] = None) -> None:
        self.config = config
        self.trace_id = config.trace_id or generate_trace_id()
        self.client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
            default_headers={TRACE_HEADER: self.trace_id},
            http_client=http_client,
        )

    async def complete(
        self, user_prompt: str, system_prompt: Optional[str] = None
    ) -> LLMResponse:
        messages = build_messages(user_prompt, system_prompt)
        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                stream=False,
            )
        except APIStatusError as exc:
            raise ServiceError(exc.status_code, exc.message) from exc
        except APIConnectionError as exc:
            raise TransportError(f"Could not reach {self.config.base_url}: {exc}") from exc
        except OpenAIError as exc:
            raise TransportError(f"Completion request failed: {exc}") from exc

        choices = response.choices or []
        content = choices[0].message.content if choices else None
        if not content:
            raise EmptyResponseError("Completion returned no content.")

        usage_payload: Optional[Dict[str, Optional[int]]] = None
        usage = getattr(response, "usage", None)
        if usage:
            usage_payload = {
                "prompt_tokens": getattr(usage, "prompt_tokens", None),
                "completion_tokens": getattr(usage, "completion_tokens", None),
                "total_tokens": getattr(usage, "total_tokens", None),
            }
            logger.debug(
                "model=%s trace=%s prompt_tokens=%s completion_tokens=%s total_tokens=%s",
                self.config.model,
                self.trace_id,
                usage_payload["prompt_tokens"],
                usage_payload["completion_tokens"],
                usage_payload["total_tokens"],
            )
        return LLMResponse(raw_text=content, usage=usage_payload)

    async def is_available(self) -> bool:
        try:
            await self.client.models.list()
        except OpenAIError as exc:
            logger.warning("Liveness probe against %s failed: %s", self.config.base_url, exc)
            return False
        return True

    async def aclose(self) -> None:
        await self.client.close()
