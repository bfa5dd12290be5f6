from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol


@dataclass
class LLMResponse:
    raw_text: str
    usage: Optional[Dict[str, Optional[int]]] = None


def build_messages(user_prompt: str, system_prompt: Optional[str] = None) -> List[Dict[str, str]]:
    messages: List[Dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    return messages


class LLMAdapter(Protocol):
    async def complete(
        self, user_prompt: str, system_prompt: Optional[str] = None
    ) -> LLMResponse:
        raise NotImplementedError

    async def is_available(self) -> bool:
        raise NotImplementedError

    async def aclose(self) -> None:
        raise NotImplementedError
