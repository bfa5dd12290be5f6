from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from aipm.adapters.llm_base import LLMAdapter
from aipm.config import DEFAULT_TIMEOUT_SECONDS
from aipm.errors import (
    EmptyResponseError,
    FallbackGenerationError,
    PipelineError,
    SchemaError,
    TransportError,
)
from aipm.gates.validation import validate_reply
from aipm.models import Provenance, StageOutcome
from aipm.utils.io import read_text
from aipm.utils.time import utc_isoformat

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


class StageState(str, Enum):
    IDLE = "idle"
    RUNNING_REMOTE = "running_remote"
    RUNNING_FALLBACK = "running_fallback"
    DONE = "done"
    FAILED = "failed"


def render_prompt(name: str, values: Dict[str, str]) -> str:
    template = read_text(PROMPTS_DIR / name)
    for key, value in values.items():
        template = template.replace("{{" + key + "}}", value)
    return template.strip() + "\n"


class StageController:
    """One remote attempt, validated, with a deterministic local fallback.

    Subclasses provide the prompts, the payload normalization and the
    fallback generator; the remote-versus-fallback decision lives in
    :meth:`run` only.
    """

    name = "stage"
    schema_name = ""
    system_prompt_name = ""
    user_prompt_name = ""

    def __init__(
        self,
        client: LLMAdapter,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], str] = utc_isoformat,
    ) -> None:
        self.client = client
        self.timeout = timeout
        self.clock = clock
        self.state = StageState.IDLE

    async def run(self, context: Any) -> StageOutcome:
        self.state = StageState.RUNNING_REMOTE
        raw_text: Optional[str] = None
        try:
            raw_text = await self._call_remote(context)
        except (TransportError, EmptyResponseError) as exc:
            error: PipelineError = exc
        else:
            result, error = self._accept(raw_text, context)
            if error is None:
                self.state = StageState.DONE
                return StageOutcome(result=result, provenance=Provenance.REMOTE, raw_text=raw_text)

        logger.warning("[%s] remote generation rejected, using local fallback: %s", self.name, error)
        self.state = StageState.RUNNING_FALLBACK
        try:
            result = self.fallback(context)
        except Exception as exc:
            self.state = StageState.FAILED
            raise FallbackGenerationError(f"{self.name} fallback failed: {exc}") from exc
        self.state = StageState.DONE
        return StageOutcome(
            result=result, provenance=Provenance.FALLBACK, error=error, raw_text=raw_text
        )

    async def _call_remote(self, context: Any) -> str:
        system_prompt, user_prompt = self.build_prompts(context)
        try:
            response = await asyncio.wait_for(
                self.client.complete(user_prompt, system_prompt), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(f"No reply within {self.timeout:g}s") from exc
        return response.raw_text

    def _accept(self, raw_text: str, context: Any) -> Tuple[Any, Optional[PipelineError]]:
        checked = validate_reply(raw_text, self.schema_name)
        if not checked.ok:
            return None, checked.error
        try:
            result = self.normalize(checked.payload, context)
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            return None, SchemaError(f"Could not normalize {self.name} reply: {exc}")
        return result, self.check_result(result)

    def build_prompts(self, context: Any) -> Tuple[str, str]:
        raise NotImplementedError

    def normalize(self, payload: Dict[str, Any], context: Any) -> Any:
        raise NotImplementedError

    def check_result(self, result: Any) -> Optional[PipelineError]:
        return None

    def fallback(self, context: Any) -> Any:
        raise NotImplementedError
