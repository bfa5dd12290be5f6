from __future__ import annotations

from typing import Any, Dict, Optional

from aipm.errors import StageOrderError

STAGE_ORDER = ["requirement", "questionnaire", "document", "code_prompts", "demo"]

STAGE_TITLES = {
    "requirement": "需求收集",
    "questionnaire": "智能问答",
    "document": "需求文档",
    "code_prompts": "代码提示词",
    "demo": "AI演示",
}

REQUIREMENT_STAGE = 1
QUESTIONNAIRE_STAGE = 2
DOCUMENT_STAGE = 3
CODE_PROMPTS_STAGE = 4
DEMO_STAGE = 5


def stage_name(stage: int) -> str:
    if not 1 <= stage <= len(STAGE_ORDER):
        raise StageOrderError(f"Unknown stage: {stage}")
    return STAGE_ORDER[stage - 1]


class PipelineSequencer:
    """Current stage number plus the artifact each completed stage produced."""

    def __init__(self) -> None:
        self._current_stage = 1
        self._artifacts: Dict[int, Any] = {}

    @property
    def current_stage(self) -> int:
        return self._current_stage

    @property
    def is_complete(self) -> bool:
        return self._current_stage > len(STAGE_ORDER)

    def advance(self, stage: int, artifact: Any) -> None:
        if stage != self._current_stage:
            raise StageOrderError(
                f"Cannot complete stage {stage} while stage {self._current_stage} is current."
            )
        stage_name(stage)
        self._artifacts[stage] = artifact
        self._current_stage = stage + 1

    def artifact(self, stage: int) -> Optional[Any]:
        """Re-read a completed stage's artifact; does not move the pipeline."""
        stage_name(stage)
        return self._artifacts.get(stage)

    def artifacts(self) -> Dict[int, Any]:
        return dict(self._artifacts)

    def require_stage(self, stage: int) -> None:
        if stage != self._current_stage:
            raise StageOrderError(
                f"Stage {stage} ({stage_name(stage)}) cannot start while stage "
                f"{self._current_stage} is current."
            )

    def reset(self) -> None:
        self._artifacts.clear()
        self._current_stage = 1
