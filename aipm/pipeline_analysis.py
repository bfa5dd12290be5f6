from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from aipm.errors import PipelineError
from aipm.fallback import fallback_analysis
from aipm.models import DEFAULT_CONFIDENCE, AnalysisResult, Question, Requirement
from aipm.stage_base import StageController, render_prompt

DEFAULT_ANALYSIS = "基于您的需求，我已生成了相关问题"


def _files_hint(requirement: Requirement) -> str:
    if not requirement.files:
        return ""
    listing = "\n".join(
        f"- {item.name}（{item.type or '未知类型'}，{item.size}字节）" for item in requirement.files
    )
    return (
        f"用户还上传了{len(requirement.files)}个相关文件，"
        f"这些可能包含产品截图、需求文档等补充信息：\n{listing}"
    )


def _coerce_confidence(value: Any) -> float:
    if value is None:
        return DEFAULT_CONFIDENCE
    try:
        return float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE


class AnalysisStage(StageController):
    """Requirement text -> clarifying questions plus a short analysis."""

    name = "analysis"
    schema_name = "analysis_result.schema.json"
    system_prompt_name = "analysis_system.md"
    user_prompt_name = "analysis_user.md"

    def build_prompts(self, context: Requirement) -> Tuple[str, str]:
        system_prompt = render_prompt(self.system_prompt_name, {})
        user_prompt = render_prompt(
            self.user_prompt_name,
            {"REQUIREMENT": context.text, "FILES_HINT": _files_hint(context)},
        )
        return system_prompt, user_prompt

    def normalize(self, payload: Dict[str, Any], context: Requirement) -> AnalysisResult:
        questions = [Question.from_dict(item) for item in payload["questions"]]
        ids = [question.id for question in questions]
        if len(set(ids)) != len(ids):
            raise ValueError(f"duplicate question ids in {ids}")
        return AnalysisResult(
            questions=questions,
            analysis=payload.get("analysis") or DEFAULT_ANALYSIS,
            confidence=_coerce_confidence(payload.get("confidence")),
        )

    def check_result(self, result: AnalysisResult) -> Optional[PipelineError]:
        # An empty question list is a valid answer from the service.
        return None

    def fallback(self, context: Requirement) -> AnalysisResult:
        return fallback_analysis(context)
