from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from aipm.fallback import fallback_code_prompts
from aipm.models import CodePromptSection, CodePromptSet, Requirement, RequirementDocument
from aipm.stage_base import StageController, render_prompt

DEFAULT_TECH_STACK = ("React", "TypeScript")
DEFAULT_ESTIMATED_TIME = "2-4周"


@dataclass
class CodePromptRequest:
    requirement: Requirement
    document: RequirementDocument


class CodePromptStage(StageController):
    name = "code_prompts"
    schema_name = "code_prompts.schema.json"
    system_prompt_name = "code_prompts_system.md"
    user_prompt_name = "code_prompts_user.md"

    def build_prompts(self, context: CodePromptRequest) -> Tuple[str, str]:
        system_prompt = render_prompt(self.system_prompt_name, {})
        user_prompt = render_prompt(
            self.user_prompt_name,
            {
                "REQUIREMENT": context.requirement.text,
                "REQUIREMENT_DOC_JSON": json.dumps(
                    context.document.to_dict(), ensure_ascii=False, indent=2
                ),
            },
        )
        return system_prompt, user_prompt

    def normalize(self, payload: Dict[str, Any], context: CodePromptRequest) -> CodePromptSet:
        tech_stack = payload.get("techStack")
        return CodePromptSet(
            prompts=[CodePromptSection.from_dict(item) for item in payload["prompts"]],
            tech_stack=list(tech_stack) if tech_stack is not None else list(DEFAULT_TECH_STACK),
            estimated_time=payload.get("estimatedTime") or DEFAULT_ESTIMATED_TIME,
        )

    def fallback(self, context: CodePromptRequest) -> CodePromptSet:
        return fallback_code_prompts(context.requirement, context.document)
