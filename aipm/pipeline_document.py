from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from aipm.errors import EmptyResultError, PipelineError
from aipm.fallback import fallback_document
from aipm.models import (
    AnalysisResult,
    AnswerSet,
    DocumentMetadata,
    DocumentSection,
    Requirement,
    RequirementDocument,
)
from aipm.stage_base import StageController, render_prompt

DOCUMENT_TYPES = ("MRD", "PRD")
DOCUMENT_VERSION = "1.0"


@dataclass
class DocumentRequest:
    requirement: Requirement
    answers: AnswerSet
    analysis: Optional[AnalysisResult] = None
    document_type: str = "MRD"

    def __post_init__(self) -> None:
        if self.document_type not in DOCUMENT_TYPES:
            raise ValueError(f"Unsupported document type: {self.document_type}")

    def questionnaire_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"answers": self.answers.to_dict()}
        if self.analysis is not None:
            payload["questions"] = [question.to_dict() for question in self.analysis.questions]
            payload["analysis"] = self.analysis.analysis
            payload["confidence"] = self.analysis.confidence
        return payload


class DocumentStage(StageController):
    """Requirement plus questionnaire answers -> MRD/PRD sections."""

    name = "document"
    schema_name = "requirement_document.schema.json"
    system_prompt_name = "document_system.md"
    user_prompt_name = "document_user.md"

    def build_prompts(self, context: DocumentRequest) -> Tuple[str, str]:
        system_prompt = render_prompt(
            self.system_prompt_name, {"DOCUMENT_TYPE": context.document_type}
        )
        user_prompt = render_prompt(
            self.user_prompt_name,
            {
                "DOCUMENT_TYPE": context.document_type,
                "REQUIREMENT": context.requirement.text,
                "QUESTIONNAIRE_JSON": json.dumps(
                    context.questionnaire_payload(), ensure_ascii=False, indent=2
                ),
                "GENERATED_AT": self.clock(),
            },
        )
        return system_prompt, user_prompt

    def normalize(self, payload: Dict[str, Any], context: DocumentRequest) -> RequirementDocument:
        metadata = payload.get("metadata") or {}
        return RequirementDocument(
            sections=[DocumentSection.from_dict(item) for item in payload["document"]],
            metadata=DocumentMetadata(
                generated_at=metadata.get("generatedAt") or self.clock(),
                version=metadata.get("version") or DOCUMENT_VERSION,
                word_count=int(metadata.get("wordCount") or 0),
            ),
            document_type=context.document_type,
        )

    def check_result(self, result: RequirementDocument) -> Optional[PipelineError]:
        if not result.sections:
            return EmptyResultError("Service returned an empty document.")
        return None

    def fallback(self, context: DocumentRequest) -> RequirementDocument:
        document = RequirementDocument(
            sections=fallback_document(context.requirement, context.answers),
            metadata=DocumentMetadata(generated_at=self.clock(), version=DOCUMENT_VERSION),
            document_type=context.document_type,
        )
        document.metadata.word_count = document.char_count()
        return document
