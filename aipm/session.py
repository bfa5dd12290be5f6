from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

from aipm.adapters.llm_base import LLMAdapter
from aipm.adapters.openai_adapter import OpenAIAdapter
from aipm.config import DEFAULT_TIMEOUT_SECONDS, AIConfig
from aipm.errors import StageBusyError
from aipm.models import (
    AnalysisResult,
    AnswerSet,
    CodePromptSet,
    MultiChoiceAnswer,
    QuestionKind,
    Requirement,
    RequirementDocument,
    SingleChoiceAnswer,
    StageOutcome,
    TextAnswer,
)
from aipm.pipeline_analysis import AnalysisStage
from aipm.pipeline_code_prompts import CodePromptRequest, CodePromptStage
from aipm.pipeline_document import DocumentRequest, DocumentStage
from aipm.sequencer import (
    CODE_PROMPTS_STAGE,
    DEMO_STAGE,
    DOCUMENT_STAGE,
    QUESTIONNAIRE_STAGE,
    REQUIREMENT_STAGE,
    PipelineSequencer,
    stage_name,
)
from aipm.stage_base import StageController
from aipm.utils.time import utc_isoformat

logger = logging.getLogger(__name__)

_ANSWER_TYPES = {
    QuestionKind.SINGLE: SingleChoiceAnswer,
    QuestionKind.MULTIPLE: MultiChoiceAnswer,
    QuestionKind.TEXT: TextAnswer,
}


@dataclass
class RequirementArtifact:
    requirement: Requirement
    outcome: StageOutcome

    @property
    def analysis(self) -> AnalysisResult:
        return self.outcome.result


class PipelineSession:
    """One user's walk through the pipeline.

    Remote stages are awaited one at a time. ``reset()`` bumps an epoch so
    that a reply landing after the reset is dropped instead of committed.
    """

    def __init__(
        self,
        client: LLMAdapter,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], str] = utc_isoformat,
    ) -> None:
        self.client = client
        self.timeout = timeout
        self.clock = clock
        self.sequencer = PipelineSequencer()
        self._build_stages()
        self._epoch = 0
        self._in_flight: Optional[int] = None

    def _build_stages(self) -> None:
        self.analysis_stage = AnalysisStage(self.client, self.timeout, self.clock)
        self.document_stage = DocumentStage(self.client, self.timeout, self.clock)
        self.code_prompt_stage = CodePromptStage(self.client, self.timeout, self.clock)

    @classmethod
    def from_config(cls, config: AIConfig) -> PipelineSession:
        return cls(OpenAIAdapter(config), timeout=config.timeout)

    @property
    def current_stage(self) -> int:
        return self.sequencer.current_stage

    @property
    def requirement(self) -> Optional[Requirement]:
        artifact = self.sequencer.artifact(REQUIREMENT_STAGE)
        return artifact.requirement if artifact else None

    @property
    def analysis(self) -> Optional[AnalysisResult]:
        artifact = self.sequencer.artifact(REQUIREMENT_STAGE)
        return artifact.analysis if artifact else None

    @property
    def answers(self) -> Optional[AnswerSet]:
        return self.sequencer.artifact(QUESTIONNAIRE_STAGE)

    @property
    def document(self) -> Optional[RequirementDocument]:
        outcome = self.sequencer.artifact(DOCUMENT_STAGE)
        return outcome.result if outcome else None

    @property
    def code_prompts(self) -> Optional[CodePromptSet]:
        outcome = self.sequencer.artifact(CODE_PROMPTS_STAGE)
        return outcome.result if outcome else None

    def provenance(self) -> Dict[str, str]:
        stages = {
            REQUIREMENT_STAGE: lambda artifact: artifact.outcome,
            DOCUMENT_STAGE: lambda artifact: artifact,
            CODE_PROMPTS_STAGE: lambda artifact: artifact,
        }
        result: Dict[str, str] = {}
        for stage, outcome_of in stages.items():
            artifact = self.sequencer.artifact(stage)
            if artifact is not None:
                result[stage_name(stage)] = outcome_of(artifact).provenance.value
        return result

    async def check_service(self) -> bool:
        return await self.client.is_available()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def submit_requirement(self, requirement: Requirement) -> Optional[StageOutcome]:
        self.sequencer.require_stage(REQUIREMENT_STAGE)
        outcome = await self._run_stage(self.analysis_stage, requirement)
        if outcome is not None:
            self.sequencer.advance(REQUIREMENT_STAGE, RequirementArtifact(requirement, outcome))
        return outcome

    def submit_answers(self, answers: Union[AnswerSet, Mapping[str, Any]]) -> AnswerSet:
        self.sequencer.require_stage(QUESTIONNAIRE_STAGE)
        questions = self.analysis.questions
        if not isinstance(answers, AnswerSet):
            answers = AnswerSet.from_dict(dict(answers), questions)
        kinds = {question.id: question.kind for question in questions}
        for question_id in answers:
            kind = kinds.get(question_id)
            answer = answers.get(question_id)
            if kind is not None and not isinstance(answer, _ANSWER_TYPES[kind]):
                raise ValueError(
                    f"Answer to {question_id} must be {kind.value}, got {type(answer).__name__}."
                )
        missing = answers.missing_required(questions)
        if missing:
            logger.info("Questionnaire submitted without required answers: %s", ", ".join(missing))
        self.sequencer.advance(QUESTIONNAIRE_STAGE, answers)
        return answers

    async def generate_document(self, document_type: str = "MRD") -> Optional[StageOutcome]:
        self.sequencer.require_stage(DOCUMENT_STAGE)
        request = DocumentRequest(
            requirement=self.requirement,
            answers=self.answers,
            analysis=self.analysis,
            document_type=document_type,
        )
        outcome = await self._run_stage(self.document_stage, request)
        if outcome is not None:
            self.sequencer.advance(DOCUMENT_STAGE, outcome)
        return outcome

    async def generate_code_prompts(self) -> Optional[StageOutcome]:
        self.sequencer.require_stage(CODE_PROMPTS_STAGE)
        request = CodePromptRequest(requirement=self.requirement, document=self.document)
        outcome = await self._run_stage(self.code_prompt_stage, request)
        if outcome is not None:
            self.sequencer.advance(CODE_PROMPTS_STAGE, outcome)
        return outcome

    def finish(self) -> str:
        self.sequencer.require_stage(DEMO_STAGE)
        combined = self.code_prompts.combined()
        self.sequencer.advance(DEMO_STAGE, combined)
        return combined

    def reset(self) -> None:
        self._epoch += 1
        self._in_flight = None
        self.sequencer.reset()
        self._build_stages()

    async def _run_stage(self, stage: StageController, context: Any) -> Optional[StageOutcome]:
        if self._in_flight == self._epoch:
            raise StageBusyError(f"A remote stage is already running; cannot start {stage.name}.")
        epoch = self._epoch
        self._in_flight = epoch
        try:
            outcome = await stage.run(context)
        finally:
            if self._in_flight == epoch:
                self._in_flight = None
        if epoch != self._epoch:
            logger.info("[%s] pipeline was reset while waiting; discarding result", stage.name)
            return None
        return outcome
