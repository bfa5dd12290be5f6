from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

DEFAULT_CONFIDENCE = 0.8


class Provenance(str, Enum):
    REMOTE = "remote"
    FALLBACK = "fallback"


class QuestionKind(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"
    TEXT = "text"

    @property
    def is_choice(self) -> bool:
        return self is not QuestionKind.TEXT


class CodePromptType(str, Enum):
    SYSTEM = "system"
    FUNCTIONAL = "functional"
    TECHNICAL = "technical"
    STRUCTURE = "structure"


@dataclass(frozen=True)
class FileReference:
    """Metadata of an uploaded file. The content is never read."""

    name: str
    size: int = 0
    type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "size": self.size, "type": self.type}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FileReference:
        return cls(
            name=str(data["name"]),
            size=int(data.get("size", 0) or 0),
            type=str(data.get("type", "") or ""),
        )


@dataclass(frozen=True)
class Requirement:
    text: str
    files: Tuple[FileReference, ...] = ()

    @classmethod
    def create(cls, text: str, files: Iterable[FileReference] = ()) -> Requirement:
        stripped = (text or "").strip()
        if not stripped:
            raise ValueError("Requirement text must not be empty.")
        return cls(text=stripped, files=tuple(files))

    def to_dict(self) -> Dict[str, Any]:
        return {"requirement": self.text, "files": [item.to_dict() for item in self.files]}


@dataclass
class Question:
    id: str
    kind: QuestionKind
    category: str
    question: str
    description: Optional[str] = None
    options: Optional[List[str]] = None
    required: bool = False

    def __post_init__(self) -> None:
        if self.kind.is_choice and not self.options:
            raise ValueError(f"Question {self.id} ({self.kind.value}) needs options.")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "category": self.category,
            "question": self.question,
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.options is not None:
            payload["options"] = list(self.options)
        payload["required"] = self.required
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Question:
        options = data.get("options")
        return cls(
            id=str(data["id"]),
            kind=QuestionKind(data["type"]),
            category=str(data.get("category", "")),
            question=str(data["question"]),
            description=data.get("description"),
            options=[str(item) for item in options] if options is not None else None,
            required=bool(data.get("required", False)),
        )


@dataclass(frozen=True)
class SingleChoiceAnswer:
    value: str

    def to_json(self) -> str:
        return self.value


@dataclass(frozen=True)
class MultiChoiceAnswer:
    values: Tuple[str, ...]

    @classmethod
    def of(cls, values: Iterable[str]) -> MultiChoiceAnswer:
        ordered: List[str] = []
        for value in values:
            if value not in ordered:
                ordered.append(value)
        return cls(values=tuple(ordered))

    def to_json(self) -> List[str]:
        return list(self.values)


@dataclass(frozen=True)
class TextAnswer:
    text: str

    def to_json(self) -> str:
        return self.text


Answer = Union[SingleChoiceAnswer, MultiChoiceAnswer, TextAnswer]


def _answer_for_kind(kind: Optional[QuestionKind], value: object) -> Answer:
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
        if kind is None or kind is QuestionKind.MULTIPLE:
            return MultiChoiceAnswer.of(items)
        raise ValueError(f"A {kind.value} question takes a single value, got a list.")
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValueError(f"Unsupported answer value: {value!r}")
    text = str(value)
    if kind is QuestionKind.MULTIPLE:
        return MultiChoiceAnswer.of([text])
    if kind is QuestionKind.SINGLE:
        return SingleChoiceAnswer(text)
    return TextAnswer(text)


class AnswerSet:
    """Question id -> answer, built up by the questionnaire."""

    def __init__(self, answers: Optional[Dict[str, Answer]] = None) -> None:
        self._answers: Dict[str, Answer] = dict(answers or {})

    def set(self, question_id: str, answer: Answer) -> None:
        self._answers[question_id] = answer

    def get(self, question_id: str) -> Optional[Answer]:
        return self._answers.get(question_id)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnswerSet):
            return NotImplemented
        return self._answers == other._answers

    def text(self, question_id: str) -> Optional[str]:
        answer = self._answers.get(question_id)
        if isinstance(answer, SingleChoiceAnswer):
            return answer.value or None
        if isinstance(answer, TextAnswer):
            return answer.text or None
        return None

    def choices(self, question_id: str) -> Optional[List[str]]:
        answer = self._answers.get(question_id)
        if isinstance(answer, MultiChoiceAnswer) and answer.values:
            return list(answer.values)
        return None

    def missing_required(self, questions: Sequence[Question]) -> List[str]:
        missing = []
        for question in questions:
            if not question.required:
                continue
            answer = self._answers.get(question.id)
            if answer is None or not answer.to_json():
                missing.append(question.id)
        return missing

    def to_dict(self) -> Dict[str, Any]:
        return {key: answer.to_json() for key, answer in self._answers.items()}

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], questions: Sequence[Question] = ()
    ) -> AnswerSet:
        kinds = {question.id: question.kind for question in questions}
        answers: Dict[str, Answer] = {}
        for key, value in (data or {}).items():
            if value is None:
                continue
            answers[str(key)] = _answer_for_kind(kinds.get(str(key)), value)
        return cls(answers)


@dataclass
class AnalysisResult:
    questions: List[Question]
    analysis: str
    confidence: float = DEFAULT_CONFIDENCE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questions": [question.to_dict() for question in self.questions],
            "analysis": self.analysis,
            "confidence": self.confidence,
        }


@dataclass
class DocumentSection:
    id: str
    title: str
    content: str
    editable: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "editable": self.editable,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DocumentSection:
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            content=str(data["content"]),
            editable=bool(data.get("editable", True)),
        )


@dataclass
class DocumentMetadata:
    generated_at: str
    version: str = "1.0"
    word_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "version": self.version,
            "wordCount": self.word_count,
        }


@dataclass
class RequirementDocument:
    sections: List[DocumentSection]
    metadata: DocumentMetadata
    document_type: str = "MRD"

    def section(self, section_id: str) -> Optional[DocumentSection]:
        for item in self.sections:
            if item.id == section_id:
                return item
        return None

    def char_count(self) -> int:
        return sum(len(item.content) for item in self.sections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document": [item.to_dict() for item in self.sections],
            "metadata": self.metadata.to_dict(),
            "documentType": self.document_type,
        }


@dataclass
class CodePromptSection:
    id: str
    title: str
    content: str
    type: CodePromptType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CodePromptSection:
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            content=str(data["content"]),
            type=CodePromptType(data["type"]),
        )


@dataclass
class CodePromptSet:
    prompts: List[CodePromptSection]
    tech_stack: List[str] = field(default_factory=list)
    estimated_time: str = ""

    def combined(self) -> str:
        return "\n\n---\n\n".join(
            f"## {prompt.title}\n\n{prompt.content}" for prompt in self.prompts
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompts": [prompt.to_dict() for prompt in self.prompts],
            "techStack": list(self.tech_stack),
            "estimatedTime": self.estimated_time,
        }


@dataclass
class StageOutcome:
    """What a stage controller hands back: the record plus where it came from."""

    result: Any
    provenance: Provenance
    error: Optional[Exception] = None
    raw_text: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.provenance is Provenance.FALLBACK
