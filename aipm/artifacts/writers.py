from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from aipm.models import AnalysisResult, CodePromptSet, RequirementDocument
from aipm.sequencer import STAGE_TITLES
from aipm.utils.io import write_text


def write_questions(path: Path, analysis: AnalysisResult) -> None:
    lines: List[str] = ["# Questions", "", analysis.analysis, ""]
    for index, question in enumerate(analysis.questions, start=1):
        marker = " *" if question.required else ""
        lines.append(
            f"{index}. [{question.category}] {question.question}{marker} "
            f"(`{question.id}`, {question.kind.value})"
        )
        if question.description:
            lines.append(f"   {question.description}")
        lines.extend([f"   - {option}" for option in question.options or []])
    write_text(path, "\n".join(lines) + "\n")


def write_document(path: Path, document: RequirementDocument) -> None:
    parts = [
        f"{section.title}\n{'=' * len(section.title)}\n{section.content}\n\n"
        for section in document.sections
    ]
    write_text(path, "".join(parts))


def write_code_prompts(path: Path, prompts: CodePromptSet) -> None:
    header = [
        "# AI Coding Prompts",
        "",
        f"- tech_stack: {', '.join(prompts.tech_stack) or 'n/a'}",
        f"- estimated_time: {prompts.estimated_time or 'n/a'}",
        "",
    ]
    write_text(path, "\n".join(header) + "\n" + prompts.combined() + "\n")


def write_run_summary(path: Path, provenance: Dict[str, str], notes: List[str]) -> None:
    lines: List[str] = ["# Run Summary", ""]
    lines.extend(
        [f"- {stage} ({STAGE_TITLES[stage]}): {source}" for stage, source in provenance.items()]
    )
    if notes:
        lines.extend(["", "## Notes"])
        lines.extend([f"- {note}" for note in notes])
    write_text(path, "\n".join(lines) + "\n")
