from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from aipm.adapters.mock_adapter import SCENARIOS, MockAdapter
from aipm.artifacts.writers import (
    write_code_prompts,
    write_document,
    write_questions,
    write_run_summary,
)
from aipm.config import ensure_live_config, load_config
from aipm.errors import ConfigError
from aipm.models import FileReference, Requirement, StageOutcome
from aipm.pipeline_document import DOCUMENT_TYPES
from aipm.session import PipelineSession
from aipm.utils.io import read_text, write_json, write_text
from aipm.utils.time import utc_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BRIEF_TEMPLATE = """---
document_type: MRD
files: []
---
我想做个浏览器插件，在淘宝、京东等购物网站上显示商品的历史价格走势，帮助用户判断是否为最低价
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Turn a product idea into questions, a requirement document and coding prompts."
    )
    parser.add_argument("--mode", choices=["mock", "live"], required=True)
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--requirement", help="Requirement text")
    source.add_argument("--brief", help="Markdown brief with optional YAML front matter")
    parser.add_argument("--answers", help="YAML mapping of question id to answer")
    parser.add_argument("--document-type", choices=DOCUMENT_TYPES, default=None)
    parser.add_argument("--scenario", choices=SCENARIOS, default="default", help="Mock mode only")
    parser.add_argument("--runs-dir", default="runs")
    parser.add_argument("--check", action="store_true", help="Only probe the completion service")
    parser.add_argument("--verbose", action="store_true")
    return parser


def _parse_frontmatter(content: str) -> Tuple[Dict, str]:
    if not content.startswith("---"):
        return {}, content
    parts = content.split("---", 2)
    if len(parts) < 3:
        return {}, content
    try:
        meta = yaml.safe_load(parts[1].strip()) or {}
    except yaml.YAMLError as exc:
        logger.warning("Ignoring unreadable front matter: %s", exc)
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, parts[2].lstrip("\n")


def _load_brief(path: Path) -> Tuple[Requirement, Optional[str]]:
    meta, body = _parse_frontmatter(read_text(path))
    files = [FileReference.from_dict(item) for item in meta.get("files") or []]
    return Requirement.create(body, files), meta.get("document_type")


def _load_answers(path: Optional[str]) -> Dict:
    if not path:
        return {}
    data = yaml.safe_load(read_text(Path(path))) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of question id to answer.")
    return data


def _report(stage: str, outcome: Optional[StageOutcome]) -> None:
    if outcome is None:
        print(f"[{stage}] discarded")
        return
    print(f"[{stage}] done ({outcome.provenance.value})")
    if outcome.error is not None:
        print(f"[{stage}] remote service not used: {outcome.error}")


def _build_session(args: argparse.Namespace, base_dir: Path) -> PipelineSession:
    if args.mode == "mock":
        return PipelineSession(MockAdapter(scenario=args.scenario))
    config = load_config(base_dir)
    ensure_live_config(config)
    return PipelineSession.from_config(config)


async def _run(args: argparse.Namespace, base_dir: Path) -> int:
    session = _build_session(args, base_dir)
    try:
        return await _run_session(session, args, base_dir)
    finally:
        await session.aclose()


async def _run_session(session: PipelineSession, args: argparse.Namespace, base_dir: Path) -> int:
    available = await session.check_service()
    print("Completion service: " + ("connected" if available else "offline, using local templates"))
    if args.check:
        return 0 if available else 1

    if args.requirement:
        requirement, brief_type = Requirement.create(args.requirement), None
    elif args.brief:
        brief_path = Path(args.brief)
        if not brief_path.exists():
            write_text(brief_path, DEFAULT_BRIEF_TEMPLATE)
            print(f"Brief template created at {brief_path}. Please edit it with your product idea.")
            return 1
        requirement, brief_type = _load_brief(brief_path)
    else:
        print("Either --requirement or --brief is required.")
        return 2
    document_type = args.document_type or brief_type or "MRD"

    run_dir = base_dir / args.runs_dir / utc_timestamp()
    inputs_dir = run_dir / "inputs"
    raw_dir = run_dir / "raw"
    artifacts_dir = run_dir / "artifacts"
    write_json(inputs_dir / "requirement.json", requirement.to_dict())
    notes: List[str] = []

    outcome = await session.submit_requirement(requirement)
    _report("analysis", outcome)
    analysis = session.analysis
    write_json(artifacts_dir / "analysis.json", analysis.to_dict())
    write_questions(artifacts_dir / "questions.md", analysis)
    if outcome.raw_text:
        write_text(raw_dir / "analysis_raw.txt", outcome.raw_text)

    answers = session.submit_answers(_load_answers(args.answers))
    write_json(artifacts_dir / "answers.json", answers.to_dict())
    missing = answers.missing_required(analysis.questions)
    if missing:
        notes.append(f"unanswered required questions: {', '.join(missing)}")

    outcome = await session.generate_document(document_type)
    _report("document", outcome)
    write_json(artifacts_dir / "document.json", session.document.to_dict())
    write_document(artifacts_dir / "document.md", session.document)
    if outcome.raw_text:
        write_text(raw_dir / "document_raw.txt", outcome.raw_text)

    outcome = await session.generate_code_prompts()
    _report("code_prompts", outcome)
    write_json(artifacts_dir / "code_prompts.json", session.code_prompts.to_dict())
    write_code_prompts(artifacts_dir / "code_prompts.md", session.code_prompts)
    if outcome.raw_text:
        write_text(raw_dir / "code_prompts_raw.txt", outcome.raw_text)

    session.finish()
    write_run_summary(artifacts_dir / "run_summary.md", session.provenance(), notes)
    print(f"Artifacts written to {run_dir}")
    return 0


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        code = asyncio.run(_run(args, Path.cwd()))
    except (ConfigError, ValueError, OSError, yaml.YAMLError) as exc:
        print(f"Error: {exc}")
        code = 2
    raise SystemExit(code)


if __name__ == "__main__":
    main()
