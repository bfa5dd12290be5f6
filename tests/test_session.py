from __future__ import annotations

import asyncio

import pytest

from aipm.adapters.mock_adapter import MockAdapter
from aipm.errors import StageBusyError, StageOrderError, TransportError
from aipm.models import AnswerSet, MultiChoiceAnswer, Provenance, SingleChoiceAnswer, TextAnswer
from aipm.session import PipelineSession

from conftest import (
    ANALYSIS_REPLY,
    DOCUMENT_REPLY,
    PROMPTS_REPLY,
    GatedClient,
    ScriptedClient,
    as_reply,
    fixed_clock,
)


def _remote_session() -> PipelineSession:
    client = ScriptedClient(
        as_reply(ANALYSIS_REPLY), as_reply(DOCUMENT_REPLY), as_reply(PROMPTS_REPLY)
    )
    return PipelineSession(client, clock=fixed_clock)


def test_full_remote_walk(extension_requirement) -> None:
    session = _remote_session()

    async def walk() -> str:
        await session.submit_requirement(extension_requirement)
        session.submit_answers({"target_users": ["个人用户"], "core_value": "省钱"})
        await session.generate_document("PRD")
        await session.generate_code_prompts()
        return session.finish()

    combined = asyncio.run(walk())

    assert session.sequencer.is_complete
    assert session.requirement == extension_requirement
    assert session.answers.choices("target_users") == ["个人用户"]
    assert session.document.document_type == "PRD"
    assert combined == session.code_prompts.combined()
    assert combined.startswith("## 系统提示词\n\n你是资深工程师")
    assert "\n\n---\n\n## 项目结构提示词" in combined
    assert session.provenance() == {
        "requirement": "remote",
        "document": "remote",
        "code_prompts": "remote",
    }


def test_offline_walk_uses_fallbacks(extension_requirement) -> None:
    session = PipelineSession(MockAdapter(scenario="offline"), clock=fixed_clock)

    async def walk() -> None:
        outcome = await session.submit_requirement(extension_requirement)
        assert outcome.provenance is Provenance.FALLBACK
        assert isinstance(outcome.error, TransportError)
        session.submit_answers({"browser_support": ["Chrome"], "data_source": "本地数据库"})
        await session.generate_document()
        await session.generate_code_prompts()

    asyncio.run(walk())

    assert set(session.provenance().values()) == {"fallback"}
    assert len(session.document.sections) == 5
    assert "Web Extension API" in session.code_prompts.tech_stack


def test_empty_remote_document_falls_back_alone(generic_requirement) -> None:
    session = PipelineSession(MockAdapter(scenario="empty_document"), clock=fixed_clock)

    async def walk() -> None:
        await session.submit_requirement(generic_requirement)
        session.submit_answers({})
        await session.generate_document()
        await session.generate_code_prompts()

    asyncio.run(walk())

    assert session.provenance() == {
        "requirement": "remote",
        "document": "fallback",
        "code_prompts": "remote",
    }
    assert [s.id for s in session.document.sections][0] == "overview"


def test_out_of_order_calls_are_rejected(generic_requirement) -> None:
    session = _remote_session()
    with pytest.raises(StageOrderError):
        asyncio.run(session.generate_document())
    with pytest.raises(StageOrderError):
        session.submit_answers({})

    asyncio.run(session.submit_requirement(generic_requirement))
    with pytest.raises(StageOrderError):
        asyncio.run(session.submit_requirement(generic_requirement))
    with pytest.raises(StageOrderError):
        session.finish()
    assert session.current_stage == 2


def test_answers_must_match_question_kind(generic_requirement) -> None:
    session = _remote_session()
    asyncio.run(session.submit_requirement(generic_requirement))

    with pytest.raises(ValueError):
        session.submit_answers({"core_value": ["a", "b"]})
    with pytest.raises(ValueError):
        session.submit_answers(AnswerSet({"target_users": TextAnswer("企业用户")}))
    assert session.current_stage == 2


def test_answer_mapping_is_typed_by_question(generic_requirement) -> None:
    session = _remote_session()
    asyncio.run(session.submit_requirement(generic_requirement))

    answers = session.submit_answers(
        {"target_users": "企业用户", "core_value": "效率", "extra": "自由回答"}
    )
    assert answers.get("target_users") == MultiChoiceAnswer(("企业用户",))
    assert answers.get("core_value") == TextAnswer("效率")
    assert answers.get("extra") == TextAnswer("自由回答")


def test_missing_required_answers_are_allowed(generic_requirement) -> None:
    session = _remote_session()
    asyncio.run(session.submit_requirement(generic_requirement))

    answers = session.submit_answers({})
    assert answers.missing_required(session.analysis.questions) == ["target_users"]
    assert session.current_stage == 3


def test_reset_discards_in_flight_result(generic_requirement) -> None:
    client = GatedClient(as_reply(ANALYSIS_REPLY), as_reply(ANALYSIS_REPLY))
    session = PipelineSession(client, clock=fixed_clock)

    async def scenario():
        pending = asyncio.create_task(session.submit_requirement(generic_requirement))
        await asyncio.sleep(0)
        session.reset()
        client.gate.set()
        stale = await pending
        fresh = await session.submit_requirement(generic_requirement)
        return stale, fresh

    stale, fresh = asyncio.run(scenario())

    assert stale is None
    assert fresh.provenance is Provenance.REMOTE
    assert session.current_stage == 2
    assert session.analysis.questions[0].id == "target_users"


def test_second_remote_call_is_rejected_while_busy(generic_requirement) -> None:
    client = GatedClient(as_reply(ANALYSIS_REPLY))
    session = PipelineSession(client, clock=fixed_clock)

    async def scenario() -> None:
        pending = asyncio.create_task(session.submit_requirement(generic_requirement))
        await asyncio.sleep(0)
        with pytest.raises(StageBusyError):
            await session.submit_requirement(generic_requirement)
        client.gate.set()
        await pending

    asyncio.run(scenario())
    assert session.current_stage == 2


def test_reset_returns_to_first_stage(generic_requirement) -> None:
    session = _remote_session()
    asyncio.run(session.submit_requirement(generic_requirement))
    session.submit_answers({"target_users": ["企业用户"]})

    session.reset()

    assert session.current_stage == 1
    assert session.requirement is None
    assert session.answers is None
    assert session.provenance() == {}


def test_check_service() -> None:
    assert asyncio.run(PipelineSession(MockAdapter()).check_service())
    assert not asyncio.run(PipelineSession(MockAdapter(scenario="offline")).check_service())


def test_single_choice_answer_for_single_question(generic_requirement) -> None:
    reply = {
        "questions": [
            {"id": "freq", "type": "single", "question": "频率？", "options": ["每天", "每周"]}
        ]
    }
    session = PipelineSession(ScriptedClient(as_reply(reply)), clock=fixed_clock)
    asyncio.run(session.submit_requirement(generic_requirement))

    answers = session.submit_answers({"freq": "每天"})
    assert answers.get("freq") == SingleChoiceAnswer("每天")
