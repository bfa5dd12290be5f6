from __future__ import annotations

import asyncio
import json
from typing import List, Optional, Tuple, Union

import pytest

from aipm.adapters.llm_base import LLMResponse
from aipm.models import Requirement

FIXED_TIME = "2024-05-01T08:00:00.000Z"

Reply = Union[str, BaseException]


def fixed_clock() -> str:
    return FIXED_TIME


class ScriptedClient:
    """Fake completion service that plays back replies in order."""

    def __init__(self, *replies: Reply, available: bool = True) -> None:
        self.replies: List[Reply] = list(replies)
        self.calls: List[Tuple[Optional[str], str]] = []
        self.available = available
        self.closed = False

    async def complete(self, user_prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        self.calls.append((system_prompt, user_prompt))
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return LLMResponse(raw_text=reply)

    async def is_available(self) -> bool:
        return self.available

    async def aclose(self) -> None:
        self.closed = True


class GatedClient(ScriptedClient):
    """Holds every reply until ``gate`` is set."""

    def __init__(self, *replies: Reply) -> None:
        super().__init__(*replies)
        self.gate = asyncio.Event()

    async def complete(self, user_prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        await self.gate.wait()
        return await super().complete(user_prompt, system_prompt)


class SlowClient(ScriptedClient):
    async def complete(self, user_prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        await asyncio.sleep(5)
        return await super().complete(user_prompt, system_prompt)


ANALYSIS_REPLY = {
    "questions": [
        {
            "id": "target_users",
            "type": "multiple",
            "category": "用户定位",
            "question": "主要目标用户是谁？",
            "options": ["个人用户", "企业用户"],
            "required": True,
        },
        {
            "id": "core_value",
            "type": "text",
            "category": "核心价值",
            "question": "最核心的价值是什么？",
            "description": "一句话概括",
            "required": False,
        },
    ],
    "analysis": "这是一个价格追踪工具",
    "confidence": 0.92,
}

DOCUMENT_REPLY = {
    "document": [
        {"id": "overview", "title": "1. 产品概述", "content": "价格追踪浏览器插件"},
        {"id": "functional_requirements", "title": "3. 功能需求", "content": "- 历史价格曲线"},
    ],
    "metadata": {"generatedAt": "2024-04-30T10:00:00.000Z", "version": "2.1", "wordCount": 321},
}

PROMPTS_REPLY = {
    "prompts": [
        {"id": "system_prompt", "title": "系统提示词", "content": "你是资深工程师", "type": "system"},
        {"id": "structure_prompt", "title": "项目结构提示词", "content": "manifest.json", "type": "structure"},
    ],
    "techStack": ["JavaScript", "Web Extension API"],
    "estimatedTime": "1-2周",
}


def as_reply(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False)


@pytest.fixture()
def extension_requirement() -> Requirement:
    return Requirement.create("我想做个浏览器插件查看价格走势")


@pytest.fixture()
def optimization_requirement() -> Requirement:
    return Requirement.create("我们的平台查询很慢，希望优化")


@pytest.fixture()
def generic_requirement() -> Requirement:
    return Requirement.create("做一个记账工具，记录每天的收入和支出")
