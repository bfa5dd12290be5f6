from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Optional

from aipm.errors import TransportError

from .llm_base import LLMAdapter, LLMResponse

SCENARIOS = ("default", "offline", "malformed", "empty_document")


@dataclass
class MockAdapter(LLMAdapter):
    """Offline stand-in for the completion service with canned stage replies."""

    scenario: str = "default"

    def __post_init__(self) -> None:
        if self.scenario not in SCENARIOS:
            raise ValueError(f"Unknown mock scenario: {self.scenario}")

    async def complete(
        self, user_prompt: str, system_prompt: Optional[str] = None
    ) -> LLMResponse:
        if self.scenario == "offline":
            raise TransportError("Mock service is offline.")
        if self.scenario == "malformed":
            return LLMResponse(raw_text="Sorry, I cannot answer in JSON right now.")
        payload = self._build_payload(user_prompt)
        return LLMResponse(raw_text=json.dumps(payload, ensure_ascii=False))

    async def is_available(self) -> bool:
        return self.scenario != "offline"

    async def aclose(self) -> None:
        return None

    def _build_payload(self, prompt: str) -> Dict:
        if '"prompts"' in prompt:
            return {
                "prompts": [
                    {
                        "id": "system_prompt",
                        "title": "系统提示词",
                        "content": "你是一位资深的全栈开发工程师，擅长使用React、TypeScript等现代技术栈开发高质量的应用程序。",
                        "type": "system",
                    },
                    {
                        "id": "project_overview",
                        "title": "项目概述提示词",
                        "content": "请基于产品需求，创建一个现代化的Web应用。",
                        "type": "functional",
                    },
                ],
                "techStack": ["React", "TypeScript", "Tailwind CSS", "Next.js"],
                "estimatedTime": "2-3周",
            }
        if '"document"' in prompt:
            if self.scenario == "empty_document":
                return {"document": []}
            return {
                "document": [
                    {
                        "id": "overview",
                        "title": "1. 产品概述",
                        "content": "### 产品名称\n基于AI的智能产品\n\n### 核心价值\n提升用户效率，解决特定场景下的痛点问题",
                    },
                    {
                        "id": "user_scenarios",
                        "title": "2. 用户场景分析",
                        "content": "### 主要使用场景\n- 场景一：用户需要快速完成特定任务时\n- 场景二：处理重复性工作时",
                    },
                ],
                "metadata": {
                    "generatedAt": "2024-01-01T00:00:00.000Z",
                    "version": "1.0",
                    "wordCount": 800,
                },
            }
        return {
            "questions": [
                {
                    "id": "target_users",
                    "type": "multiple",
                    "category": "用户定位",
                    "question": "主要目标用户是谁？",
                    "options": ["公司内部员工", "个人用户", "小团队", "企业用户", "开发者"],
                    "required": True,
                },
                {
                    "id": "core_value",
                    "type": "text",
                    "category": "核心价值",
                    "question": "这个功能/产品最核心的价值是什么？",
                    "required": True,
                },
            ],
            "analysis": "基于您的需求，我已生成了相关问题",
            "confidence": 0.9,
        }
