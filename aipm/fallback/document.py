from __future__ import annotations

import re
from typing import List

from aipm.fallback.keywords import extract_product_name
from aipm.models import AnswerSet, DocumentSection, Requirement

DEFAULT_CORE_VALUE = "提升用户效率，解决特定场景下的痛点问题"
DEFAULT_PAIN_POINTS = ("当前解决方案效率低下", "操作流程复杂", "缺乏有效工具支持")
DEFAULT_PRIORITIES = ("核心功能实现", "用户界面优化", "性能提升")
DEFAULT_PERFORMANCE_TARGET = "页面加载时间 < 3秒，操作响应时间 < 1秒"
DEFAULT_TIMELINE = "2-4周"
UNDECIDED = "待确定"


def _bullets(items) -> str:
    return "\n".join(f"- {item}" for item in items)


def _functional_modules(requirement: str, answers: AnswerSet) -> str:
    data_source = answers.text("data_source")
    if "插件" in requirement:
        features = ["浏览器插件核心功能", "数据获取和处理", "用户界面展示"]
        if data_source:
            features.append(f"数据来源：{data_source}")
    elif "优化" in requirement:
        features = ["性能优化模块", "用户体验改进", "系统稳定性提升"]
    else:
        features = ["核心业务功能", "用户管理模块", "数据处理模块"]
    return _bullets(features)


def _technical_specs(answers: AnswerSet) -> str:
    specs = []
    browsers = answers.choices("browser_support")
    if browsers:
        specs.append(f"浏览器支持：{'、'.join(browsers)}")
    data_source = answers.text("data_source")
    if data_source:
        specs.append(f"数据来源：{data_source}")
    specs.append("前端技术：HTML5/CSS3/JavaScript")
    specs.append("后端技术：Node.js/Python（可选）")
    return _bullets(specs)


def _priorities(answers: AnswerSet) -> str:
    raw = answers.text("priority_features")
    if raw:
        features = [item.strip() for item in re.split(r"[,，\n]", raw) if item.strip()]
    else:
        features = []
    features = features or list(DEFAULT_PRIORITIES)
    return "\n".join(f"{index}. {feature}" for index, feature in enumerate(features, start=1))


def _overview(requirement: Requirement, answers: AnswerSet) -> str:
    users = answers.choices("target_users")
    return "\n".join(
        [
            "### 产品名称",
            extract_product_name(requirement.text),
            "",
            "### 核心功能",
            requirement.text,
            "",
            "### 目标用户",
            "、".join(users) if users else UNDECIDED,
            "",
            "### 核心价值",
            answers.text("core_value") or DEFAULT_CORE_VALUE,
        ]
    )


def _user_scenarios(answers: AnswerSet) -> str:
    pain_points = answers.choices("current_pain_points") or list(DEFAULT_PAIN_POINTS)
    return "\n".join(
        [
            "### 使用频率",
            answers.text("usage_frequency") or UNDECIDED,
            "",
            "### 主要使用场景",
            "- 场景一：用户需要快速获取相关信息时",
            "- 场景二：处理重复性工作任务时",
            "- 场景三：提升工作效率的日常操作中",
            "",
            "### 用户痛点",
            _bullets(pain_points),
        ]
    )


def _functional_requirements(requirement: Requirement, answers: AnswerSet) -> str:
    return "\n".join(
        [
            "### 核心功能模块",
            _functional_modules(requirement.text, answers),
            "",
            "### 优先级排序",
            _priorities(answers),
            "",
            "### 技术规格要求",
            _technical_specs(answers),
        ]
    )


def _performance_requirements(answers: AnswerSet) -> str:
    users = answers.choices("target_users") or []
    browsers = answers.choices("browser_support")
    return "\n".join(
        [
            "### 响应时间要求",
            answers.text("performance_target") or DEFAULT_PERFORMANCE_TARGET,
            "",
            "### 并发处理能力",
            f"- 支持同时在线用户数：{'1000+' if '企业用户' in users else '100+'}",
            "- 数据处理能力：满足日常业务需求",
            "",
            "### 兼容性要求",
            f"支持浏览器：{'、'.join(browsers)}" if browsers else "支持主流浏览器和操作系统",
        ]
    )


def _implementation_plan(answers: AnswerSet) -> str:
    return "\n".join(
        [
            "### 开发周期",
            answers.text("budget_timeline") or DEFAULT_TIMELINE,
            "",
            "### 里程碑规划",
            "- 第1周：需求分析和技术方案设计",
            "- 第2周：核心功能开发",
            "- 第3周：测试和优化",
            "- 第4周：部署上线",
            "",
            "### 风险评估",
            "- 技术风险：中等（可控）",
            "- 时间风险：低",
            "- 资源风险：低",
            "",
            "### 成功标准",
            "- 核心功能完整实现",
            "- 用户体验良好",
            "- 性能指标达标",
        ]
    )


def fallback_document(requirement: Requirement, answers: AnswerSet) -> List[DocumentSection]:
    """The five fixed template sections, filled from whatever was answered."""
    return [
        DocumentSection("overview", "1. 产品概述", _overview(requirement, answers)),
        DocumentSection("user_scenarios", "2. 用户场景分析", _user_scenarios(answers)),
        DocumentSection(
            "functional_requirements",
            "3. 功能需求",
            _functional_requirements(requirement, answers),
        ),
        DocumentSection(
            "performance_requirements", "4. 性能需求", _performance_requirements(answers)
        ),
        DocumentSection("implementation_plan", "5. 实施计划", _implementation_plan(answers)),
    ]
