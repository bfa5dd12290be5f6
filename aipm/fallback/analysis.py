from __future__ import annotations

from typing import Dict, List

from aipm.fallback.keywords import (
    CATEGORY_LABELS,
    Category,
    matching_categories,
    primary_category,
)
from aipm.models import AnalysisResult, Question, QuestionKind, Requirement

FALLBACK_CONFIDENCE = 0.85


def _base_questions() -> List[Question]:
    return [
        Question(
            id="target_users",
            kind=QuestionKind.MULTIPLE,
            category="用户定位",
            question="主要目标用户是谁？",
            description="选择所有适用的用户群体",
            options=["公司内部员工", "个人用户", "小团队", "企业用户", "开发者", "普通消费者"],
            required=True,
        ),
        Question(
            id="usage_frequency",
            kind=QuestionKind.SINGLE,
            category="使用场景",
            question="预期使用频率？",
            options=["每天多次", "每天一次", "每周几次", "偶尔使用"],
            required=True,
        ),
        Question(
            id="core_value",
            kind=QuestionKind.TEXT,
            category="核心价值",
            question="这个功能/产品最核心的价值是什么？",
            description="用一句话概括用户从中获得的最大收益",
            required=True,
        ),
    ]


def _category_questions() -> Dict[Category, List[Question]]:
    return {
        Category.EXTENSION: [
            Question(
                id="browser_support",
                kind=QuestionKind.MULTIPLE,
                category="技术规格",
                question="需要支持哪些浏览器？",
                options=["Chrome", "Firefox", "Safari", "Edge"],
                required=True,
            ),
            Question(
                id="data_source",
                kind=QuestionKind.SINGLE,
                category="数据来源",
                question="数据从哪里获取？",
                options=["爬取网站数据", "调用第三方API", "用户手动输入", "本地数据库"],
                required=True,
            ),
        ],
        Category.OPTIMIZATION: [
            Question(
                id="current_pain_points",
                kind=QuestionKind.MULTIPLE,
                category="问题分析",
                question="当前主要痛点有哪些？",
                options=["响应速度慢", "操作复杂", "功能不完整", "界面不友好", "稳定性差"],
                required=True,
            ),
            Question(
                id="performance_target",
                kind=QuestionKind.TEXT,
                category="性能目标",
                question="期望的性能改进目标是什么？",
                description="例如：响应时间从5秒降低到1秒",
                required=True,
            ),
        ],
        Category.NEW_PRODUCT: [
            Question(
                id="similar_products",
                kind=QuestionKind.TEXT,
                category="竞品分析",
                question="有哪些类似的产品？它们的不足之处是什么？",
                required=True,
            ),
            Question(
                id="unique_features",
                kind=QuestionKind.TEXT,
                category="差异化",
                question="您的产品相比现有方案有什么独特之处？",
                required=True,
            ),
        ],
    }


def _closing_questions() -> List[Question]:
    return [
        Question(
            id="budget_timeline",
            kind=QuestionKind.SINGLE,
            category="项目规划",
            question="期望的开发周期？",
            options=["1周内", "2-4周", "1-2个月", "3个月以上"],
            required=True,
        ),
        Question(
            id="priority_features",
            kind=QuestionKind.TEXT,
            category="优先级",
            question="如果只能实现3个最重要的功能，会是哪些？",
            description="按重要性排序",
            required=True,
        ),
    ]


def fallback_analysis(requirement: Requirement) -> AnalysisResult:
    categories = matching_categories(requirement.text)
    extras = _category_questions()

    questions = _base_questions()
    for category in categories:
        questions.extend(extras.get(category, []))
    questions.extend(_closing_questions())

    label = CATEGORY_LABELS[primary_category(requirement.text)]
    return AnalysisResult(
        questions=questions,
        analysis=f"基于您的需求，我识别出这是一个{label}项目",
        confidence=FALLBACK_CONFIDENCE,
    )
