from __future__ import annotations

from enum import Enum
from typing import List, Sequence, Tuple


class Category(str, Enum):
    EXTENSION = "browser_extension"
    OPTIMIZATION = "optimization"
    NEW_PRODUCT = "new_product"
    GENERIC = "generic"


# Checked in this order; the first hit names the project.
CATEGORY_KEYWORDS: Tuple[Tuple[Category, Tuple[str, ...]], ...] = (
    (Category.EXTENSION, ("插件", "浏览器")),
    (Category.OPTIMIZATION, ("优化", "改进")),
    (Category.NEW_PRODUCT, ("开发", "新")),
)

CATEGORY_LABELS = {
    Category.EXTENSION: "浏览器插件",
    Category.OPTIMIZATION: "功能优化",
    Category.NEW_PRODUCT: "新产品开发",
    Category.GENERIC: "通用产品",
}

EXTENSION_MARKER = "Web Extension API"
REACT_MARKERS = ("React", "Next.js")

STACK_RULES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("插件", "浏览器"), ("JavaScript", "HTML", "CSS", EXTENSION_MARKER)),
    (("网站", "平台"), ("React", "Next.js", "TypeScript", "Tailwind CSS")),
    (("应用", "系统"), ("React", "Node.js", "TypeScript", "Express")),
)
DEFAULT_STACK: Tuple[str, ...] = ("React", "TypeScript", "Tailwind CSS")

PRODUCT_NAMES: Tuple[Tuple[str, str], ...] = (
    ("插件", "浏览器插件工具"),
    ("平台", "数据分析平台"),
    ("系统", "管理系统"),
)
DEFAULT_PRODUCT_NAME = "智能工具产品"


def contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def matching_categories(text: str) -> List[Category]:
    """Every category whose keywords occur in ``text``, in rule order."""
    matches = [category for category, keywords in CATEGORY_KEYWORDS if contains_any(text, keywords)]
    return matches or [Category.GENERIC]


def primary_category(text: str) -> Category:
    return matching_categories(text)[0]


def detect_tech_stack(text: str) -> List[str]:
    for keywords, stack in STACK_RULES:
        if contains_any(text, keywords):
            return list(stack)
    return list(DEFAULT_STACK)


def extract_product_name(text: str) -> str:
    for keyword, name in PRODUCT_NAMES:
        if keyword in text:
            return name
    return DEFAULT_PRODUCT_NAME
