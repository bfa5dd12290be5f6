from __future__ import annotations

from typing import List, Sequence

from aipm.fallback.keywords import EXTENSION_MARKER, REACT_MARKERS, detect_tech_stack
from aipm.models import (
    CodePromptSection,
    CodePromptSet,
    CodePromptType,
    Requirement,
    RequirementDocument,
)

FALLBACK_ESTIMATED_TIME = "2-3周"

EXTENSION_STRUCTURE = """**浏览器插件项目结构要求:**

请按照以下结构创建项目文件：

```
project/
├── manifest.json          # 插件配置文件
├── popup/
│   ├── popup.html         # 弹窗页面
│   ├── popup.js           # 弹窗逻辑
│   └── popup.css          # 弹窗样式
├── content/
│   ├── content.js         # 内容脚本
│   └── content.css        # 注入样式
├── background/
│   └── background.js      # 后台脚本
├── options/
│   ├── options.html       # 设置页面
│   ├── options.js         # 设置逻辑
│   └── options.css        # 设置样式
├── assets/
│   ├── icons/             # 图标文件
│   └── images/            # 图片资源
└── utils/
    └── common.js          # 通用工具函数
```

**文件实现要求:**
- manifest.json必须包含完整的权限和配置
- 每个脚本文件都要有清晰的功能分工
- 样式文件要确保不影响原网页
- 工具函数要具有良好的复用性"""

REACT_STRUCTURE = """**React/Next.js项目结构要求:**

请按照以下结构创建项目文件：

```
project/
├── src/
│   ├── components/        # React组件
│   │   ├── ui/           # 基础UI组件
│   │   └── features/     # 功能组件
│   ├── pages/            # 页面组件
│   ├── hooks/            # 自定义Hook
│   ├── utils/            # 工具函数
│   ├── types/            # TypeScript类型
│   ├── styles/           # 样式文件
│   └── constants/        # 常量定义
├── public/               # 静态资源
├── package.json          # 项目配置
├── tsconfig.json         # TypeScript配置
├── tailwind.config.js    # Tailwind配置
└── next.config.js        # Next.js配置
```

**组件开发要求:**
- 每个组件都要有明确的职责
- 使用TypeScript进行类型约束
- 组件要具有良好的可复用性
- 添加适当的PropTypes或接口定义"""

GENERIC_STRUCTURE = """**通用项目结构要求:**

请创建清晰的项目文件结构，包含：
- 源代码目录
- 配置文件
- 样式资源
- 工具函数
- 文档说明

确保每个文件都有明确的用途和良好的组织方式。"""


def _system_prompt(stack: Sequence[str]) -> str:
    expertise = "\n".join(f"- {tech}" for tech in stack)
    return f"""你是一位资深的全栈开发工程师，擅长使用现代技术栈开发高质量的应用程序。

**技术专长:**
{expertise}

**开发原则:**
- 编写清晰、可维护的代码
- 遵循最佳实践和设计模式
- 重视用户体验和性能优化
- 确保代码的可读性和可扩展性
- 适当添加注释和文档

**代码风格:**
- 使用TypeScript进行类型安全
- 采用函数式编程和组件化设计
- 遵循ESLint和Prettier规范
- 使用语义化的命名方式

请根据以下需求，提供完整的、可立即运行的代码实现。"""


def _project_overview_prompt(overview: str) -> str:
    return f"""**项目需求:**
{overview}

**项目目标:**
- 实现上述核心功能
- 提供良好的用户体验
- 确保代码质量和可维护性
- 支持后续功能扩展

**关键要求:**
- 响应式设计，适配多种设备
- 美观的UI界面
- 流畅的交互体验
- 合理的错误处理
- 基本的性能优化

请基于以上需求，创建一个完整的项目实现。"""


def _functional_prompt(functional: str) -> str:
    return f"""**具体功能需求:**
{functional}

**实现要求:**
- 每个功能模块都要完整实现
- 提供清晰的用户界面
- 包含必要的交互反馈
- 添加适当的加载状态
- 实现基本的错误处理

**用户体验要求:**
- 操作流程要直观明了
- 提供操作提示和帮助信息
- 确保界面响应及时
- 支持常见的用户操作习惯

请逐一实现以上功能，确保每个功能都能正常工作。"""


def _technical_prompt(stack: Sequence[str], source: str) -> str:
    points = "\n".join(f"- 充分利用{tech}的特性和最佳实践" for tech in stack)
    parts = [
        f"""**技术实现要求:**

**项目结构:**
- 使用模块化的代码组织方式
- 分离业务逻辑和UI组件
- 创建可复用的工具函数
- 合理划分文件和目录结构

**技术要点:**
{points}"""
    ]
    if "插件" in source:
        parts.append(
            """**浏览器插件特定要求:**
- 创建完整的manifest.json配置
- 实现background script和content script
- 处理跨域请求和权限管理
- 提供popup界面和options页面
- 确保在不同网站上的兼容性"""
        )
    if "网站" in source or "平台" in source:
        parts.append(
            """**Web应用特定要求:**
- 实现路由管理和页面导航
- 添加状态管理（如需要）
- 实现数据持久化
- 添加API集成（如需要）
- 确保SEO友好性"""
        )
    parts.append(
        """**代码质量:**
- 添加TypeScript类型定义
- 实现错误边界和异常处理
- 添加必要的单元测试
- 确保代码可读性和文档完整性

请根据以上技术要求实现项目。"""
    )
    return "\n\n".join(parts)


def _structure_prompt(stack: Sequence[str]) -> str:
    if EXTENSION_MARKER in stack:
        return EXTENSION_STRUCTURE
    if any(marker in stack for marker in REACT_MARKERS):
        return REACT_STRUCTURE
    return GENERIC_STRUCTURE


def fallback_code_prompts(
    requirement: Requirement, document: RequirementDocument
) -> CodePromptSet:
    overview_section = document.section("overview")
    functional_section = document.section("functional_requirements")
    overview = overview_section.content if overview_section else requirement.text
    functional = functional_section.content if functional_section else ""

    stack = detect_tech_stack(requirement.text + overview + functional)
    source = requirement.text + overview

    prompts: List[CodePromptSection] = [
        CodePromptSection("system_prompt", "系统提示词", _system_prompt(stack), CodePromptType.SYSTEM),
        CodePromptSection(
            "project_overview",
            "项目概述提示词",
            _project_overview_prompt(overview),
            CodePromptType.FUNCTIONAL,
        ),
        CodePromptSection(
            "functional_prompt",
            "功能实现提示词",
            _functional_prompt(functional),
            CodePromptType.FUNCTIONAL,
        ),
        CodePromptSection(
            "technical_prompt",
            "技术实现提示词",
            _technical_prompt(stack, source),
            CodePromptType.TECHNICAL,
        ),
        CodePromptSection(
            "structure_prompt", "项目结构提示词", _structure_prompt(stack), CodePromptType.STRUCTURE
        ),
    ]
    return CodePromptSet(prompts=prompts, tech_stack=stack, estimated_time=FALLBACK_ESTIMATED_TIME)
