from aipm.fallback.analysis import fallback_analysis
from aipm.fallback.code_prompts import fallback_code_prompts
from aipm.fallback.document import fallback_document

__all__ = ["fallback_analysis", "fallback_code_prompts", "fallback_document"]
