"""Processor tools for item processing.

요약, 분류 도구들.
"""

from src.agent.domains.processor.tools.classifier_tool import (
    ClassificationResult,
    classify_item,
)
from src.agent.domains.processor.tools.summarizer_tool import (
    SummaryResult,
    summarize_item,
)

__all__ = [
    "ClassificationResult",
    "SummaryResult",
    "classify_item",
    "summarize_item",
]
