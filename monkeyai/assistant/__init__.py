"""Assistant: editor-facing question and explanation operations"""

from monkeyai.assistant.content_filter import ContentFilter, FilterVerdict
from monkeyai.assistant.service import MonkeyAssistant, format_answer, format_explanation

__all__ = [
    "ContentFilter",
    "FilterVerdict",
    "MonkeyAssistant",
    "format_answer",
    "format_explanation",
]
