"""mixdown-formatter: 中英文混排 Markdown 格式化"""

from .config import FormatterConfig
from .pipeline import FormatResult, format_document, format_string

__version__ = "0.3.0"

__all__ = [
    "FormatterConfig",
    "FormatResult",
    "format_document",
    "format_string",
]
