"""CLI 工具包导出"""

from .formatting import (
    OutputFormatter,
    FormatterConfig,
    Color,
    ERROR_TEMPLATES,
)

__all__ = [
    'OutputFormatter',
    'FormatterConfig',
    'Color',
    'ERROR_TEMPLATES',
]
