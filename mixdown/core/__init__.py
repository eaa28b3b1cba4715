# Core modules for mixdown-formatter
from .tokenizer import Tokenizer, TokenizedDocument, Token, TokenKind, CodeBlockEntry, tokenize
from .renderer import RenderEngine, render
from .dispatcher import (
    FormatterDispatcher,
    FormatterProfile,
    ToolRegistry,
    FormatterError,
    ToolNotFoundError,
    ToolExecutionError,
    default_registry,
    format_block,
)
from .latex_layout import format_latex

__all__ = [
    "Tokenizer",
    "TokenizedDocument",
    "Token",
    "TokenKind",
    "CodeBlockEntry",
    "tokenize",
    "RenderEngine",
    "render",
    "FormatterDispatcher",
    "FormatterProfile",
    "ToolRegistry",
    "FormatterError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "default_registry",
    "format_block",
    "format_latex",
]
