#!/usr/bin/env python3
"""
格式化流水线

词法分析 → 渲染（渲染前并行格式化全部代码块），返回最终文本。
嵌套的 md 代码块会以更大的 depth 再次进入这里。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from .config import FormatterConfig
from .core.dispatcher import FormatterDispatcher, ToolRegistry
from .core.renderer import RenderEngine
from .core.tokenizer import Tokenizer, TokenizedDocument

logger = logging.getLogger(__name__)


@dataclass
class FormatResult:
    """一次格式化的结果与统计"""
    output: str
    document: TokenizedDocument
    parse_seconds: float
    render_seconds: float

    @property
    def token_count(self) -> int:
        return len(self.document.tokens)

    @property
    def code_block_count(self) -> int:
        return len(self.document.code_blocks)

    @property
    def changed(self) -> bool:
        return self.output != self.document.source


def format_document(
    text: str,
    config: Optional[FormatterConfig] = None,
    *,
    depth: int = 0,
    registry: Optional[ToolRegistry] = None,
) -> FormatResult:
    config = config if config is not None else FormatterConfig()

    t1 = time.perf_counter()
    document = Tokenizer(text).tokenize()
    t2 = time.perf_counter()

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Tokens (depth=%d): %s", depth, document.to_debug_dicts())

    dispatcher = FormatterDispatcher(config, registry, depth=depth)
    output = RenderEngine(config, dispatcher).render(document)
    t3 = time.perf_counter()

    log = logger.info if depth == 0 else logger.debug
    log(
        "Parsing time: %.2fms, formatting time: %.2fms (tokens=%d, code_blocks=%d)",
        (t2 - t1) * 1000,
        (t3 - t2) * 1000,
        len(document.tokens),
        len(document.code_blocks),
    )

    return FormatResult(
        output=output,
        document=document,
        parse_seconds=t2 - t1,
        render_seconds=t3 - t2,
    )


def format_string(
    text: str,
    config: Optional[FormatterConfig] = None,
    *,
    depth: int = 0,
    registry: Optional[ToolRegistry] = None,
) -> str:
    return format_document(text, config, depth=depth, registry=registry).output
