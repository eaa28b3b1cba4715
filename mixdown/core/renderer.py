#!/usr/bin/env python3
"""
渲染引擎

顺序遍历 Token，把文本重新拼装为输出：
- 按「前一个 Token」决定是否在中文 / 英文 / 数字 / 行内代码 / 行内公式之间插入空格
- 标题、块级公式、代码块前后保证恰好一个空行（文档开头除外）
- 连续空行压缩为一个

代码块的格式化结果在遍历前由调度器并行算好，按序号取用。
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from ..config import FormatterConfig
from .dispatcher import FormatterDispatcher
from .latex_layout import format_latex
from .tokenizer import CodeBlockEntry, Token, TokenKind, TokenizedDocument

_INLINE_KINDS = frozenset({TokenKind.INLINE_MATH, TokenKind.INLINE_CODE})
_WORD_KINDS = frozenset({TokenKind.CHINESE, TokenKind.ENGLISH, TokenKind.NUMBER})

_BACKTICK_RUN_RE = re.compile(r"`{3,}")


class _OutputBuffer:
    """追加式输出缓冲，支持检查 / 去除末尾字符"""

    def __init__(self):
        self._parts: list[str] = []

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)

    def is_empty(self) -> bool:
        return not self._parts

    def ends_with(self, suffix: str) -> bool:
        chunks: list[str] = []
        size = 0
        for part in reversed(self._parts):
            chunks.append(part)
            size += len(part)
            if size >= len(suffix):
                break
        return "".join(reversed(chunks)).endswith(suffix)

    def rstrip(self, chars: str) -> None:
        while self._parts:
            stripped = self._parts[-1].rstrip(chars)
            if stripped:
                self._parts[-1] = stripped
                return
            self._parts.pop()

    def current_line(self) -> str:
        """最后一个换行之后的内容"""
        chunks: list[str] = []
        for part in reversed(self._parts):
            _, sep, tail = part.rpartition("\n")
            chunks.append(tail)
            if sep:
                break
        return "".join(reversed(chunks))

    def getvalue(self) -> str:
        return "".join(self._parts)


def _fence_for(body: str, delimiter: str) -> str:
    """围栏长度必须大于内容里最长的反引号串"""
    length = max(3, len(delimiter))
    runs = [len(m) for m in _BACKTICK_RUN_RE.findall(body)]
    if runs and max(runs) >= length:
        length = max(runs) + 1
    return "`" * length


class RenderEngine:
    """Token 序列 → 输出文本"""

    def __init__(
        self,
        config: FormatterConfig,
        dispatcher: Optional[FormatterDispatcher] = None,
    ):
        self.config = config
        self.dispatcher = dispatcher if dispatcher is not None else FormatterDispatcher(config)

    def render(
        self,
        document: TokenizedDocument,
        formatted_blocks: Optional[Sequence[str]] = None,
    ) -> str:
        """渲染文档；未提供 formatted_blocks 时先并行格式化全部代码块"""
        if formatted_blocks is None:
            formatted_blocks = self.dispatcher.format_all(document.code_blocks, document.source)
        if len(formatted_blocks) != len(document.code_blocks):
            raise ValueError(
                f"Expected {len(document.code_blocks)} formatted code blocks, got {len(formatted_blocks)}"
            )

        out = _OutputBuffer()
        self._render_tokens(document.tokens, document.source, formatted_blocks, document.code_blocks, out)

        text = out.getvalue()
        if text.endswith("\n"):
            text = text.rstrip("\n") + "\n"
        return text

    def needs_space(self, current: TokenKind, previous: Optional[TokenKind]) -> bool:
        """current 前是否插入一个空格（只看紧邻的前一个 Token）"""
        if previous is None:
            return False
        cfg = self.config

        if current == TokenKind.CHINESE:
            return (
                (cfg.space_between_zh_and_en and previous == TokenKind.ENGLISH)
                or (cfg.space_between_zh_and_num and previous == TokenKind.NUMBER)
                or previous in _INLINE_KINDS
            )
        if current == TokenKind.ENGLISH:
            return (cfg.space_between_zh_and_en and previous == TokenKind.CHINESE) or previous in _INLINE_KINDS
        if current == TokenKind.NUMBER:
            return (cfg.space_between_zh_and_num and previous == TokenKind.CHINESE) or previous in _INLINE_KINDS
        if current == TokenKind.INLINE_MATH:
            return previous in _WORD_KINDS
        if current == TokenKind.INLINE_CODE:
            return cfg.space_between_code_and_text and previous in _WORD_KINDS
        return False

    def _render_tokens(
        self,
        tokens: Sequence[Token],
        source: str,
        formatted_blocks: Sequence[str],
        code_blocks: Sequence[CodeBlockEntry],
        out: _OutputBuffer,
    ) -> None:
        previous: Optional[TokenKind] = None

        for token in tokens:
            kind = token.kind

            if kind == TokenKind.NEWLINE:
                self._end_line(out)
            elif kind == TokenKind.TEXT:
                out.append(token.text(source))
            elif kind == TokenKind.TITLE:
                self._render_title(token, source, out)
            elif kind == TokenKind.BLOCK_MATH:
                self._render_block_math(token, source, out)
            elif kind == TokenKind.CODE_BLOCK:
                entry = code_blocks[token.index]
                self._render_code_block(entry.language, formatted_blocks[token.index], token.delimiter, out)
            else:
                if self.needs_space(kind, previous):
                    out.append(" ")
                if kind in _INLINE_KINDS:
                    closing = token.delimiter if token.closed else ""
                    out.append(f"{token.delimiter}{token.text(source)}{closing}")
                else:
                    out.append(token.text(source))

            previous = kind

    @staticmethod
    def _end_line(out: _OutputBuffer) -> None:
        """换行；只含空白的行按空行处理，连续空行压缩为一个"""
        line = out.current_line()
        if line and not line.strip(" \t"):
            out.rstrip(" \t")
        if not out.is_empty() and not out.ends_with("\n\n"):
            out.append("\n")

    @staticmethod
    def _ensure_blank_line(out: _OutputBuffer) -> None:
        out.rstrip(" \t\n")
        if out.is_empty():
            return
        out.append("\n\n")

    def _render_title(self, token: Token, source: str, out: _OutputBuffer) -> None:
        inner = _OutputBuffer()
        self._render_tokens(token.children, source, (), (), inner)
        content = inner.getvalue()

        self._ensure_blank_line(out)
        heading = "#" * token.level
        out.append(f"{heading} {content}" if content else heading)
        self._ensure_blank_line(out)

    def _render_block_math(self, token: Token, source: str, out: _OutputBuffer) -> None:
        content = token.text(source).strip()
        if self.config.format_math:
            content = format_latex(content)
        body = f"{content}\n" if content else ""

        self._ensure_blank_line(out)
        out.append(f"$$\n{body}$$")
        self._ensure_blank_line(out)

    def _render_code_block(self, language: str, body: str, delimiter: str, out: _OutputBuffer) -> None:
        if body and not body.endswith("\n"):
            body += "\n"
        fence = _fence_for(body, delimiter)

        self._ensure_blank_line(out)
        out.append(f"{fence}{language}\n{body}{fence}")
        self._ensure_blank_line(out)


def render(
    document: TokenizedDocument,
    formatted_blocks: Optional[Sequence[str]] = None,
    config: Optional[FormatterConfig] = None,
) -> str:
    """渲染文档（便捷入口）"""
    return RenderEngine(config or FormatterConfig()).render(document, formatted_blocks)
