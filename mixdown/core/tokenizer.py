#!/usr/bin/env python3
"""
混排文档词法分析器

单遍扫描原始文本，切分为有序的 Token 序列，同时把围栏代码块的内容
抽取到独立列表（与占位 Token 一一对应、顺序一致）。

Token 只保存在原文中的偏移区间 ``[start, end)``，输出时才取子串；
标题 Token 额外持有对标题行递归切分得到的子序列。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..constants.languages import normalize_language


class TokenKind(Enum):
    """Token 类型"""
    TEXT = "text"
    CHINESE = "chinese"
    ENGLISH = "english"
    NUMBER = "number"
    INLINE_MATH = "inline_math"
    INLINE_CODE = "inline_code"
    BLOCK_MATH = "block_math"
    CODE_BLOCK = "code_block"  # 占位，内容见 code_blocks
    NEWLINE = "newline"
    TITLE = "title"


BLOCK_KINDS = frozenset({TokenKind.TITLE, TokenKind.BLOCK_MATH, TokenKind.CODE_BLOCK})


@dataclass(frozen=True)
class Token:
    """词法单元（原文偏移区间）"""
    kind: TokenKind
    start: int
    end: int
    delimiter: str = ""  # 行内代码/公式的定界符，代码块的围栏
    index: int = -1  # 代码块占位在 code_blocks 中的序号
    level: int = 0  # 标题级别
    children: tuple[Token, ...] = ()  # 标题内部的 Token
    closed: bool = True  # 行内代码/公式是否有结束定界符

    def text(self, source: str) -> str:
        return source[self.start:self.end]

    @property
    def is_block(self) -> bool:
        return self.kind in BLOCK_KINDS


@dataclass(frozen=True)
class CodeBlockEntry:
    """抽取出的围栏代码块"""
    language: str  # 归一化后的 info string
    start: int
    end: int

    @property
    def name(self) -> str:
        """info string 的第一个词，用于查找格式化工具"""
        return self.language.split(None, 1)[0] if self.language else ""

    def content(self, source: str) -> str:
        return source[self.start:self.end]


@dataclass
class TokenizedDocument:
    """切分结果"""
    source: str
    tokens: list[Token]
    code_blocks: list[CodeBlockEntry] = field(default_factory=list)

    @property
    def placeholder_count(self) -> int:
        return sum(1 for token in self.tokens if token.kind == TokenKind.CODE_BLOCK)

    def to_debug_dicts(self) -> list[dict]:
        """导出 Token 序列（调试用）"""
        return [_token_to_dict(token, self.source, self.code_blocks) for token in self.tokens]


def _token_to_dict(token: Token, source: str, code_blocks: list[CodeBlockEntry]) -> dict:
    data: dict = {"kind": token.kind.value}
    if token.kind == TokenKind.TITLE:
        data["level"] = token.level
        data["children"] = [_token_to_dict(child, source, code_blocks) for child in token.children]
    elif token.kind == TokenKind.CODE_BLOCK:
        data["index"] = token.index
        data["language"] = code_blocks[token.index].language
        data["text"] = token.text(source)
    elif token.kind != TokenKind.NEWLINE:
        data["text"] = token.text(source)
    return data


def _is_ascii_letter(c: str) -> bool:
    return c.isascii() and c.isalpha()


def _is_number_char(c: str) -> bool:
    return '0' <= c <= '9' or c == '.'


def is_chinese(c: str) -> bool:
    return '\u4e00' <= c <= '\u9fff'


class Tokenizer:
    """单遍词法分析器

    Args:
        source: 原始文本
        start / end: 只切分 ``source[start:end]``，偏移仍相对于 source
        inline_only: 只识别行内结构（标题内部使用），
            ``$$``、围栏和 ``#`` 标题都按普通文本处理
    """

    MAX_HEADING_LEVEL = 6
    MIN_FENCE = 3

    def __init__(
        self,
        source: str,
        start: int = 0,
        end: Optional[int] = None,
        *,
        inline_only: bool = False,
    ):
        self.source = source
        self.pos = start
        self.end = len(source) if end is None else end
        self.inline_only = inline_only

        self.tokens: list[Token] = []
        self.code_blocks: list[CodeBlockEntry] = []

        self._text_start: Optional[int] = None
        self._line_blank = True  # 本行到目前为止只有空白
        self._in_quote = False

    def tokenize(self) -> TokenizedDocument:
        src = self.source
        while self.pos < self.end:
            c = src[self.pos]

            if c == '\n':
                self._newline(1)
            elif c == '\r' and self.pos + 1 < self.end and src[self.pos + 1] == '\n':
                self._newline(2)
            elif c == '$':
                self._scan_dollar()
            elif c == '`':
                self._scan_backticks()
            elif c == '#' and self._line_blank and not self.inline_only:
                self._scan_heading()
            elif c == '>' and self._line_blank:
                self._in_quote = True
                self._extend_text(1)
            elif _is_ascii_letter(c):
                self._scan_run(TokenKind.ENGLISH, _is_ascii_letter)
            elif '0' <= c <= '9':
                self._scan_run(TokenKind.NUMBER, _is_number_char)
            elif is_chinese(c):
                self._scan_run(TokenKind.CHINESE, is_chinese)
            else:
                self._extend_text(1)

        self._flush_text()
        return TokenizedDocument(source=src, tokens=self.tokens, code_blocks=self.code_blocks)

    # ------------------------------------------------------------------
    # 基础操作
    # ------------------------------------------------------------------

    def _emit(self, kind: TokenKind, start: int, end: int, **extra) -> None:
        self.tokens.append(Token(kind, start, end, **extra))
        if kind != TokenKind.NEWLINE:
            self._line_blank = False

    def _newline(self, width: int) -> None:
        """``\\n`` 或 ``\\r\\n``，统一为一个换行 Token"""
        self._flush_text()
        self._emit(TokenKind.NEWLINE, self.pos, self.pos + width)
        self.pos += width
        self._line_blank = True
        self._in_quote = False

    def _extend_text(self, count: int) -> None:
        if self._text_start is None:
            self._text_start = self.pos
        stop = min(self.pos + count, self.end)
        if self._line_blank and not self.source[self.pos:stop].isspace():
            self._line_blank = False
        self.pos = stop

    def _flush_text(self) -> None:
        if self._text_start is not None and self._text_start < self.pos:
            self.tokens.append(Token(TokenKind.TEXT, self._text_start, self.pos))
        self._text_start = None

    def _drop_leading_whitespace(self) -> None:
        """块级结构前的行首缩进不输出"""
        if self._line_blank:
            self._text_start = None
        else:
            self._flush_text()

    def _scan_run(self, kind: TokenKind, predicate: Callable[[str], bool]) -> None:
        self._flush_text()
        src = self.source
        j = self.pos + 1
        while j < self.end and predicate(src[j]):
            j += 1
        self._emit(kind, self.pos, j)
        self.pos = j

    def _run_length(self, char: str, start: int) -> int:
        j = start
        while j < self.end and self.source[j] == char:
            j += 1
        return j - start

    # ------------------------------------------------------------------
    # 结构标记
    # ------------------------------------------------------------------

    def _scan_dollar(self) -> None:
        src = self.source
        is_block = self.pos + 1 < self.end and src[self.pos + 1] == '$'

        if is_block:
            if self._in_quote or self.inline_only:
                self._extend_text(2)
                return
            self._drop_leading_whitespace()
            content_start = self.pos + 2
            close = src.find('$$', content_start, self.end)
            content_end = self.end if close == -1 else close
            self._emit(TokenKind.BLOCK_MATH, content_start, content_end)
            self.pos = self.end if close == -1 else close + 2
            return

        content_start = self.pos + 1
        close = src.find('$', content_start, self.end)
        if close == -1 and content_start >= self.end:
            # 文末孤立的 $
            self._extend_text(1)
            return

        self._flush_text()
        content_end = self.end if close == -1 else close
        self._emit(
            TokenKind.INLINE_MATH,
            content_start,
            content_end,
            delimiter='$',
            closed=close != -1,
        )
        self.pos = self.end if close == -1 else close + 1

    def _scan_backticks(self) -> None:
        n = self._run_length('`', self.pos)

        if n >= self.MIN_FENCE:
            if self._in_quote or self.inline_only:
                self._extend_text(n)
                return
            self._scan_fence(n)
            return

        fence = '`' * n
        content_start = self.pos + n
        close = self.source.find(fence, content_start, self.end)
        if close == -1 and content_start >= self.end:
            self._extend_text(n)
            return

        self._flush_text()
        content_end = self.end if close == -1 else close
        self._emit(
            TokenKind.INLINE_CODE,
            content_start,
            content_end,
            delimiter=fence,
            closed=close != -1,
        )
        self.pos = self.end if close == -1 else close + n

    def _scan_fence(self, n: int) -> None:
        src = self.source
        self._drop_leading_whitespace()

        info_start = self.pos + n
        info_end = src.find('\n', info_start, self.end)
        if info_end == -1:
            info_end = self.end
            content_start = self.end
        else:
            content_start = info_end + 1

        close = self._find_closing_fence(content_start, n)
        content_end = self.end if close == -1 else close

        # 缩进的结束围栏：去掉最后一行的前导空白
        trimmed = content_end
        while trimmed > content_start and src[trimmed - 1] in ' \t':
            trimmed -= 1
        if trimmed == content_start or src[trimmed - 1] == '\n':
            content_end = trimmed

        index = len(self.code_blocks)
        self.code_blocks.append(CodeBlockEntry(
            language=normalize_language(src[info_start:info_end]),
            start=content_start,
            end=content_end,
        ))
        self._emit(
            TokenKind.CODE_BLOCK,
            content_start,
            content_end,
            index=index,
            delimiter='`' * n,
        )
        self.pos = self.end if close == -1 else close + n

    def _find_closing_fence(self, start: int, n: int) -> int:
        """查找恰好 n 个反引号组成的结束围栏"""
        fence = '`' * n
        k = self.source.find(fence, start, self.end)
        while k != -1:
            run = self._run_length('`', k)
            if run == n:
                return k
            k = self.source.find(fence, k + run, self.end)
        return -1

    def _scan_heading(self) -> None:
        src = self.source
        level = self._run_length('#', self.pos)
        marker_end = self.pos + level

        if level > self.MAX_HEADING_LEVEL or marker_end >= self.end or src[marker_end] not in ' \t':
            # 不是标题：整段 # 作为普通文本
            self._extend_text(level)
            return

        line_end = src.find('\n', marker_end, self.end)
        if line_end == -1:
            line_end = self.end

        title_start, title_end = marker_end, line_end
        while title_start < title_end and src[title_start].isspace():
            title_start += 1
        while title_end > title_start and src[title_end - 1].isspace():
            title_end -= 1

        self._drop_leading_whitespace()
        inner = Tokenizer(src, title_start, title_end, inline_only=True).tokenize()
        self._emit(
            TokenKind.TITLE,
            title_start,
            title_end,
            level=level,
            children=tuple(inner.tokens),
        )
        self.pos = line_end


def tokenize(text: str) -> tuple[list[Token], list[CodeBlockEntry]]:
    """切分文本，返回 (Token 序列, 代码块列表)"""
    document = Tokenizer(text).tokenize()
    return document.tokens, document.code_blocks
