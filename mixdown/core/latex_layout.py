#!/usr/bin/env python3
"""
LaTeX 排版整理

不依赖外部进程的轻量缩进整理，用于块级公式和 ``tex`` 代码块：
- 去掉行尾空白，合并连续空行，去掉首尾空行
- 每层 ``\\begin{...}`` 环境和未闭合的 ``{`` 缩进两个空格
- 以 ``\\end{...}`` 或 ``}`` 开头的行先回退缩进
- verbatim 类环境原样保留
"""

from __future__ import annotations

import re

INDENT = "  "

# 不增加缩进的环境
NO_INDENT_ENVS = frozenset({"document"})

# 内容原样保留的环境
VERBATIM_ENVS = frozenset({"verbatim", "verbatim*", "lstlisting", "minted", "comment"})

_FLAT_ENVS = NO_INDENT_ENVS | VERBATIM_ENVS

_BEGIN_RE = re.compile(r"\\begin\{([^}]*)\}")
_END_RE = re.compile(r"\\end\{([^}]*)\}")
_ESCAPED_RE = re.compile(r"\\[\\{}%]")
_LEADING_CLOSER_RE = re.compile(r"\s*(\\end\{[^}]*\}|\})")


def _strip_comment(line: str) -> str:
    """去掉未转义 % 之后的注释"""
    escaped = False
    for i, ch in enumerate(line):
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == "%":
            return line[:i]
    return line


def _net_depth(code: str) -> int:
    """一行代码对缩进深度的净影响"""
    code = _ESCAPED_RE.sub("", code)
    opens = sum(1 for name in _BEGIN_RE.findall(code) if name not in _FLAT_ENVS)
    closes = sum(1 for name in _END_RE.findall(code) if name not in _FLAT_ENVS)
    code = _BEGIN_RE.sub("", code)
    code = _END_RE.sub("", code)
    return opens - closes + code.count("{") - code.count("}")


def _leading_closers(code: str) -> int:
    """行首连续的闭合标记个数"""
    count = 0
    pos = 0
    while True:
        match = _LEADING_CLOSER_RE.match(code, pos)
        if not match:
            return count
        token = match.group(1)
        if token.startswith("\\end"):
            name = token[len("\\end{"):-1]
            if name not in _FLAT_ENVS:
                count += 1
        else:
            count += 1
        pos = match.end()


def format_latex(text: str) -> str:
    """整理一段 LaTeX 文本的缩进和空行"""
    if not text or not text.strip():
        return ""

    output: list[str] = []
    depth = 0
    verbatim_env: str | None = None
    prev_blank = False

    for raw_line in text.splitlines():
        if verbatim_env is not None:
            output.append(raw_line.rstrip())
            if f"\\end{{{verbatim_env}}}" in raw_line:
                verbatim_env = None
            continue

        stripped = raw_line.strip()
        if not stripped:
            if output and not prev_blank:
                output.append("")
            prev_blank = True
            continue
        prev_blank = False

        code = _strip_comment(stripped)
        indent = max(0, depth - _leading_closers(code))
        output.append(INDENT * indent + stripped)
        depth = max(0, depth + _net_depth(code))

        begin = _BEGIN_RE.search(code)
        if begin and begin.group(1) in VERBATIM_ENVS and f"\\end{{{begin.group(1)}}}" not in code:
            verbatim_env = begin.group(1)

    while output and not output[-1]:
        output.pop()

    return "\n".join(output)
