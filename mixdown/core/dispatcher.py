#!/usr/bin/env python3
"""
外部格式化工具调度

按代码块语言选择格式化工具并以子进程方式执行：
内容写入 stdin 并关闭，读取 stdout 直到结束，根据退出码判断成功与否。
任何失败都只影响当前代码块：记录警告并原样返回内容。

两张可组合的表：
- ``config.code_formatters``：语言 → 工具名
- ``ToolRegistry``：工具名 → 可执行文件 + 参数构造函数（参数可随语言变化）

``tex`` 代码块走内置的 LaTeX 整理，``md`` 代码块递归走完整流水线。
"""

from __future__ import annotations

import logging
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence, Union

from ..config import FormatterConfig
from ..constants.languages import (
    CLANG_GOOGLE_STYLE_LANGUAGES,
    LATEX_LANGUAGE,
    MARKDOWN_LANGUAGE,
    PRETTIER_PARSERS,
    normalize_language,
)
from .latex_layout import format_latex
from .tokenizer import CodeBlockEntry

logger = logging.getLogger(__name__)

# 嵌套 md 代码块的最大递归深度
MAX_DEPTH = 8


class FormatterError(Exception):
    pass


class ToolNotFoundError(FormatterError):
    pass


class ToolExecutionError(FormatterError):
    pass


ArgumentBuilder = Callable[[str], Optional[Sequence[str]]]


@dataclass(frozen=True)
class FormatterProfile:
    """一次调用使用的可执行文件与固定参数"""
    executable: str
    args: tuple[str, ...] = ()

    @property
    def command(self) -> list[str]:
        return [self.executable, *self.args]


@dataclass(frozen=True)
class ToolSpec:
    executable: str
    build_args: ArgumentBuilder


def _fixed_args(args: Sequence[str]) -> ArgumentBuilder:
    frozen = tuple(args)
    return lambda language: frozen


def _prettier_args(language: str) -> Optional[tuple[str, ...]]:
    parser = PRETTIER_PARSERS.get(language)
    if parser is None:
        return None
    return ("--parser", parser)


def _clang_format_args(language: str) -> tuple[str, ...]:
    style = "Google" if language in CLANG_GOOGLE_STYLE_LANGUAGES else "LLVM"
    return (f"--style={style}",)


class ToolRegistry:
    """工具名 → (可执行文件, 参数构造函数)"""

    def __init__(self, tools: Optional[Mapping[str, ToolSpec]] = None):
        self._tools: dict[str, ToolSpec] = dict(tools or {})

    def register(
        self,
        name: str,
        executable: str,
        args: Union[ArgumentBuilder, Sequence[str]] = (),
    ) -> None:
        """注册工具；args 可以是固定参数列表，也可以是 ``language -> args`` 函数"""
        build_args = args if callable(args) else _fixed_args(args)
        self._tools[name] = ToolSpec(executable=executable, build_args=build_args)

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return sorted(self._tools)

    def resolve(self, tool_name: str, language: str) -> Optional[FormatterProfile]:
        """解析调用参数；工具未注册或不支持该语言时返回 None"""
        spec = self._tools.get(tool_name)
        if spec is None:
            return None
        args = spec.build_args(language)
        if args is None:
            return None
        return FormatterProfile(executable=spec.executable, args=tuple(args))


def default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register("prettier", "prettier", _prettier_args)
    registry.register("rustfmt", "rustfmt", ("--edition", "2021"))
    registry.register("gofmt", "gofmt")
    registry.register("black", "black", ("-q", "-"))
    registry.register("clang-format", "clang-format", _clang_format_args)
    registry.register("shfmt", "shfmt", ("-i", "2"))
    registry.register("sqlfmt", "sqlfmt", ("-",))
    registry.register("terraform", "terraform", ("fmt", "-"))
    registry.register("stylua", "stylua", ("-",))
    registry.register("dartfmt", "dart", ("format",))
    registry.register("php-cs-fixer", "php-cs-fixer", ("fix", "--using-cache=no", "-"))
    registry.register("isort", "isort", ("-",))
    registry.register("autopep8", "autopep8", ("-",))
    registry.register("yapf", "yapf")
    registry.register("scalafmt", "scalafmt", ("--stdin",))
    registry.register("ktfmt", "ktfmt", ("-",))
    return registry


def run_formatter(profile: FormatterProfile, content: str, timeout: Optional[float] = None) -> str:
    """以子进程运行格式化工具，返回其 stdout"""
    logger.debug("Running external formatter: %s", profile.command)
    try:
        result = subprocess.run(
            profile.command,
            input=content,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(f"未找到格式化工具 `{profile.executable}`") from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolExecutionError(f"`{profile.executable}` 超时（{timeout}s）") from exc
    except (OSError, UnicodeError) as exc:
        raise ToolExecutionError(f"无法运行格式化工具 `{profile.executable}`: {exc}") from exc

    if result.returncode != 0:
        detail = (result.stderr or result.stdout or "").strip()
        raise ToolExecutionError(
            f"`{profile.executable}` exited with code {result.returncode}: {detail}"
        )
    return result.stdout


class FormatterDispatcher:
    """代码块格式化调度器"""

    def __init__(
        self,
        config: FormatterConfig,
        registry: Optional[ToolRegistry] = None,
        *,
        depth: int = 0,
    ):
        self.config = config
        self.registry = registry if registry is not None else default_registry()
        self.depth = depth

    @staticmethod
    def _language_key(language: str) -> str:
        normalized = normalize_language(language)
        return normalized.split(None, 1)[0] if normalized else ""

    def resolve(self, language: str) -> Optional[FormatterProfile]:
        key = self._language_key(language)
        tool_name = self.config.code_formatters.get(key)
        if not tool_name:
            return None
        return self.registry.resolve(tool_name, key)

    def format_block(self, language: str, content: str) -> str:
        """格式化单个代码块；失败时返回原内容"""
        if not self.config.format_code_block:
            return content

        key = self._language_key(language)
        if key == LATEX_LANGUAGE:
            return self._format_embedded(key, content, format_latex)
        if key == MARKDOWN_LANGUAGE:
            return self._format_embedded(key, content, self._format_markdown)

        profile = self.resolve(key)
        if profile is None:
            return content

        try:
            return run_formatter(profile, content, timeout=self.config.formatter_timeout_s)
        except ToolNotFoundError as exc:
            logger.warning("%s，代码块保持原样 (language=%s)", exc, key)
        except FormatterError as exc:
            logger.warning("代码块格式化失败，保持原样 (language=%s): %s", key, exc)
        return content

    def _format_embedded(self, key: str, content: str, func: Callable[[str], str]) -> str:
        try:
            return func(content)
        except Exception:
            logger.exception("内置格式化失败，代码块保持原样 (language=%s)", key)
            return content

    def _format_markdown(self, content: str) -> str:
        if self.depth >= MAX_DEPTH:
            logger.warning("md 代码块嵌套超过 %d 层，保持原样", MAX_DEPTH)
            return content
        from ..pipeline import format_string

        return format_string(content, self.config, depth=self.depth + 1, registry=self.registry)

    def format_all(self, code_blocks: Sequence[CodeBlockEntry], source: str) -> list[str]:
        """并行格式化全部代码块，结果按原顺序放入对应槽位"""
        if not code_blocks:
            return []
        if not self.config.format_code_block:
            return [entry.content(source) for entry in code_blocks]

        results: list[str] = [""] * len(code_blocks)
        workers = min(len(code_blocks), self.config.max_workers or os.cpu_count() or 1)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mixdown-fmt") as pool:
            futures = [
                (index, pool.submit(self.format_block, entry.language, entry.content(source)))
                for index, entry in enumerate(code_blocks)
            ]
            for index, future in futures:
                results[index] = future.result()
        return results


def format_block(
    language: str,
    content: str,
    config: Optional[FormatterConfig] = None,
    registry: Optional[ToolRegistry] = None,
) -> str:
    """格式化单个代码块（便捷入口）"""
    return FormatterDispatcher(config or FormatterConfig(), registry).format_block(language, content)
