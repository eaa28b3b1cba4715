"""
REST 路由
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, UploadFile, File, HTTPException

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from mixdown.config import FormatterConfig
from mixdown.core.dispatcher import default_registry
from mixdown.pipeline import FormatResult, format_document

from .schemas import (
    FormatOptions,
    FormatRequest,
    FormatResponse,
    FormatterToolStatus,
    UploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Server-side config, resolved once from env / MIXDOWN_CONFIG
_base_config: Optional[FormatterConfig] = None


def get_base_config() -> FormatterConfig:
    global _base_config
    if _base_config is None:
        _base_config = FormatterConfig.resolve()
    return _base_config


def _config_for(options: Optional[FormatOptions]) -> FormatterConfig:
    """请求选项覆盖服务端配置"""
    base = get_base_config()
    if options is None:
        return base
    overrides = {k: v for k, v in options.model_dump().items() if v is not None}
    if not overrides:
        return base
    try:
        return FormatterConfig.from_dict(overrides, base=base)
    except ValueError as e:
        raise HTTPException(400, f"无效的格式化选项: {e}") from e


async def _run_format(text: str, config: FormatterConfig) -> FormatResult:
    try:
        return await asyncio.to_thread(format_document, text, config)
    except Exception as e:
        logger.exception("Format failed")
        raise HTTPException(500, f"格式化失败: {e}") from e


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

@router.post("/format", response_model=FormatResponse)
async def format_markdown(req: FormatRequest):
    """格式化 Markdown 文本"""
    config = _config_for(req.options)
    result = await _run_format(req.markdown, config)
    return FormatResponse(
        output=result.output,
        changed=result.changed,
        token_count=result.token_count,
        code_block_count=result.code_block_count,
        parse_ms=round(result.parse_seconds * 1000, 3),
        render_ms=round(result.render_seconds * 1000, 3),
    )


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

@router.post("/upload", response_model=UploadResponse)
async def upload_markdown(file: UploadFile = File(...)):
    """上传 .md 文件，返回格式化后的内容"""
    if not file.filename or not file.filename.lower().endswith(('.md', '.markdown', '.txt')):
        raise HTTPException(400, "仅支持 .md / .markdown / .txt 文件")
    content = await file.read()
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        text = content.decode("gbk", errors="replace")

    result = await _run_format(text, get_base_config())
    return UploadResponse(filename=file.filename, content=result.output, changed=result.changed)


# ---------------------------------------------------------------------------
# Config / formatter tools
# ---------------------------------------------------------------------------

@router.get("/config")
async def get_config():
    """当前服务端配置"""
    return get_base_config().to_dict()


@router.get("/formatters", response_model=list[FormatterToolStatus])
async def list_formatters():
    """已注册的外部格式化工具及其是否在 PATH 中"""
    registry = default_registry()
    languages_by_tool: dict[str, list[str]] = {}
    for language, tool in get_base_config().code_formatters.items():
        languages_by_tool.setdefault(tool, []).append(language)

    statuses = []
    for name in registry.names():
        spec = registry.get(name)
        statuses.append(FormatterToolStatus(
            tool=name,
            executable=spec.executable,
            available=shutil.which(spec.executable) is not None,
            languages=sorted(languages_by_tool.get(name, [])),
        ))
    return statuses
