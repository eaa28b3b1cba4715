"""
Pydantic 请求/响应模型
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Optional


class FormatOptions(BaseModel):
    """格式化选项（留空则用服务端配置）"""
    space_between_zh_and_en: Optional[bool] = Field(default=None, description="中英文之间加空格")
    space_between_zh_and_num: Optional[bool] = Field(default=None, description="中文与数字之间加空格")
    format_code_block: Optional[bool] = Field(default=None, description="调用外部工具格式化代码块")
    space_between_code_and_text: Optional[bool] = Field(default=None, description="行内代码与文字之间加空格")
    format_math: Optional[bool] = Field(default=None, description="整理块级公式")
    code_formatters: Optional[dict[str, Optional[str]]] = Field(
        default=None,
        description="语言 → 格式化工具，合并到默认映射，null 表示移除",
    )
    formatter_timeout_s: Optional[float] = Field(default=None, gt=0, description="外部工具超时秒数")


class FormatRequest(BaseModel):
    """格式化请求"""
    markdown: str = Field(..., description="Markdown 文本内容")
    options: Optional[FormatOptions] = Field(default=None, description="格式化选项")


class FormatResponse(BaseModel):
    """格式化响应"""
    output: str
    changed: bool
    token_count: int = 0
    code_block_count: int = 0
    parse_ms: float = 0.0
    render_ms: float = 0.0


class UploadResponse(BaseModel):
    """上传并格式化的响应"""
    filename: str
    content: str
    changed: bool


class FormatterToolStatus(BaseModel):
    """外部格式化工具可用性"""
    tool: str
    executable: str
    available: bool
    languages: list[str] = Field(default_factory=list)
