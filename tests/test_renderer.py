from __future__ import annotations

import pytest

from mixdown.config import FormatterConfig
from mixdown.core.renderer import RenderEngine, render
from mixdown.core.tokenizer import Tokenizer, TokenKind


def fmt(text: str, **options) -> str:
    """渲染（不调用外部工具）"""
    config = FormatterConfig(format_code_block=False, **options)
    document = Tokenizer(text).tokenize()
    return RenderEngine(config).render(document)


def test_space_between_chinese_and_english():
    assert fmt("Hello你好") == "Hello 你好"
    assert fmt("你好Hello") == "你好 Hello"
    assert fmt("Hello你好", space_between_zh_and_en=False) == "Hello你好"


def test_space_between_chinese_and_number():
    assert fmt("你好123") == "你好 123"
    assert fmt("123你好") == "123 你好"
    assert fmt("版本1.2.3发布") == "版本 1.2.3 发布"
    assert fmt("你好123", space_between_zh_and_num=False) == "你好123"


def test_math_spacing_is_unconditional():
    options = {"space_between_zh_and_en": False, "space_between_zh_and_num": False}
    assert fmt("你好$x$", **options) == "你好 $x$"
    assert fmt("$x$你好", **options) == "$x$ 你好"
    assert fmt("a$x$1", **options) == "a $x$ 1"


def test_inline_code_spacing():
    assert fmt("使用`pip`安装") == "使用 `pip` 安装"
    assert fmt("使用`pip`安装", space_between_code_and_text=False) == "使用`pip` 安装"
    assert fmt("run`x`") == "run `x`"


def test_existing_spacing_and_punctuation_untouched():
    assert fmt("中文 English，数字 42。") == "中文 English，数字 42。"
    assert fmt("（Python）") == "（Python）"
    assert fmt("abc123") == "abc123"


def test_blank_lines_collapse():
    assert fmt("a\n\n\n\nb") == "a\n\nb"
    assert fmt("a\nb") == "a\nb"
    assert fmt("\n\n\nstart") == "start"
    assert fmt("end\n\n\n") == "end\n"


def test_title_surrounded_by_blank_lines():
    assert fmt("文字\n# 标题\n正文") == "文字\n\n# 标题\n\n正文"
    assert fmt("# 标题Title\n\n\n正文") == "# 标题 Title\n\n正文"
    assert fmt("intro\n\n\n## Part2章节\n") == "intro\n\n## Part2 章节\n"


def test_block_math_layout():
    assert fmt("公式$$ a+b $$结束") == "公式\n\n$$\na+b\n$$\n\n结束"
    assert fmt("$$\n\\begin{aligned}\na &= b\n\\end{aligned}\n$$") == (
        "$$\n\\begin{aligned}\n  a &= b\n\\end{aligned}\n$$\n"
    )
    assert fmt("$$\n  a\n$$", format_math=False) == "$$\na\n$$\n"


def test_code_block_layout():
    source = "前文\n```Python\nx=1\n```\n后文"
    assert fmt(source) == "前文\n\n```py\nx=1\n```\n\n后文"

    source = "```py\nx=1\n```\n后文"
    assert fmt(source) == "```py\nx=1\n```\n\n后文"


def test_code_block_body_gets_trailing_newline():
    document = Tokenizer("```sh\nls\n```").tokenize()
    output = RenderEngine(FormatterConfig()).render(document, ["ls -la"])
    assert output == "```sh\nls -la\n```\n"


def test_fence_grows_with_content():
    source = "````md\n```js\nx\n```\n````"
    assert fmt(source) == source + "\n"

    document = Tokenizer("```text\nplain\n```").tokenize()
    output = render(document, ["has ``` inside\n"], FormatterConfig())
    assert output == "````text\nhas ``` inside\n````\n"


def test_quoted_fence_stays_literal():
    source = "> ```rust\n> let x = 1;\n> ```"
    assert fmt(source) == source


def test_unterminated_inline_constructs_stay_open():
    assert fmt("see `code") == "see `code"
    assert fmt("值$x") == "值 $x"
    assert fmt("\\$x$") == "\\$x$"


@pytest.mark.parametrize("source", ["售价 5$", "see `", "see ``", "值$x", "中文\\$x$", "a`b"])
def test_reformatting_is_stable(source):
    once = fmt(source)
    assert fmt(once) == once


def test_lone_trailing_delimiter_is_kept_literally():
    assert fmt("售价 5$") == "售价 5$"
    assert fmt("see `") == "see `"


def test_crlf_and_whitespace_only_lines_collapse():
    assert fmt("a\r\n\r\n\r\n\r\nb") == "a\n\nb"
    assert fmt("a\r\nb") == "a\nb"
    assert fmt("a\n  \n\n\nb") == "a\n\nb"
    assert fmt("a\n \t\nb") == "a\n\nb"


def test_trailing_spaces_on_text_lines_are_kept():
    assert fmt("line  \nnext") == "line  \nnext"


def test_formatted_block_count_mismatch():
    document = Tokenizer("```py\nx\n```").tokenize()
    with pytest.raises(ValueError):
        RenderEngine(FormatterConfig()).render(document, [])


def test_needs_space_table():
    engine = RenderEngine(FormatterConfig())
    assert engine.needs_space(TokenKind.CHINESE, TokenKind.INLINE_CODE)
    assert engine.needs_space(TokenKind.NUMBER, TokenKind.INLINE_MATH)
    assert not engine.needs_space(TokenKind.CHINESE, TokenKind.TEXT)
    assert not engine.needs_space(TokenKind.ENGLISH, TokenKind.NUMBER)
    assert not engine.needs_space(TokenKind.INLINE_CODE, TokenKind.INLINE_MATH)
    assert not engine.needs_space(TokenKind.CHINESE, None)
