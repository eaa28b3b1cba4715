from __future__ import annotations

import logging
import sys

from mixdown import FormatterConfig, format_document, format_string
from mixdown.core.dispatcher import ToolRegistry


SAMPLE = (
    "# 标题Title\n"
    "\n"
    "中文English混排，数字123和$x$公式。\n"
    "\n"
    "\n"
    "\n"
    "```python\n"
    "print(1)\n"
    "```\n"
)

EXPECTED = (
    "# 标题 Title\n"
    "\n"
    "中文 English 混排，数字 123 和 $x$ 公式。\n"
    "\n"
    "```py\n"
    "print(1)\n"
    "```\n"
)


def test_format_document_result():
    result = format_document(SAMPLE, FormatterConfig(format_code_block=False))
    assert result.output == EXPECTED
    assert result.changed is True
    assert result.code_block_count == 1
    assert result.token_count == len(result.document.tokens)
    assert result.parse_seconds >= 0
    assert result.render_seconds >= 0


def test_formatting_is_idempotent():
    config = FormatterConfig(format_code_block=False)
    once = format_string(SAMPLE, config)
    assert format_string(once, config) == once
    assert format_document(once, config).changed is False


def test_missing_formatter_still_produces_document():
    registry = ToolRegistry()
    registry.register("ghost", "mixdown-no-such-formatter-binary")
    config = FormatterConfig(code_formatters={"py": "ghost"})
    assert format_string(SAMPLE, config, registry=registry) == EXPECTED


def test_external_formatter_in_pipeline():
    registry = ToolRegistry()
    registry.register("upper", sys.executable, ("-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"))
    config = FormatterConfig(code_formatters={"py": "upper"})
    output = format_string(SAMPLE, config, registry=registry)
    assert "```py\nPRINT(1)\n```\n" in output
    assert output.startswith("# 标题 Title\n\n")


def test_nested_markdown_block():
    source = "说明\n```markdown\n中文English\n$$a$$\n```"
    config = FormatterConfig(code_formatters={})
    assert format_string(source, config) == "说明\n\n```md\n中文 English\n\n$$\na\n$$\n```\n"


def test_empty_document():
    result = format_document("")
    assert result.output == ""
    assert result.token_count == 0
    assert result.changed is False


def test_debug_logging_traces_tokens(caplog):
    with caplog.at_level(logging.DEBUG, logger="mixdown.pipeline"):
        format_document("中文", FormatterConfig(format_code_block=False))
    assert "Tokens (depth=0)" in caplog.text
    assert "Parsing time" in caplog.text
