from __future__ import annotations

from mixdown.constants.languages import normalize_language
from mixdown.core.tokenizer import Tokenizer, TokenKind, tokenize


def kinds(tokens):
    return [token.kind for token in tokens]


def test_heading_at_document_start():
    tokens, code_blocks = tokenize("# Title")
    assert kinds(tokens) == [TokenKind.TITLE]
    title = tokens[0]
    assert title.level == 1
    assert title.text("# Title") == "Title"
    assert kinds(title.children) == [TokenKind.ENGLISH]
    assert code_blocks == []


def test_hash_inside_word_is_text():
    tokens, _ = tokenize("a#b")
    assert TokenKind.TITLE not in kinds(tokens)
    assert kinds(tokens) == [TokenKind.ENGLISH, TokenKind.TEXT, TokenKind.ENGLISH]


def test_heading_requires_whitespace_and_max_level():
    for source in ("#tag", "####### seven", "#"):
        tokens, _ = tokenize(source)
        assert TokenKind.TITLE not in kinds(tokens), source

    tokens, _ = tokenize("###### six")
    assert tokens[0].kind == TokenKind.TITLE
    assert tokens[0].level == 6


def test_indented_heading_drops_leading_whitespace():
    source = "text\n   ## Sub 标题  \nmore"
    tokens, _ = tokenize(source)
    assert kinds(tokens) == [
        TokenKind.ENGLISH,
        TokenKind.NEWLINE,
        TokenKind.TITLE,
        TokenKind.NEWLINE,
        TokenKind.ENGLISH,
    ]
    title = tokens[2]
    assert title.level == 2
    assert title.text(source) == "Sub 标题"


def test_title_children_are_inline_only():
    source = "# a $$b$$ ```c``` $d$"
    tokens, code_blocks = tokenize(source)
    assert len(tokens) == 1
    child_kinds = kinds(tokens[0].children)
    assert TokenKind.BLOCK_MATH not in child_kinds
    assert TokenKind.CODE_BLOCK not in child_kinds
    assert TokenKind.INLINE_MATH in child_kinds
    assert code_blocks == []


def test_character_class_runs():
    source = "中文English 2024.10版本"
    tokens, _ = tokenize(source)
    assert [(t.kind, t.text(source)) for t in tokens] == [
        (TokenKind.CHINESE, "中文"),
        (TokenKind.ENGLISH, "English"),
        (TokenKind.TEXT, " "),
        (TokenKind.NUMBER, "2024.10"),
        (TokenKind.CHINESE, "版本"),
    ]


def test_other_scripts_and_punctuation_are_text():
    source = "café，ok"
    tokens, _ = tokenize(source)
    assert [(t.kind, t.text(source)) for t in tokens] == [
        (TokenKind.ENGLISH, "caf"),
        (TokenKind.TEXT, "é，"),
        (TokenKind.ENGLISH, "ok"),
    ]


def test_inline_math_and_code():
    source = "x $a+b$ and ``a`b`` end"
    tokens, _ = tokenize(source)
    math = [t for t in tokens if t.kind == TokenKind.INLINE_MATH]
    code = [t for t in tokens if t.kind == TokenKind.INLINE_CODE]
    assert [t.text(source) for t in math] == ["a+b"]
    assert [(t.text(source), t.delimiter) for t in code] == [("a`b", "``")]


def test_block_math():
    source = "前文$$\n\\frac{a}{b}\n$$后文"
    tokens, _ = tokenize(source)
    assert kinds(tokens) == [TokenKind.CHINESE, TokenKind.BLOCK_MATH, TokenKind.CHINESE]
    assert tokens[1].text(source) == "\n\\frac{a}{b}\n"


def test_backslash_does_not_shield_dollar():
    source = "\\$x$"
    tokens, _ = tokenize(source)
    assert [(t.kind, t.text(source)) for t in tokens] == [
        (TokenKind.TEXT, "\\"),
        (TokenKind.INLINE_MATH, "x"),
    ]
    assert tokens[1].closed


def test_lone_trailing_delimiters_are_text():
    source = "售价 5$"
    tokens, _ = tokenize(source)
    assert [(t.kind, t.text(source)) for t in tokens] == [
        (TokenKind.CHINESE, "售价"),
        (TokenKind.TEXT, " "),
        (TokenKind.NUMBER, "5"),
        (TokenKind.TEXT, "$"),
    ]

    source = "see `"
    tokens, _ = tokenize(source)
    assert kinds(tokens) == [TokenKind.ENGLISH, TokenKind.TEXT]
    assert tokens[-1].text(source) == " `"


def test_crlf_line_endings():
    source = "a\r\nb\r\n```rust\r\nfn main() {}\r\n```"
    tokens, code_blocks = tokenize(source)
    assert kinds(tokens) == [
        TokenKind.ENGLISH,
        TokenKind.NEWLINE,
        TokenKind.ENGLISH,
        TokenKind.NEWLINE,
        TokenKind.CODE_BLOCK,
    ]
    assert tokens[1].text(source) == "\r\n"
    assert code_blocks[0].language == "rust"
    assert code_blocks[0].content(source) == "fn main() {}\r\n"


def test_placeholders_match_code_block_entries():
    source = (
        "intro\n"
        "```python\nprint(1)\n```\n"
        "middle\n"
        "```JavaScript\nlet a = 1\n```\n"
        "```\nplain\n```\n"
    )
    tokens, code_blocks = tokenize(source)
    placeholders = [t for t in tokens if t.kind == TokenKind.CODE_BLOCK]

    assert len(placeholders) == len(code_blocks) == 3
    assert [t.index for t in placeholders] == [0, 1, 2]
    assert [entry.language for entry in code_blocks] == ["py", "js", ""]
    assert [entry.content(source) for entry in code_blocks] == ["print(1)\n", "let a = 1\n", "plain\n"]
    for token, entry in zip(placeholders, code_blocks):
        assert (token.start, token.end) == (entry.start, entry.end)


def test_fence_closes_on_exact_length():
    source = "````md\n```js\nx\n```\n````\nafter"
    tokens, code_blocks = tokenize(source)
    assert len(code_blocks) == 1
    assert code_blocks[0].language == "md"
    assert code_blocks[0].content(source) == "```js\nx\n```\n"
    assert tokens[0].delimiter == "````"
    assert tokens[-1].text(source) == "after"


def test_indented_closing_fence():
    source = "- item\n  ```sh\n  ls -la\n  ```\n"
    _, code_blocks = tokenize(source)
    assert len(code_blocks) == 1
    assert code_blocks[0].language == "sh"
    assert code_blocks[0].content(source) == "  ls -la\n"


def test_quote_suppresses_fence():
    source = "> ```rust\n> let x = 1;\nafter"
    tokens, code_blocks = tokenize(source)
    assert code_blocks == []
    assert TokenKind.CODE_BLOCK not in kinds(tokens)
    assert tokens[0].kind == TokenKind.TEXT
    assert tokens[0].text(source) == "> ```"


def test_quote_suppresses_block_math_but_not_inline():
    source = "> $$x$$ and $y$"
    tokens, _ = tokenize(source)
    assert TokenKind.BLOCK_MATH not in kinds(tokens)
    assert [t.text(source) for t in tokens if t.kind == TokenKind.INLINE_MATH] == ["y"]


def test_quote_state_resets_at_newline():
    source = "> quoted\n```py\nx\n```"
    _, code_blocks = tokenize(source)
    assert len(code_blocks) == 1


def test_unterminated_constructs_consume_rest():
    source = "text $a + b"
    tokens, _ = tokenize(source)
    assert tokens[-1].kind == TokenKind.INLINE_MATH
    assert tokens[-1].text(source) == "a + b"
    assert not tokens[-1].closed

    source = "see `code"
    tokens, _ = tokenize(source)
    assert tokens[-1].kind == TokenKind.INLINE_CODE
    assert tokens[-1].text(source) == "code"
    assert not tokens[-1].closed

    source = "$$\nx = 1"
    tokens, _ = tokenize(source)
    assert tokens[-1].kind == TokenKind.BLOCK_MATH
    assert tokens[-1].text(source) == "\nx = 1"

    source = "```py\nprint(1)\n# no close"
    tokens, code_blocks = tokenize(source)
    assert kinds(tokens) == [TokenKind.CODE_BLOCK]
    assert code_blocks[0].content(source) == "print(1)\n# no close"


def test_sub_range_offsets_are_absolute():
    source = "xx中文yy"
    document = Tokenizer(source, 2, 4).tokenize()
    assert [(t.start, t.end) for t in document.tokens] == [(2, 4)]


def test_debug_dicts():
    source = "# 标题\n```py\nx\n```"
    document = Tokenizer(source).tokenize()
    dumped = document.to_debug_dicts()
    assert dumped[0] == {"kind": "title", "level": 1, "children": [{"kind": "chinese", "text": "标题"}]}
    assert dumped[1] == {"kind": "newline"}
    assert dumped[2]["kind"] == "code_block"
    assert dumped[2]["language"] == "py"
    assert document.placeholder_count == 1


def test_normalize_language():
    assert normalize_language("Python") == "py"
    assert normalize_language("c++") == "cpp"
    assert normalize_language("  golang ") == "go"
    assert normalize_language("bash") == "sh"
    assert normalize_language("rust title=main.rs") == "rust title=main.rs"
    assert normalize_language("kotlin") == "kotlin"
    assert normalize_language("") == ""
