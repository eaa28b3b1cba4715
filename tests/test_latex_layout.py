from __future__ import annotations

from mixdown.core.latex_layout import format_latex


def test_nested_environments_are_indented():
    source = "\\begin{equation}\n\\begin{cases}\nx & y\\\\\nz\n\\end{cases}\n\\end{equation}"
    assert format_latex(source) == (
        "\\begin{equation}\n"
        "  \\begin{cases}\n"
        "    x & y\\\\\n"
        "    z\n"
        "  \\end{cases}\n"
        "\\end{equation}"
    )


def test_existing_indentation_is_replaced():
    source = "      \\begin{align}\n a &= 1 \\\\\n            b &= 2\n  \\end{align}   "
    assert format_latex(source) == "\\begin{align}\n  a &= 1 \\\\\n  b &= 2\n\\end{align}"


def test_open_braces_indent_following_lines():
    source = "\\frac{a}{\nb + c\n}"
    assert format_latex(source) == "\\frac{a}{\n  b + c\n}"


def test_escaped_braces_and_comments_do_not_count():
    assert format_latex("\\{ a\nb") == "\\{ a\nb"
    assert format_latex("x % {\ny") == "x % {\ny"


def test_document_environment_is_not_indented():
    source = "\\begin{document}\nHello\n\\end{document}"
    assert format_latex(source) == source


def test_verbatim_content_is_preserved():
    source = "\\begin{verbatim}\n   raw  {\n\\end{verbatim}\nafter"
    assert format_latex(source) == source


def test_blank_lines_are_collapsed_and_trimmed():
    assert format_latex("\n\na\n\n\n\nb\n\n") == "a\n\nb"
    assert format_latex("   \n  ") == ""
    assert format_latex("") == ""


def test_unbalanced_closers_never_go_negative():
    assert format_latex("}\n\\end{foo}\nx") == "}\n\\end{foo}\nx"
