#!/usr/bin/env python3
"""
代码语言常量

代码块语言标签的别名归一化表，以及默认的「语言 → 格式化工具」映射。
"""

# 常见别名 → 归一化标签
LANGUAGE_ALIASES = {
    'javascript': 'js',
    'typescript': 'ts',
    'python': 'py',
    'c++': 'cpp',
    'cxx': 'cpp',
    'golang': 'go',
    'yaml': 'yml',
    'latex': 'tex',
    'markdown': 'md',
    'shell': 'sh',
    'bash': 'sh',
    'zsh': 'sh',
    'sass': 'scss',
    'rs': 'rust',
}

# 不走外部进程的特殊语言
LATEX_LANGUAGE = 'tex'
MARKDOWN_LANGUAGE = 'md'

# 默认格式化工具（键为归一化后的标签）
DEFAULT_CODE_FORMATTERS = {
    'rust': 'rustfmt',
    'js': 'prettier',
    'ts': 'prettier',
    'css': 'prettier',
    'scss': 'prettier',
    'less': 'prettier',
    'html': 'prettier',
    'json': 'prettier',
    'yml': 'prettier',
    'graphql': 'prettier',
    'vue': 'prettier',
    'go': 'gofmt',
    'py': 'black',
    'c': 'clang-format',
    'cpp': 'clang-format',
    'java': 'clang-format',
    'sh': 'shfmt',
    'sql': 'sqlfmt',
    'lua': 'stylua',
}

# prettier 按语言选择内部 parser
PRETTIER_PARSERS = {
    'js': 'babel',
    'ts': 'typescript',
    'css': 'css',
    'scss': 'scss',
    'less': 'less',
    'html': 'html',
    'json': 'json',
    'yml': 'yaml',
    'graphql': 'graphql',
    'gql': 'graphql',
    'vue': 'vue',
    'angular': 'angular',
}

# clang-format 使用 Google 风格的语言，其余为 LLVM
CLANG_GOOGLE_STYLE_LANGUAGES = frozenset({'c', 'cpp', 'java', 'js'})


def normalize_language(tag: str) -> str:
    """归一化代码块语言标签（大小写不敏感）。

    带空白的 info string（例如 ``python title=x``）只处理第一个词。
    """
    stripped = (tag or "").strip()
    if not stripped:
        return ""
    parts = stripped.split(None, 1)
    key = parts[0].lower()
    normalized = LANGUAGE_ALIASES.get(key, key)
    if len(parts) > 1:
        return f"{normalized} {parts[1]}"
    return normalized
