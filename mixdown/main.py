#!/usr/bin/env python3
"""
中英文混排 Markdown 格式化 - CLI 入口

使用方法:
    python main.py input.md
    python main.py input.md --output formatted.md
    cat input.md | python main.py - > formatted.md
    python main.py input.md --config mixdown.json -v
"""

from __future__ import annotations

import argparse
import io
import json
import logging
import os
import sys
from pathlib import Path

# Fix Windows console encoding for CJK characters
if sys.platform == 'win32':
    sys.stdin = io.TextIOWrapper(sys.stdin.buffer, encoding='utf-8', errors='replace')
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')
    os.environ.setdefault('PYTHONIOENCODING', 'utf-8')

if __package__:
    from .config import FormatterConfig
    from .pipeline import FormatResult, format_document
else:
    PROJECT_ROOT = Path(__file__).resolve().parent.parent
    if str(PROJECT_ROOT) not in sys.path:
        sys.path.insert(0, str(PROJECT_ROOT))
    from mixdown.config import FormatterConfig
    from mixdown.pipeline import FormatResult, format_document

from rich.console import Console
from rich.table import Table


def setup_logging(verbosity: int = 0) -> None:
    """配置日志"""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def print_result_summary(result: FormatResult, input_path: Path, output_path: Path) -> None:
    """打印结果摘要（stderr）"""
    console = Console(stderr=True)
    console.print("\n[bold green]✅ 格式化完成！[/bold green]\n")

    table = Table(title="格式化统计")
    table.add_column("项目", style="cyan")
    table.add_column("值", style="magenta")

    table.add_row("输入文件", str(input_path))
    table.add_row("输出文件", str(output_path))
    table.add_row("Token 数", str(result.token_count))
    table.add_row("代码块", str(result.code_block_count))
    table.add_row("解析耗时", f"{result.parse_seconds * 1000:.2f} ms")
    table.add_row("格式化耗时", f"{result.render_seconds * 1000:.2f} ms")
    table.add_row("内容变化", "是" if result.changed else "否")

    console.print(table)


def dump_tokens(result: FormatResult, path: Path) -> None:
    """把 Token 序列写入 JSON（调试用）"""
    payload = {
        "tokens": result.document.to_debug_dicts(),
        "code_blocks": [
            {"index": i, "language": entry.language, "content": entry.content(result.document.source)}
            for i, entry in enumerate(result.document.code_blocks)
        ],
    }
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mixdown',
        description='格式化中英文混排的 Markdown 文档（中英文/数字间距、公式、代码块）',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  mixdown article.md
  mixdown article.md --output article.formatted.md
  cat article.md | mixdown - > article.formatted.md
  mixdown article.md --no-format-code --no-space-zh-num

环境变量:
  MIXDOWN_CONFIG              JSON 配置文件路径
  MIXDOWN_SPACE_ZH_EN         中英文之间加空格 (默认: true)
  MIXDOWN_SPACE_ZH_NUM        中文与数字之间加空格 (默认: true)
  MIXDOWN_FORMAT_CODE         调用外部工具格式化代码块 (默认: true)
  MIXDOWN_SPACE_CODE_TEXT     行内代码与文字之间加空格 (默认: true)
  MIXDOWN_FORMAT_MATH         整理块级公式缩进 (默认: true)
  MIXDOWN_MAX_WORKERS         代码块并行格式化的线程数
  MIXDOWN_FORMATTER_TIMEOUT   单个外部格式化工具的超时秒数
"""
    )

    parser.add_argument(
        'input',
        type=Path,
        nargs='?',
        help='输入的 Markdown 文件路径，"-" 表示从标准输入读取'
    )

    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=None,
        help='输出文件路径 (默认: 原地覆盖输入文件)'
    )

    parser.add_argument(
        '--stdout',
        action='store_true',
        help='结果输出到标准输出，不写文件'
    )

    parser.add_argument(
        '--config', '-c',
        type=Path,
        default=None,
        help='JSON 配置文件 (也可通过 MIXDOWN_CONFIG 设置)'
    )

    parser.add_argument('--no-space-zh-en', action='store_true', help='中英文之间不加空格')
    parser.add_argument('--no-space-zh-num', action='store_true', help='中文与数字之间不加空格')
    parser.add_argument('--no-format-code', action='store_true', help='不调用外部工具格式化代码块')
    parser.add_argument('--no-space-code-text', action='store_true', help='行内代码前不加空格')
    parser.add_argument('--no-format-math', action='store_true', help='不整理块级公式')

    parser.add_argument(
        '--jobs', '-j',
        type=int,
        default=None,
        help='代码块并行格式化的线程数 (默认: CPU 核数)'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='单个外部格式化工具的超时秒数 (默认: 不限)'
    )

    parser.add_argument(
        '--dump-tokens',
        type=Path,
        default=None,
        help='把 Token 序列写入指定 JSON 文件 (调试用)'
    )

    parser.add_argument(
        '--print-config',
        action='store_true',
        help='打印最终生效的配置并退出'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='count',
        default=0,
        help='输出详细日志 (-vv 输出调试日志)'
    )

    return parser


def _toggle(disabled: bool) -> bool | None:
    return False if disabled else None


def main(argv: list[str] | None = None) -> int:
    """主函数"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = FormatterConfig.resolve(
            config_path=args.config,
            space_between_zh_and_en=_toggle(args.no_space_zh_en),
            space_between_zh_and_num=_toggle(args.no_space_zh_num),
            format_code_block=_toggle(args.no_format_code),
            space_between_code_and_text=_toggle(args.no_space_code_text),
            format_math=_toggle(args.no_format_math),
            max_workers=args.jobs,
            formatter_timeout_s=args.timeout,
        )
    except FileNotFoundError as e:
        print(f"❌ 错误: 配置文件不存在: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"❌ 配置错误: {e}", file=sys.stderr)
        return 1

    if args.print_config:
        print(json.dumps(config.to_dict(), ensure_ascii=False, indent=2))
        return 0

    if args.input is None:
        parser.print_usage(sys.stderr)
        print("❌ 错误: 缺少输入文件", file=sys.stderr)
        return 1

    from_stdin = str(args.input) == '-'

    if not from_stdin:
        if not args.input.exists():
            print(f"❌ 错误: 输入文件不存在: {args.input}", file=sys.stderr)
            return 1
        if args.input.suffix.lower() not in ['.md', '.markdown']:
            print(f"⚠️ 警告: 输入文件可能不是 Markdown 格式: {args.input}", file=sys.stderr)

    to_stdout = args.stdout or (from_stdin and args.output is None)

    try:
        text = sys.stdin.read() if from_stdin else args.input.read_text(encoding='utf-8')
        result = format_document(text, config)

        if args.dump_tokens:
            dump_tokens(result, args.dump_tokens)

        if to_stdout:
            sys.stdout.write(result.output)
            sys.stdout.flush()
            return 0

        output_path = args.output or args.input
        output_path.write_text(result.output, encoding='utf-8')
        print_result_summary(result, args.input, output_path)
        return 0

    except KeyboardInterrupt:
        print("\n\n⚠️ 用户取消操作", file=sys.stderr)
        return 130

    except Exception as e:
        logging.exception("格式化失败")
        print(f"\n❌ 格式化失败: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
