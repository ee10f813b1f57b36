"""
PascalLint command line interface.

Lints Delphi / Object Pascal files and directories, optionally writing fixes
back to disk.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .engine.config import find_workspace_root, init_config, load_config_file
from .engine.dispatch import clear_rule_timing, disable_rule_timing, enable_rule_timing, get_rule_timing
from .engine.errors import GrammarLoadError
from .engine.formatters import FORMATS, format_results
from .engine.linter import LinterService
from .engine.settings import settings
from .engine.types import Issue

logger = logging.getLogger(__name__)

SKIP_DIRS = {"node_modules", "out", "__history", "__recovery", ".git"}

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_GRAMMAR = 2


def discover_files(paths: Iterable[str], extensions: Optional[Iterable[str]] = None) -> List[str]:
    """Collect Pascal source files under ``paths`` (files or directories), sorted."""
    exts = tuple(extensions if extensions is not None else settings.extensions)
    found = set()

    for raw_path in paths:
        path = Path(raw_path)
        if path.is_file():
            if path.suffix.lower() in exts:
                found.add(str(path.resolve()))
            continue
        if not path.is_dir():
            logger.warning("Path not found: %s", raw_path)
            continue
        for root, dirs, files in os.walk(path):
            dirs[:] = [d for d in dirs if d not in SKIP_DIRS]
            for name in files:
                if os.path.splitext(name)[1].lower() in exts:
                    found.add(str((Path(root) / name).resolve()))

    return sorted(found)


def read_source(path: str) -> Tuple[str, str]:
    """Read a source file; returns ``(text, encoding)`` so fixes can be written back."""
    with open(path, "rb") as f:
        data = f.read()
    if data.startswith(b"\xef\xbb\xbf"):
        return data.decode("utf-8-sig"), "utf-8-sig"
    try:
        return data.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        # Pre-Unicode Delphi sources; latin-1 round-trips every byte
        return data.decode("latin-1"), "latin-1"


def write_source(path: str, text: str, encoding: str) -> None:
    with open(path, "w", encoding=encoding, newline="") as f:
        f.write(text)


def count_errors(results: Dict[str, List[Issue]]) -> int:
    return sum(1 for issues in results.values() for issue in issues if issue.severity == "error")


def format_timing(timing: Dict[str, Dict[str, float]]) -> str:
    lines = [f"{'Rule':<32} {'Time (ms)':>10} {'Calls':>8} {'Issues':>7}"]
    for rule_id, data in sorted(timing.items(), key=lambda item: item[1]["total_ms"], reverse=True):
        lines.append(
            f"{rule_id:<32} {data['total_ms']:>10.2f} {int(data['call_count']):>8} {int(data['issues_count']):>7}"
        )
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pascallint",
        description="Lint Delphi / Object Pascal source files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pascallint src/
  pascallint Unit1.pas Unit2.pas --format unix
  pascallint src/ --fix
  pascallint --init
        """
    )

    parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Files or directories to lint (default: current directory)"
    )

    parser.add_argument(
        "--fix",
        action="store_true",
        help="Apply fixes and write the files back"
    )

    parser.add_argument(
        "--format", "-f",
        choices=FORMATS,
        default="stylish",
        help="Output format (default: stylish)"
    )

    parser.add_argument(
        "--config", "-c",
        help="Use this config file instead of looking one up per workspace"
    )

    parser.add_argument(
        "--init",
        action="store_true",
        help="Write a .pascallint.json with the default rules and exit"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Report errors only"
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--timing",
        action="store_true",
        help="Print per-rule timing to stderr"
    )

    return parser


def create_linter(args: argparse.Namespace) -> LinterService:
    if args.config:
        config_path = Path(args.config).resolve()
        return LinterService(config_loader=lambda _workspace: load_config_file(config_path))
    return LinterService()


async def lint_paths(args: argparse.Namespace, linter: LinterService) -> int:
    """Lint (and optionally fix) every file named by ``args``; returns the exit status."""
    try:
        await linter.initialize()
    except GrammarLoadError as e:
        print(f"pascallint: {e}", file=sys.stderr)
        return EXIT_GRAMMAR

    files = discover_files(args.paths)
    logger.debug("Found %d files to lint", len(files))

    if args.timing:
        clear_rule_timing()
        enable_rule_timing()

    results: Dict[str, List[Issue]] = {}
    try:
        for file_path in files:
            workspace = find_workspace_root(file_path)
            config = await linter.configs.resolve(workspace)
            if config.is_ignored(file_path, workspace):
                logger.debug("Ignoring %s", file_path)
                continue

            text, encoding = read_source(file_path)
            if args.fix:
                outcome = await linter.fix(text, file_path, workspace)
                if outcome.text != text:
                    write_source(file_path, outcome.text, encoding)
                    logger.info("Fixed %d issues in %s", outcome.applied, file_path)
                issues = outcome.issues
            else:
                issues = await linter.lint(text, file_path, workspace)

            if args.quiet:
                issues = [issue for issue in issues if issue.severity == "error"]
            results[file_path] = issues
    finally:
        disable_rule_timing()
        await linter.shutdown()

    output = format_results(results, args.format, use_color=not args.no_color and sys.stdout.isatty())
    if output:
        print(output)

    if args.timing:
        print(format_timing(get_rule_timing()), file=sys.stderr)

    return EXIT_ERRORS if count_errors(results) else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.init:
        target = args.paths[0] if args.paths and Path(args.paths[0]).is_dir() else "."
        path = init_config(target)
        print(f"Created {path}")
        return EXIT_OK

    return asyncio.run(lint_paths(args, create_linter(args)))


if __name__ == "__main__":
    sys.exit(main())
