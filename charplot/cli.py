"""Command-line interface: render diagram markup as text or SVG."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable

from . import __version__
from .charset import CharacterSet
from .engines import get_engine
from .errors import CharplotError
from .models import Direction
from .parser import parse

logger = logging.getLogger(__name__)


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def setup_logging(verbose: int = 0) -> None:
    """Configure stderr logging for the command line tool.

    Args:
        verbose: 0 for warnings only, 1 for info, 2 or more for debug
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG

    formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="charplot",
        description="Render flowchart, state, class and git graph markup as text.",
    )
    parser.add_argument("input", nargs="?", default="-", help="Markup file (default: stdin)")
    parser.add_argument(
        "-s", "--style",
        choices=[s.value for s in CharacterSet],
        default=CharacterSet.UNICODE.value,
        help="Character set for text output",
    )
    parser.add_argument(
        "-d", "--direction",
        type=str.upper,
        choices=["TD", "TB", "BT", "LR", "RL"],
        help="Override the diagram direction",
    )
    parser.add_argument("--svg", action="store_true", help="Write SVG instead of text")
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def run(args: argparse.Namespace) -> int:
    text = _read_input(args.input)
    graph = parse(text)
    engine = get_engine(graph.kind)
    direction = Direction.parse(args.direction) if args.direction else None
    result = engine.layout(graph, direction)

    if args.svg:
        from .svg import render_svg

        output = render_svg(result)
    else:
        output = engine.render(result, args.style)

    for notice in result.excluded:
        logger.info("%s", notice)

    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        sys.stdout.write(output + "\n")
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    try:
        args = parser.parse_args(raw_argv)
    except UsageError as e:
        sys.stderr.write(f"charplot: error: {e}\n")
        return 2

    setup_logging(args.verbose)

    try:
        return run(args)
    except OSError as e:
        sys.stderr.write(f"charplot: error: {e}\n")
        return 1
    except CharplotError as e:
        sys.stderr.write(f"charplot: error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
