# llmk/cli.py
"""
Command-line front end: ``llmk [OPTION...] [FILE...]``.

With FILE, the configuration embedded in the first FILE is used and the
sequence runs against it. Without FILE, llmk.toml in the current
directory is read and its ``source`` key names the file to build.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path

from . import __version__
from .command_executor import CommandExecutor
from .exceptions import EXIT_ERROR, EXIT_OK, LlmkError, MissingSourceError
from .load_config import LLMK_TOML, fetch_config_from_file, fetch_config_from_source
from .logging_config import DEBUG_CATEGORIES, PROG_NAME, debug_logger, setup_logging
from .run_result import RunResult
from .sequence_runner import SequenceRunner

logger = logging.getLogger(__name__)

AUTHOR = "Takuto ASAKURA (wtsnjp)"
COPYRIGHT_YEARS = "2018-2020"

VERSION_TEXT = """\
{prog} {version}

Copyright {years} {author}.
License: The MIT License <https://opensource.org/licenses/mit-license>.
This is free software: you are free to change and redistribute it.
"""


def version_text() -> str:
    return VERSION_TEXT.format(
        prog=PROG_NAME, version=__version__, years=COPYRIGHT_YEARS, author=AUTHOR
    )


# =====================================================================
#   Build driver
# =====================================================================
def make(
    filenames: Sequence[str],
    *,
    config_path: str | Path = LLMK_TOML,
    executor: CommandExecutor | None = None,
) -> list[RunResult]:
    """
    Resolve the configuration and run the sequence.

    Only the first of ``filenames`` is built; the rest are ignored.

    Raises:
        LlmkError: Any configuration, parser or sequence error.
    """
    if filenames:
        filename = filenames[0]
        if len(filenames) > 1:
            logger.debug(f"Ignoring additional files: {', '.join(filenames[1:])}")
        config = fetch_config_from_source(filename)
    else:
        config = fetch_config_from_file(config_path)
        if not config.source:
            raise MissingSourceError()
        filename = config.source

    runner = SequenceRunner(config, executor)
    return asyncio.run(runner.run(filename))


# =====================================================================
#   Option handling
# =====================================================================
class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with the general error code."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_ERROR, f"{self.prog} error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG_NAME,
        usage="%(prog)s [OPTION...] [FILE...]",
        description="Run the build sequence configured for a LaTeX document.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Please report bugs to <wtsnjp@gmail.com>.",
    )
    parser.add_argument("files", nargs="*", metavar="FILE", help="Source file to build")
    parser.add_argument(
        "-V", "--version", action="store_true", help="Print the version number."
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress warnings and most error messages."
    )
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print additional information (eg, the commands being run).",
    )

    parser.add_argument(
        "-D",
        dest="debug",
        action="append_const",
        const="all",
        help='Activate all debug output (equal to "--debug=all").',
    )
    parser.add_argument(
        "-d",
        "--debug",
        dest="debug",
        action="append",
        metavar="LIST",
        help=f"Activate debug output restricted to LIST ({', '.join(DEBUG_CATEGORIES)}, all).",
    )
    return parser


def resolve_debug_categories(values: Iterable[str]) -> tuple[set[str], list[str]]:
    """
    Expand -d/--debug values (comma separated, "all" allowed).

    Returns:
        (enabled categories, unknown names)
    """
    enabled: set[str] = set()
    unknown: list[str] = []
    for value in values:
        for name in filter(None, (part.strip() for part in value.split(","))):
            if name == "all":
                enabled.update(DEBUG_CATEGORIES)
            elif name in DEBUG_CATEGORIES:
                enabled.add(name)
            else:
                unknown.append(name)
    if enabled:
        enabled.add("version")
    return enabled, unknown


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    categories, unknown = resolve_debug_categories(args.debug or [])
    setup_logging(logging.INFO if args.verbose else logging.ERROR, debug=categories)
    for name in unknown:
        logger.warning(f'unknown debug category: "{name}".')

    if args.version:
        sys.stdout.write(version_text())
        return EXIT_OK

    debug_logger("version").debug(f"{PROG_NAME} {__version__}")

    try:
        make(args.files)
    except LlmkError as e:
        logger.error(str(e))
        return e.exit_code

    return EXIT_OK


def run() -> None:
    sys.exit(main())
