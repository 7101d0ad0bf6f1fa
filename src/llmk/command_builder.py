# llmk/command_builder.py
"""
Expand a ProgramSpec against the file being built.

Two forms are produced:
- build_command(): the display string, ``command + " " + expanded arg``,
  used in log messages. No quoting is applied.
- build_argv(): the argument vector handed to the executor. The command
  and the template are split into words before placeholders are expanded,
  so the filename always stays a single argument and no shell ever sees it.
"""

from __future__ import annotations

import re
import shlex
from pathlib import PurePath

from .build_config import PLACEHOLDER_BASENAME, PLACEHOLDER_FILENAME, ProgramSpec

_PLACEHOLDER_RE = re.compile(f"{re.escape(PLACEHOLDER_FILENAME)}|{re.escape(PLACEHOLDER_BASENAME)}")


def get_basename(filename: str) -> str:
    """Strip the leading directories and the last extension: "dir/paper.tex" → "paper"."""
    name = PurePath(filename).name
    stem, dot, _ = name.rpartition(".")
    return stem if dot and stem else name


def expand_placeholders(template: str, filename: str) -> str:
    """Replace every %T with the filename and every %B with its basename, in one pass."""
    values = {PLACEHOLDER_FILENAME: filename, PLACEHOLDER_BASENAME: get_basename(filename)}
    return _PLACEHOLDER_RE.sub(lambda m: values[m.group(0)], template)


def build_command(filename: str, prog: ProgramSpec) -> str:
    return f"{prog.command} {expand_placeholders(prog.arg, filename)}"


def build_argv(filename: str, prog: ProgramSpec) -> list[str]:
    """
    Build the argument vector for one step.

    Raises:
        ValueError: If the command or the template has unbalanced quotes.
    """
    argv = shlex.split(prog.command)
    argv.extend(expand_placeholders(word, filename) for word in shlex.split(prog.arg))
    return argv
