from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, BinaryIO, Mapping, TextIO

from .build_config import DEFAULT_CONFIG, PLACEHOLDER_FILENAME, BuildConfig, ProgramSpec
from .config_parser import RawTable, parse_config
from .exceptions import ConfigNotFoundError, ConfigReadError, ConfigValidationError, ParserError
from .logging_config import debug_logger

logger = logging.getLogger(__name__)

LLMK_TOML = "llmk.toml"
COMMENT_MARKER = "%"


# =====================================================================
#   Embedded configuration
# =====================================================================
def _read_embedded_lines(path: str | Path, comment_marker: str) -> list[tuple[int, str]]:
    """Return (document line, config text) pairs for every line inside a block."""
    marker = re.escape(comment_marker)
    delimiter_re = re.compile(rf"^\s*{marker}\s*\+{{3,}}\s*$")
    content_re = re.compile(rf"^\s*{marker}\s*(.*?)\s*$")

    # Lines outside a block are never interpreted, so undecodable bytes
    # there are carried through as surrogates.
    try:
        f = open(path, encoding="utf-8", errors="surrogateescape")
    except FileNotFoundError:
        raise ConfigNotFoundError(str(path)) from None
    except OSError as e:
        raise ConfigReadError(str(path), e.strerror or str(e)) from None

    lines: list[tuple[int, str]] = []
    inside = False
    with f:
        for lineno, line in enumerate(f, start=1):
            line = line.rstrip("\r\n")
            if delimiter_re.match(line):
                inside = not inside
                continue
            if not inside:
                continue

            match = content_re.match(line)
            if match:
                text = match.group(1)
            elif not line.strip():
                text = ""
            else:
                raise ParserError(
                    f"{path}: expected a {comment_marker!r} comment line inside the "
                    f"configuration block",
                    lineno,
                )

            try:
                text.encode("utf-8")
            except UnicodeEncodeError:
                raise ParserError(
                    f"{path}: configuration block is not valid UTF-8", lineno
                ) from None
            lines.append((lineno, text))

    if inside:
        logger.debug(f"Configuration block in {path} is not closed; read to end of file")
    logger.debug(f"Extracted {len(lines)} configuration lines from {path}")
    return lines


def extract_embedded_config(path: str | Path, comment_marker: str = COMMENT_MARKER) -> str:
    """
    Collect the configuration text embedded in a source document.

    A line consisting of the comment marker followed by three or more "+"
    opens a block, the next such line closes it. An unterminated block runs
    to the end of the file. Inside a block the marker and surrounding
    whitespace are stripped from each line.

    Only the block content has to be UTF-8; the rest of the document may
    use any encoding.
    """
    return "".join(text + "\n" for _, text in _read_embedded_lines(path, comment_marker))


# =====================================================================
#   Merging
# =====================================================================
def _as_string(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigValidationError(f'"{key}" must be a string, got {type(value).__name__}')
    return value


def _as_sequence(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigValidationError(f'"{key}" must be an array of program names')
    return tuple(value)


def _as_int(key: str, value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigValidationError(f'"{key}" must be an integer, got {type(value).__name__}')
    return value


def _as_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigValidationError(f'"{key}" must be true or false, got {type(value).__name__}')
    return value


def _as_programs(key: str, value: Any) -> Mapping[str, ProgramSpec]:
    if not isinstance(value, dict):
        raise ConfigValidationError(f'"{key}" must be a table of programs')

    programs: dict[str, ProgramSpec] = {}
    for name, spec in value.items():
        if not isinstance(spec, dict):
            raise ConfigValidationError(f'"{key}.{name}" must be a table')

        unknown = sorted(set(spec) - {"command", "arg"})
        if unknown:
            logger.warning(f"Ignoring unknown keys in {key}.{name}: {', '.join(unknown)}")

        programs[name] = ProgramSpec(
            command=spec.get("command", ""),
            arg=spec.get("arg", PLACEHOLDER_FILENAME),
        )
    return MappingProxyType(programs)


_FIELD_CONVERTERS: dict[str, Callable[[str, Any], Any]] = {
    "latex": _as_string,
    "sequence": _as_sequence,
    "max_repeat": _as_int,
    "source": _as_string,
    "halt_on_error": _as_bool,
    "programs": _as_programs,
}


def _apply_command_fallback(config: BuildConfig) -> Mapping[str, ProgramSpec]:
    """Fill every disabled program's command from a top-level scalar of the same name."""
    programs = dict(config.programs)
    for name, prog in programs.items():
        if not prog.is_disabled:
            continue
        fallback = config.fallback_command(name)
        if fallback is None or fallback == "" or isinstance(fallback, (list, dict)):
            continue
        logger.debug(f'Program "{name}" takes its command from top-level key: {fallback!r}')
        programs[name] = replace(prog, command=fallback)
    return MappingProxyType(programs)


def merge_config(table: RawTable, base: BuildConfig = DEFAULT_CONFIG) -> BuildConfig:
    """
    Merge a parsed table into ``base`` and return the resolved BuildConfig.

    Every key present in the table replaces the whole field (no deep merge):
    a ``programs`` table drops any program of ``base`` it does not redeclare.
    Keys that are not fields are kept in ``extras``.
    """
    changes: dict[str, Any] = {}
    extras = dict(base.extras)

    for key, value in table.items():
        convert = _FIELD_CONVERTERS.get(key)
        if convert is None:
            extras[key] = value
        else:
            changes[key] = convert(key, value)

    merged = replace(base, extras=MappingProxyType(extras), **changes)
    merged = replace(merged, programs=_apply_command_fallback(merged))

    config_debug = debug_logger("config")
    for line in merged.describe():
        config_debug.debug(line)
    return merged


# =====================================================================
#   Loaders
# =====================================================================
def _decode(data: bytes, name: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        line = data.count(b"\n", 0, e.start) + 1
        raise ParserError(f"{name} is not valid UTF-8", line) from None


def load_config(
    path: str | Path | BinaryIO | TextIO, base: BuildConfig = DEFAULT_CONFIG
) -> BuildConfig:
    """
    Load a standalone configuration file (or file object) and merge it into ``base``.
    """
    if hasattr(path, "read"):
        data = path.read()  # type: ignore[union-attr]
        name = getattr(path, "name", LLMK_TOML)
        text = _decode(data, name) if isinstance(data, bytes) else data
    else:
        try:
            data = Path(path).read_bytes()
        except FileNotFoundError:
            raise ConfigNotFoundError(str(path)) from None
        except OSError as e:
            raise ConfigReadError(str(path), e.strerror or str(e)) from None
        text = _decode(data, str(path))
    return merge_config(parse_config(text), base)


def fetch_config_from_file(
    path: str | Path = LLMK_TOML, base: BuildConfig = DEFAULT_CONFIG
) -> BuildConfig:
    """Load llmk.toml; a missing file is a ConfigNotFoundError."""
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigNotFoundError(str(path))
    logger.debug(f"Reading configuration from {config_path}")
    return load_config(config_path, base)


def fetch_config_from_source(
    path: str | Path, base: BuildConfig = DEFAULT_CONFIG
) -> BuildConfig:
    """
    Load the configuration embedded in a source document.

    Parser errors report the line number in the document, not in the
    extracted block.
    """
    lines = _read_embedded_lines(path, COMMENT_MARKER)
    try:
        table = parse_config("".join(text + "\n" for _, text in lines))
    except ParserError as e:
        if e.line is None or not lines:
            raise
        lineno = lines[min(e.line, len(lines)) - 1][0]
        raise ParserError(e.reason, lineno) from None
    return merge_config(table, base)
