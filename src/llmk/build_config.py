# llmk/build_config.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

PLACEHOLDER_FILENAME = "%T"
PLACEHOLDER_BASENAME = "%B"


@dataclass(frozen=True)
class ProgramSpec:
    """
    How to invoke one program of the sequence.
    Used both when loading from a config table and when passed programmatically.
    """

    command: Any = ""
    """
    Executable (plus optional fixed options) to run.
    "" → declared but disabled; the step is skipped.
    Anything that is not a string is reported when the sequence reaches it.
    """

    arg: str = PLACEHOLDER_FILENAME
    """
    Argument template. %T expands to the filename, %B to the filename
    without directory and extension.
    """

    def __post_init__(self) -> None:
        if not isinstance(self.arg, str):
            logger.warning(f"Invalid program spec: arg must be a string, got {self.arg!r}")
            raise ConfigValidationError(
                f'"arg" must be a string, got {type(self.arg).__name__}'
            )

    @property
    def is_disabled(self) -> bool:
        return self.command == ""


def _default_programs() -> Mapping[str, ProgramSpec]:
    return MappingProxyType(
        {
            "latex": ProgramSpec(command="", arg=PLACEHOLDER_FILENAME),
            "dvipdf": ProgramSpec(command="", arg=PLACEHOLDER_BASENAME),
        }
    )


@dataclass(frozen=True)
class BuildConfig:
    """
    Resolved build configuration returned by the loaders in load_config.
    Immutable: merging a new table produces a new BuildConfig.
    """

    latex: str = "lualatex"
    """Default typesetting engine; fallback command for the "latex" program."""

    sequence: tuple[str, ...] = ("latex", "dvipdf")
    """Program names to run, in order. Duplicates are allowed."""

    max_repeat: int = 3
    """
    Upper bound on typesetting reruns. Parsed and validated, not consumed by
    SequenceRunner.
    """

    source: str | None = None
    """File to build when no filename is given on the command line."""

    programs: Mapping[str, ProgramSpec] = field(default_factory=_default_programs)
    """Program name → ProgramSpec."""

    halt_on_error: bool = False
    """
    If True, a program exiting with a non-zero status stops the sequence.
    False (default) → failures are logged and the next step still runs.
    """

    extras: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    """Other top-level keys; scalars named after a program act as its fallback command."""

    def __post_init__(self) -> None:
        if not isinstance(self.max_repeat, int) or isinstance(self.max_repeat, bool):
            raise ConfigValidationError("max_repeat must be an integer")
        if self.max_repeat < 1:
            logger.warning(f"Invalid config: max_repeat must be positive, got {self.max_repeat}")
            raise ConfigValidationError("max_repeat must be positive")

    def get_program(self, name: str) -> ProgramSpec | None:
        return self.programs.get(name)

    def fallback_command(self, name: str) -> Any:
        """Top-level scalar that may stand in for the command of program ``name``."""
        if name == "latex":
            return self.latex
        return self.extras.get(name)

    def describe(self) -> list[str]:
        """One "key = value" line per field, for the config debug category."""
        lines = [
            f"latex = {self.latex!r}",
            f"sequence = {self.sequence!r}",
            f"max_repeat = {self.max_repeat!r}",
            f"source = {self.source!r}",
            f"halt_on_error = {self.halt_on_error!r}",
        ]
        for name, prog in self.programs.items():
            lines.append(f"programs.{name} = {{command = {prog.command!r}, arg = {prog.arg!r}}}")
        for key, value in self.extras.items():
            lines.append(f"{key} = {value!r}")
        return lines


DEFAULT_CONFIG = BuildConfig()
