# llmk/run_result.py
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Possible states of one program invocation."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class RunResult:
    """
    Represents a single invocation of a program from the sequence.

    Created by SequenceRunner, filled in by a CommandExecutor.
    """

    # ------------------------------------------------------------------ #
    # Identification
    # ------------------------------------------------------------------ #
    program_name: str
    """Name of the program in the sequence (e.g. "latex")."""

    argv: list[str] = field(default_factory=list)
    """Argument vector passed to the executor."""

    command_line: str = ""
    """Display form of the command, as logged."""

    # ------------------------------------------------------------------ #
    # Execution output & result
    # ------------------------------------------------------------------ #
    output: str = ""
    """Captured stdout + stderr (empty when output is not captured)."""

    exit_code: int | None = None
    """Process exit status; None until the process has finished."""

    success: bool | None = None
    """True = success, False = failed, None = pending/running."""

    error: str | Exception | None = None
    """Error message or exception if failed."""

    state: RunState = RunState.PENDING

    # ------------------------------------------------------------------ #
    # Timing
    # ------------------------------------------------------------------ #
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    duration: datetime.timedelta | None = None

    # ------------------------------------------------------------------ #
    # State transitions
    # ------------------------------------------------------------------ #
    def mark_running(self) -> None:
        """Transition to RUNNING and record start time."""
        if self.state is not RunState.PENDING:
            logger.warning(f"Run of '{self.program_name}' marked running from invalid state {self.state}")
        self.state = RunState.RUNNING
        self.start_time = datetime.datetime.now()
        logger.debug(f"Run of '{self.program_name}' started")

    def mark_success(self, exit_code: int = 0) -> None:
        """Mark as successfully completed."""
        self.state = RunState.SUCCESS
        self.success = True
        self.exit_code = exit_code
        self._finalize()
        logger.debug(f"Run of '{self.program_name}' succeeded in {self.duration_str}")

    def mark_failed(self, error: str | Exception, exit_code: int | None = None) -> None:
        """Mark as failed."""
        self.state = RunState.FAILED
        self.success = False
        self.error = error
        self.exit_code = exit_code
        self._finalize()
        msg = str(error) if isinstance(error, Exception) else error
        logger.debug(f"Run of '{self.program_name}' failed: {msg}")

    def _finalize(self) -> None:
        """Record end time and compute duration."""
        self.end_time = datetime.datetime.now()
        if self.start_time:
            self.duration = self.end_time - self.start_time
        else:
            self.duration = datetime.timedelta(0)

    # ------------------------------------------------------------------ #
    # Timing properties
    # ------------------------------------------------------------------ #
    @property
    def duration_secs(self) -> float | None:
        return self.duration.total_seconds() if self.duration is not None else None

    @property
    def duration_str(self) -> str:
        """Human-readable duration (e.g. '452ms', '2.4s', '1m 23s', '2h 5m')."""
        secs = self.duration_secs
        if secs is None:
            return "—"
        if secs < 1:
            return f"{secs * 1000:.0f}ms"
        if secs < 60:
            return f"{secs:.1f}s"
        mins, secs = divmod(secs, 60)
        if mins < 60:
            return f"{int(mins)}m {secs:.0f}s"
        hrs, mins = divmod(mins, 60)
        return f"{int(hrs)}h {int(mins)}m"

    @property
    def is_finished(self) -> bool:
        return self.state in {RunState.SUCCESS, RunState.FAILED}

    # ------------------------------------------------------------------ #
    # Representation & serialization
    # ------------------------------------------------------------------ #
    def __repr__(self) -> str:
        return (
            f"RunResult(program='{self.program_name}', state={self.state.value}, "
            f"exit_code={self.exit_code}, dur={self.duration_str})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "program_name": self.program_name,
            "argv": list(self.argv),
            "command_line": self.command_line,
            "output": self.output,
            "exit_code": self.exit_code,
            "success": self.success,
            "error": str(self.error) if self.error else None,
            "state": self.state.value,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_str": self.duration_str,
        }
