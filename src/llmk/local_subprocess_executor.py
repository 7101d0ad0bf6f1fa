# llmk/local_subprocess_executor.py
"""
LocalSubprocessExecutor - Default executor using asyncio subprocesses.

Executes programs as local subprocesses with:
- Argument vectors (no shell in between)
- Optional output capture (stdout + stderr merged)
- Exit status recorded on the RunResult
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .command_executor import CommandExecutor
from .run_result import RunResult

logger = logging.getLogger(__name__)

EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


class LocalSubprocessExecutor(CommandExecutor):
    """
    Executes programs as local subprocesses using asyncio.

    Without capture the program inherits llmk's stdout/stderr, so the
    output of the typesetting engine appears on the terminal as it runs.
    """

    def __init__(self, capture_output: bool = False, cwd: str | Path | None = None):
        """
        Initialize the executor.

        Args:
            capture_output: Store merged stdout/stderr in RunResult.output
            cwd: Working directory for every program (default: current directory)
        """
        self._capture_output = capture_output
        self._cwd = str(cwd) if cwd is not None else None

        logger.debug(
            f"Initialized LocalSubprocessExecutor ("
            f"capture_output={capture_output}, cwd={self._cwd})"
        )

    async def run(self, result: RunResult) -> RunResult:
        """
        Launch the program and wait for it to exit.

        1. Marks result as RUNNING
        2. Launches the subprocess
        3. Waits for completion, capturing output if enabled
        4. Marks result as SUCCESS/FAILED with the exit status
        """
        result.mark_running()

        if not result.argv:
            result.mark_failed("Empty command line", EXIT_NOT_FOUND)
            return result

        pipe = asyncio.subprocess.PIPE if self._capture_output else None
        stderr = asyncio.subprocess.STDOUT if self._capture_output else None

        try:
            logger.debug(f"Launching subprocess for '{result.program_name}': {result.argv!r}")
            process = await asyncio.create_subprocess_exec(
                *result.argv,
                stdout=pipe,
                stderr=stderr,  # Merge stderr into stdout when capturing
                cwd=self._cwd,
            )
        except FileNotFoundError:
            result.mark_failed(f"command not found: {result.argv[0]}", EXIT_NOT_FOUND)
            return result
        except PermissionError as e:
            result.mark_failed(f"cannot execute {result.argv[0]}: {e}", EXIT_NOT_EXECUTABLE)
            return result

        stdout, _ = await process.communicate()

        # Capture output
        if stdout:
            result.output = stdout.decode("utf-8", errors="replace")

        # Check return code
        if process.returncode == 0:
            result.mark_success()
        else:
            result.mark_failed(f"Command exited with code {process.returncode}", process.returncode)

        return result

    def supports_feature(self, feature: str) -> bool:
        """Check if executor supports optional features."""
        supported = {"output_capture"}
        return feature in supported

    def __repr__(self) -> str:
        return (
            f"LocalSubprocessExecutor("
            f"capture_output={self._capture_output}, cwd={self._cwd!r})"
        )
