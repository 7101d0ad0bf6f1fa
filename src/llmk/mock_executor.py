# llmk/mock_executor.py
from __future__ import annotations

import logging
from collections.abc import Mapping

from .command_executor import CommandExecutor
from .run_result import RunResult

logger = logging.getLogger(__name__)


class MockExecutor(CommandExecutor):
    """
    Executor that records runs instead of starting processes.

    Useful for tests and dry runs. Exit codes can be scripted per program
    name; anything not listed succeeds.

    Example:
        >>> executor = MockExecutor(exit_codes={"dvipdf": 1})
        >>> await SequenceRunner(config, executor).run("paper.tex")
        >>> [r.program_name for r in executor.runs]
        ['latex', 'dvipdf']
    """

    def __init__(self, exit_codes: Mapping[str, int] | None = None, output: str = ""):
        self.exit_codes: dict[str, int] = dict(exit_codes or {})
        self.output = output
        self.runs: list[RunResult] = []

    async def run(self, result: RunResult) -> RunResult:
        self.runs.append(result)
        result.mark_running()
        result.output = self.output

        code = self.exit_codes.get(result.program_name, 0)
        if code == 0:
            result.mark_success()
        else:
            result.mark_failed(f"Command exited with code {code}", code)
        logger.debug(f"Mock run of '{result.program_name}': {result.argv!r} -> {code}")
        return result

    @property
    def argvs(self) -> list[list[str]]:
        return [r.argv for r in self.runs]

    def reset(self) -> None:
        self.runs.clear()
