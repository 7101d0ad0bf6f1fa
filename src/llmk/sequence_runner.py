# llmk/sequence_runner.py
from __future__ import annotations

import logging

from .build_config import BuildConfig, ProgramSpec
from .command_builder import build_argv, build_command
from .command_executor import CommandExecutor
from .exceptions import ConfigValidationError, ProgramFailedError, UnknownProgramError
from .local_subprocess_executor import LocalSubprocessExecutor
from .run_result import RunResult

logger = logging.getLogger(__name__)


class SequenceRunner:
    """
    Runs the programs of ``config.sequence`` one after another.

    Each step is awaited until its process has exited before the next one
    is built, so the effects of step i are visible to step i+1.
    """

    def __init__(self, config: BuildConfig, executor: CommandExecutor | None = None):
        self._config = config
        self._executor = executor or LocalSubprocessExecutor()
        logger.debug(
            f"SequenceRunner initialized with {len(config.sequence)} steps "
            f"(halt_on_error={config.halt_on_error})"
        )

    @property
    def config(self) -> BuildConfig:
        return self._config

    def _lookup(self, name: str) -> ProgramSpec:
        prog = self._config.get_program(name)
        if prog is None:
            raise UnknownProgramError(name, f'Unknown program "{name}" detected in the sequence.')
        if not isinstance(prog.command, str):
            raise UnknownProgramError(name, f'Command name for "{name}" is not detected.')
        return prog

    async def run(self, filename: str) -> list[RunResult]:
        """
        Build ``filename`` by running every step of the sequence.

        Returns:
            One RunResult per program actually started (disabled steps are skipped).

        Raises:
            UnknownProgramError: A step names an undeclared program or has a
                non-string command. Later steps do not run.
            ProgramFailedError: A step failed and halt_on_error is set.
        """
        results: list[RunResult] = []

        for name in self._config.sequence:
            prog = self._lookup(name)
            if prog.is_disabled:
                logger.debug(f'Skipping "{name}": no command configured')
                continue

            try:
                argv = build_argv(filename, prog)
            except ValueError as e:
                raise ConfigValidationError(f'Cannot split command for "{name}": {e}') from None

            command_line = build_command(filename, prog)
            logger.info(f'running "{command_line}"')

            result = RunResult(program_name=name, argv=argv, command_line=command_line)
            await self._executor.run(result)
            results.append(result)

            if not result.success:
                logger.warning(f'"{name}" failed: {result.error}')
                if self._config.halt_on_error:
                    raise ProgramFailedError(name, result.exit_code)

        return results
