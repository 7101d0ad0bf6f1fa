# llmk/command_executor.py
from __future__ import annotations

from abc import ABC, abstractmethod

from .run_result import RunResult


class CommandExecutor(ABC):
    """
    Runs one program invocation described by a RunResult.

    Implementations receive a PENDING result whose ``argv`` is filled in,
    block (await) until the program has finished, and return the same
    result marked SUCCESS or FAILED. A program that fails is not an
    exception: the caller decides what a failure means.
    """

    @abstractmethod
    async def run(self, result: RunResult) -> RunResult:
        ...

    def supports_feature(self, feature: str) -> bool:
        """Check if executor supports optional features."""
        return False
