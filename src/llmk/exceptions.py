# llmk/exceptions.py
"""
Custom exception hierarchy for llmk.

All llmk-specific exceptions inherit from LlmkError to enable
catch-all error handling while still providing specific exception types
for different error conditions. Each class carries the process exit code
the command-line front end reports for it.
"""

from __future__ import annotations

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARSER = 2


class LlmkError(Exception):
    """
    Base exception for all llmk errors.

    Catch this to handle any llmk-specific error.
    """

    exit_code: int = EXIT_ERROR


class ConfigNotFoundError(LlmkError):
    """
    Raised when a file llmk has to read does not exist.

    This covers both the standalone ``llmk.toml`` and a source document
    given on the command line.

    Example:
        >>> fetch_config_from_file()
        ConfigNotFoundError: not found: llmk.toml
    """

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"not found: {path}")


class ConfigReadError(LlmkError):
    """
    Raised when a file exists but cannot be read (a directory, no permission, ...).

    Attributes:
        path: The file llmk tried to read
        reason: The operating system's description of the failure
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read {path}: {reason}")


class ConfigValidationError(LlmkError):
    """
    Raised when a parsed configuration value has the wrong shape.

    Example:
        >>> merge_config({"latex": 3}, DEFAULT_CONFIG)
        ConfigValidationError: "latex" must be a string, got int
    """

    pass


class ParserError(LlmkError):
    """
    Raised for any violation of the configuration grammar.

    Attributes:
        line: 1-based line number in the configuration text (None if unknown)
        reason: The message without the line prefix
    """

    exit_code = EXIT_PARSER

    def __init__(self, reason: str, line: int | None = None):
        self.reason = reason
        self.line = line
        if line is not None:
            super().__init__(f"parser: line {line}: {reason}")
        else:
            super().__init__(f"parser: {reason}")


class UnknownProgramError(LlmkError):
    """
    Raised when a sequence entry cannot be turned into a command.

    Either no program of that name is declared, or its ``command`` field
    is not a string.
    """

    def __init__(self, program_name: str, message: str):
        self.program_name = program_name
        super().__init__(message)


class MissingSourceError(LlmkError):
    """Raised when no filename is given and llmk.toml has no ``source`` key."""

    def __init__(self):
        super().__init__("No source detected")


class ProgramFailedError(LlmkError):
    """
    Raised when a step fails and ``halt_on_error`` is enabled.

    Attributes:
        program_name: Name of the failed program in the sequence
        returncode: Exit status reported by the process
    """

    def __init__(self, program_name: str, returncode: int | None):
        self.program_name = program_name
        self.returncode = returncode
        super().__init__(f'Program "{program_name}" failed with exit code {returncode}')
