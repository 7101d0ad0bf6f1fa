__version__ = "0.1.0"

from .build_config import DEFAULT_CONFIG, BuildConfig, ProgramSpec
from .command_builder import build_argv, build_command, expand_placeholders, get_basename
from .command_executor import CommandExecutor
from .config_parser import parse_config
from .exceptions import (
    EXIT_ERROR,
    EXIT_OK,
    EXIT_PARSER,
    ConfigNotFoundError,
    ConfigReadError,
    ConfigValidationError,
    LlmkError,
    MissingSourceError,
    ParserError,
    ProgramFailedError,
    UnknownProgramError,
)
from .load_config import (
    LLMK_TOML,
    extract_embedded_config,
    fetch_config_from_file,
    fetch_config_from_source,
    load_config,
    merge_config,
)
from .local_subprocess_executor import LocalSubprocessExecutor
from .logging_config import disable_logging, setup_logging
from .mock_executor import MockExecutor
from .run_result import RunResult, RunState
from .sequence_runner import SequenceRunner

__all__ = [
    # Version
    "__version__",
    # Configuration
    "BuildConfig",
    "DEFAULT_CONFIG",
    "LLMK_TOML",
    "ProgramSpec",
    "extract_embedded_config",
    "fetch_config_from_file",
    "fetch_config_from_source",
    "load_config",
    "merge_config",
    "parse_config",
    # Commands
    "build_argv",
    "build_command",
    "expand_placeholders",
    "get_basename",
    "RunResult",
    "RunState",
    "SequenceRunner",
    # Executors
    "CommandExecutor",
    "LocalSubprocessExecutor",
    "MockExecutor",
    # Logging
    "disable_logging",
    "setup_logging",
    # Exceptions
    "EXIT_ERROR",
    "EXIT_OK",
    "EXIT_PARSER",
    "ConfigNotFoundError",
    "ConfigReadError",
    "ConfigValidationError",
    "LlmkError",
    "MissingSourceError",
    "ParserError",
    "ProgramFailedError",
    "UnknownProgramError",
]
