# tests/conftest.py
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

import logging

import pytest

from llmk.build_config import BuildConfig, ProgramSpec
from llmk.logging_config import DEBUG_CATEGORIES, debug_logger
from llmk.mock_executor import MockExecutor


def _reset_llmk_logging():
    pkg_logger = logging.getLogger("llmk")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
    for category in DEBUG_CATEGORIES:
        debug_logger(category).setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def reset_llmk_logging():
    """setup_logging() reconfigures the package logger; undo it around every test."""
    _reset_llmk_logging()
    yield
    _reset_llmk_logging()


@pytest.fixture
def sample_config():
    return BuildConfig(
        latex="pdflatex",
        sequence=("latex", "bibtex", "latex", "dvipdf"),
        programs={
            "latex": ProgramSpec(command="pdflatex", arg="-interaction=nonstopmode %T"),
            "bibtex": ProgramSpec(command="bibtex", arg="%B"),
            "dvipdf": ProgramSpec(command="", arg="%B"),
        },
    )


@pytest.fixture
def mock_executor():
    return MockExecutor()


@pytest.fixture
def write_source(tmp_path):
    """
    Factory fixture writing a LaTeX source with an embedded configuration block.
    Use it like:
        path = write_source('latex = "pdflatex"')
    """
    def _make(config_text, name="paper.tex", body="\\documentclass{article}\n"):
        lines = ["% +++"]
        lines += [f"% {line}" if line else "%" for line in config_text.splitlines()]
        lines.append("% +++")
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n" + body, encoding="utf-8")
        return path

    return _make
