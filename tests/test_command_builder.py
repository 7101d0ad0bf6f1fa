# tests/test_command_builder.py
import pytest

from llmk.build_config import ProgramSpec
from llmk.command_builder import build_argv, build_command, expand_placeholders, get_basename


def test_build_command_with_filename_placeholder():
    assert build_command("paper.tex", ProgramSpec(command="foo", arg="%T")) == "foo paper.tex"


def test_build_command_with_basename_placeholder():
    assert build_command("dir/paper.tex", ProgramSpec(command="bar", arg="%B")) == "bar paper"


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("paper.tex", "paper"),
        ("dir/sub/paper.tex", "paper"),
        ("archive.tar.gz", "archive.tar"),
        ("noext", "noext"),
        ("dir.d/noext", "noext"),
        (".hidden", ".hidden"),
    ],
)
def test_get_basename(filename, expected):
    assert get_basename(filename) == expected


def test_every_placeholder_occurrence_is_expanded():
    template = "-jobname=%B %T %B"
    assert expand_placeholders(template, "src/a.tex") == "-jobname=a src/a.tex a"


def test_template_without_placeholders():
    assert build_command("a.tex", ProgramSpec(command="make", arg="clean")) == "make clean"


def test_placeholder_text_inside_filename_is_not_expanded_again():
    assert expand_placeholders("%T", "%B.tex") == "%B.tex"


def test_build_command_does_not_quote():
    prog = ProgramSpec(command="lualatex", arg="%T")
    assert build_command("my paper.tex", prog) == "lualatex my paper.tex"


def test_build_argv_keeps_filename_as_one_argument():
    prog = ProgramSpec(command="lualatex", arg="-interaction=nonstopmode %T")
    assert build_argv("my paper.tex", prog) == ["lualatex", "-interaction=nonstopmode", "my paper.tex"]


def test_build_argv_never_interprets_shell_metacharacters():
    prog = ProgramSpec(command="dvipdfmx", arg="%B")
    assert build_argv("x; rm -rf ~.tex", prog) == ["dvipdfmx", "x; rm -rf ~"]


def test_build_argv_splits_command_options_and_quotes():
    prog = ProgramSpec(command="latexmk -pdf", arg="'-jobname=%B out' %T")
    assert build_argv("paper.tex", prog) == ["latexmk", "-pdf", "-jobname=paper out", "paper.tex"]


def test_build_argv_with_empty_template():
    assert build_argv("paper.tex", ProgramSpec(command="true", arg="")) == ["true"]


def test_build_argv_unbalanced_quotes():
    with pytest.raises(ValueError):
        build_argv("paper.tex", ProgramSpec(command="lualatex", arg='"%T'))
