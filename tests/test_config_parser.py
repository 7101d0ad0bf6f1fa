# tests/test_config_parser.py

import logging

import pytest

from llmk.config_parser import Tokenizer, parse_config, parse_number
from llmk.exceptions import EXIT_PARSER, ParserError

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # <3.11


# ─────────────────────────────────────────────────────────────────────────────
# Scalars
# ─────────────────────────────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "text, expected",
    [
        ('latex = "pdflatex"', "pdflatex"),
        ("latex = 'uplatex'", "uplatex"),
        ('latex = ""', ""),
        ('latex = "lualatex --shell-escape"', "lualatex --shell-escape"),
        ('latex = "a # not a comment"', "a # not a comment"),
        ("""latex = 'say "hi"'""", 'say "hi"'),
    ],
)
def test_string_values(text, expected):
    assert parse_config(text) == {"latex": expected}


def test_backslashes_are_copied_literally():
    table = parse_config('path = "C:\\tex\\new"')
    assert table["path"] == "C:\\tex\\new"


@pytest.mark.parametrize(
    "literal, expected",
    [
        ("12.5", 12.5),
        ("1_000", 1000),
        ("-3", -3),
        ("+7", 7),
        ("0", 0),
        ("1e3", 1000.0),
        ("6.02E23", 6.02e23),
        ("-1_0.5", -10.5),
        ("inf", float("inf")),
    ],
)
def test_numeric_values(literal, expected):
    table = parse_config(f"n = {literal}")
    assert table["n"] == expected
    assert type(table["n"]) is type(expected)


def test_integer_with_underscores_is_int():
    assert parse_config("max_repeat = 1_000\n") == {"max_repeat": 1000}


@pytest.mark.parametrize("literal", ["12abc", "1.2.3", "-", "1e", "0x1F", "1__0e"])
def test_invalid_numbers(literal):
    with pytest.raises(ParserError, match="Invalid number"):
        parse_config(f"n = {literal}")


def test_parse_number_strips_underscores():
    assert parse_number("1_2_3") == 123


def test_booleans():
    assert parse_config("a = true\nb = false") == {"a": True, "b": False}


# ─────────────────────────────────────────────────────────────────────────────
# Comments and layout
# ─────────────────────────────────────────────────────────────────────────────
def test_comments_and_blank_lines_are_ignored():
    text = """
# leading comment

latex = "pdflatex"   # trailing comment
   # indented comment
max_repeat = 4#tight comment
"""
    assert parse_config(text) == {"latex": "pdflatex", "max_repeat": 4}


def test_crlf_line_endings():
    assert parse_config('a = 1\r\nb = "x"\r\n') == {"a": 1, "b": "x"}


def test_empty_input():
    assert parse_config("") == {}
    assert parse_config("\n\n# only a comment\n") == {}


def test_surrounding_whitespace_in_key_is_trimmed():
    assert parse_config("   latex\t=   'x'  ") == {"latex": "x"}


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "text",
    [
        'latex = "a"\nlatex = "b"',
        "n = 1\nn = 2",
        'latex = "a"\nlatex = 3',
        "[programs]\nx = 1\nx = 2",
    ],
)
def test_duplicate_key_raises(text):
    with pytest.raises(ParserError, match="Cannot redefine key"):
        parse_config(text)


def test_same_key_in_different_tables_is_allowed():
    table = parse_config("[a]\nx = 1\n[b]\nx = 2")
    assert table == {"a": {"x": 1}, "b": {"x": 2}}


def test_empty_key_raises():
    with pytest.raises(ParserError, match="Empty key name"):
        parse_config(" = 1")


@pytest.mark.parametrize(
    "text",
    ['a = "x" y', "a = 1 2", "a = 1, 2", "a = true false", 'a = "x""y"', "[t] extra"],
)
def test_garbage_after_value_is_invalid_primitive(text):
    with pytest.raises(ParserError, match="Invalid primitive"):
        parse_config(text)


def test_line_break_in_string_raises():
    with pytest.raises(ParserError, match="Single-line string cannot contain line break"):
        parse_config('latex = "pdf\nlatex"')


def test_unterminated_string_raises():
    with pytest.raises(ParserError, match="Unterminated string"):
        parse_config('latex = "pdflatex')


def test_missing_value_raises():
    with pytest.raises(ParserError, match="Missing value"):
        parse_config("latex =\n")


def test_key_with_space_raises():
    with pytest.raises(ParserError, match='Expected "=" after key "foo"'):
        parse_config("foo bar = 1")


def test_unexpected_character_raises():
    with pytest.raises(ParserError, match="Unexpected character"):
        parse_config("a = 1\n$b = 2")


@pytest.mark.parametrize(
    "text, what",
    [
        ('s = """multi\nline"""', "multi-line string"),
        ("s = '''raw'''", "multi-line string"),
        ("d = 1979-05-27", "date/time"),
        ("t = 07:32:00", "date/time"),
        ("[[command]]\nname = 'x'", "array of tables"),
        ("v = yes", "'yes'"),
    ],
)
def test_unsupported_constructs_raise(text, what):
    with pytest.raises(ParserError, match="Unsupported construct") as excinfo:
        parse_config(text)
    assert what in str(excinfo.value)


def test_error_reports_line_number():
    with pytest.raises(ParserError) as excinfo:
        parse_config('a = 1\nb = 2\nc = "x" garbage\n')
    assert excinfo.value.line == 3
    assert str(excinfo.value) == "parser: line 3: Invalid primitive"
    assert excinfo.value.exit_code == EXIT_PARSER


# ─────────────────────────────────────────────────────────────────────────────
# Arrays and tables
# ─────────────────────────────────────────────────────────────────────────────
def test_arrays():
    text = """
sequence = ["latex", "bibtex", "latex"]
empty = []
mixed = [1, 'two', 3.0]
nested = [[1, 2], [3]]
"""
    table = parse_config(text)
    assert table["sequence"] == ["latex", "bibtex", "latex"]
    assert table["empty"] == []
    assert table["mixed"] == [1, "two", 3.0]
    assert table["nested"] == [[1, 2], [3]]


def test_multiline_array_with_comments_and_trailing_comma():
    text = """
sequence = [
  "latex",   # first pass
  "dvipdf",
]
"""
    assert parse_config(text) == {"sequence": ["latex", "dvipdf"]}


@pytest.mark.parametrize("text", ['s = ["a" "b"]', "s = [1, 2", "s = [1,\n"])
def test_malformed_arrays_raise(text):
    with pytest.raises(ParserError):
        parse_config(text)


def test_inline_table():
    table = parse_config('latex = { command = "pdflatex", arg = "%T" }')
    assert table == {"latex": {"command": "pdflatex", "arg": "%T"}}


def test_inline_table_must_close_on_same_line():
    with pytest.raises(ParserError, match="same line"):
        parse_config('p = { command = "x",\n arg = "y" }')


def test_table_headers_and_dotted_keys():
    text = """
latex = "pdflatex"

[programs.latex]
command = "pdflatex"
arg = "%T"

[programs]
dvipdf.command = "dvipdfmx"
dvipdf.arg = "%B"
"""
    table = parse_config(text)
    assert table == {
        "latex": "pdflatex",
        "programs": {
            "latex": {"command": "pdflatex", "arg": "%T"},
            "dvipdf": {"command": "dvipdfmx", "arg": "%B"},
        },
    }


def test_quoted_key():
    assert parse_config('"my key" = 1') == {"my key": 1}


def test_redefining_table_raises():
    with pytest.raises(ParserError, match='Cannot redefine table "programs.latex"'):
        parse_config("[programs.latex]\na = 1\n[programs.latex]\nb = 2")


def test_table_header_over_scalar_raises():
    with pytest.raises(ParserError, match='Cannot redefine key "latex"'):
        parse_config('latex = "x"\n[latex]\ncommand = "y"')


@pytest.mark.parametrize(
    "text, message",
    [
        ("a.b = 1\n[a]\nc = 2", 'Cannot redefine table "a"'),
        ("p = {x = 1}\n[p]\ny = 2", 'Cannot redefine key "p"'),
        ("p = {x = 1}\np.y = 2", 'Cannot redefine key "p"'),
        ("p = {x = {y = 1}}\n[p.x]\nz = 2", 'Cannot redefine key "p"'),
        ("[a.b]\nx = 1\n[a]\nb.y = 2", 'Cannot redefine key "b"'),
    ],
)
def test_closed_tables_cannot_be_extended(text, message):
    with pytest.raises(ParserError, match=message):
        parse_config(text)


def test_header_may_add_subtable_under_dotted_table():
    table = parse_config("a.b.c = 1\n[a.b.d]\ne = 2")
    assert table == {"a": {"b": {"c": 1, "d": {"e": 2}}}}


def test_deeply_nested_arrays_raise_parser_error():
    with pytest.raises(ParserError, match="nested too deeply"):
        parse_config("a = " + "[" * 5000 + "]" * 5000)


def test_deeply_nested_inline_tables_raise_parser_error():
    with pytest.raises(ParserError, match="nested too deeply"):
        parse_config("a = " + "{b = " * 500 + "1" + "}" * 500)


def test_moderate_nesting_is_accepted():
    assert parse_config("a = [[[1]], [2]]") == {"a": [[[1]], [2]]}


def test_invalid_dotted_key_raises():
    with pytest.raises(ParserError, match="Invalid key"):
        parse_config("a..b = 1")


# ─────────────────────────────────────────────────────────────────────────────
# Tokenizer
# ─────────────────────────────────────────────────────────────────────────────
def test_tokenizer_drops_comments_and_keeps_newlines():
    tokens = Tokenizer('a = "x" # c\nb = 1').tokenize()
    kinds = [t.kind for t in tokens]
    assert kinds == ["BARE", "EQUALS", "STRING", "NEWLINE", "BARE", "EQUALS", "BARE", "EOF"]
    assert tokens[-2].line == 2


# ─────────────────────────────────────────────────────────────────────────────
# Agreement with a full TOML parser on the supported subset
# ─────────────────────────────────────────────────────────────────────────────
SUBSET_DOCUMENT = """
latex = "pdflatex"
max_repeat = 5
sequence = ["latex", "bibtex", "latex", "dvipdf"]
ratio = 0.75
big = 1_000_000
neg = -17
flag = true

[programs.latex]
command = "pdflatex"
arg = "-interaction=nonstopmode %T"

[programs.dvipdf]
command = 'dvipdfmx'
arg = '%B'
extra = { a = 1, b = "two" }
"""


def test_matches_toml_parser_on_supported_subset():
    assert parse_config(SUBSET_DOCUMENT) == tomli.loads(SUBSET_DOCUMENT)


def test_parser_debug_category_logs_table(caplog):
    caplog.set_level(logging.DEBUG, logger="llmk.debug.parser")
    parse_config("a = 1")
    assert "parsed table: {'a': 1}" in caplog.text
