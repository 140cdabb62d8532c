import pytest

from illume.core.errors import MissingKeyError, ParseError, UnmatchedBraceError
from illume.core.interpolate import interpolate


def test_interpolate_replaces_every_placeholder():
    assert interpolate("{a}/{b}", {"a": "x", "b": "y"}) == "x/y"


def test_interpolate_json_encodes_non_strings():
    values = {"n": 3, "flag": True, "obj": {"k": [1, 2]}, "none": None}
    assert interpolate("{n}|{flag}|{obj}|{none}", values) == '3|true|{"k": [1, 2]}|null'


def test_interpolate_missing_key():
    with pytest.raises(MissingKeyError) as excinfo:
        interpolate("{a}/{b}", {"a": "x"})
    assert excinfo.value.key == "b"
    assert "missing key: b" in str(excinfo.value)


def test_interpolate_unmatched_brace():
    with pytest.raises(UnmatchedBraceError):
        interpolate("{a", {"a": "x"})


def test_interpolate_errors_are_parse_errors():
    with pytest.raises(ParseError):
        interpolate("http://host/{model", {})


def test_interpolate_leaves_lone_closing_brace_and_plain_text():
    assert interpolate("a}b", {}) == "a}b"
    assert interpolate("no placeholders", {}) == "no placeholders"


def test_interpolate_is_single_pass():
    assert interpolate("{a}", {"a": "{b}"}) == "{b}"
