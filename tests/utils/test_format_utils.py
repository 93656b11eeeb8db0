import pytest

from helpdesk.util.format_utils import none_if_blank, titleize, truncate, with_placeholder


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("homework help", "Homework Help"),
        ("  web   DEVELOPMENT ", "Web DEVELOPMENT"),
        ("ui_design", "Ui Design"),
        ("UI_design", "UI Design"),
        ("machine-learning", "Machine Learning"),
        ("pYTHON", "Python"),
        ("a", "A"),
    ],
)
def test_titleize(raw, expected):
    assert titleize(raw) == expected


def test_none_if_blank():
    assert none_if_blank(None) is None
    assert none_if_blank("") is None
    assert none_if_blank("   ") is None
    assert none_if_blank("  text ") == "text"


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("abcdefghij", 8) == "abcde..."
    assert len(truncate("x" * 500, 100)) == 100
    assert truncate("abcdef", 2) == "ab"


def test_with_placeholder():
    assert with_placeholder(None) == "<none>"
    assert with_placeholder("  ") == "<none>"
    assert with_placeholder("x") == "x"
    assert with_placeholder("", "-") == "-"
