import io

import pytest

from xvtools.grep import grep, main, match


@pytest.mark.parametrize("regex,text,expected", [
    ("^ab", "abc", True),
    ("^ab", "cab", False),
    ("a.c", "xabcx", True),
    ("ab*c", "ac", True),
    ("ab*c", "abbbc", True),
    ("x$", "abx", True),
    ("x$", "xa", False),
    ("", "anything", True),
    (".*", "", True),
    ("q", "abc", False),
])
def test_match(regex, text, expected):
    assert match(regex, text) is expected


def test_grep_lines():
    s = io.StringIO("apple\nbanana\ncherry\nappend")
    assert list(grep("ap", s)) == ["apple\n"]