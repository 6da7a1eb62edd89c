import io

from xvtools.ulib import atoi, gets, memcmp, strcmp


def test_strcmp():
    assert strcmp("abc", "abc") == 0
    assert strcmp("abc", "abd") < 0
    assert strcmp("b", "a") > 0
    assert strcmp("ab", "abc") < 0
    assert strcmp("ab\0x", "ab\0y") == 0


def test_atoi():
    assert atoi("123abc") == 123
    assert atoi("") == 0
    assert atoi("-5") == 0


def test_memcmp():
    assert memcmp(b"abcX", b"abcY", 3) == 0
    assert memcmp(b"abcX", b"abcY", 4) < 0


def test_gets():
    s = io.StringIO("hello\nworld")
    assert gets(s, 100) == "hello\n"
    assert gets(s, 100) == "world"
    assert gets(io.StringIO("hello"), 3) == "he"
    assert gets(io.StringIO(""), 10) == ""