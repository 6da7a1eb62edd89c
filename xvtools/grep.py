"""A grep supporting only the ^ . * $ operators."""

import sys

_BUFSIZE = 1024


def match(regex, text):
    """True if ``regex`` matches somewhere in ``text``."""
    if regex.startswith("^"):
        return _match_here(regex, 1, text, 0)
    return any(_match_here(regex, 0, text, i) for i in range(len(text) + 1))


def _match_here(re, ri, text, ti):
    if ri == len(re):
        return True
    if ri + 1 < len(re) and re[ri + 1] == "*":
        return _match_star(re[ri], re, ri + 2, text, ti)
    if re[ri] == "$" and ri + 1 == len(re):
        return ti == len(text)
    if ti < len(text) and re[ri] in (".", text[ti]):
        return _match_here(re, ri + 1, text, ti + 1)
    return False


def _match_star(c, re, ri, text, ti):
    while True:
        if _match_here(re, ri, text, ti):
            return True
        if ti < len(text) and (text[ti] == c or c == "."):
            ti += 1
        else:
            return False


def grep(pattern, stream):
    """Yield the newline-terminated lines of ``stream`` that match ``pattern``.

    A final line without a newline is not considered, and a line too long
    for the line buffer ends the search.
    """
    for line in stream:
        if not line.endswith("\n") or len(line) > _BUFSIZE - 1:
            return
        if match(pattern, line[:-1]):
            yield line


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, files = args[0], args[1:]
    if not files:
        sys.stdout.writelines(grep(pattern, sys.stdin))
        return 0
    for name in files:
        try:
            with open(name, newline="", errors="surrogateescape") as f:
                sys.stdout.writelines(grep(pattern, f))
        except OSError:
            print(f"grep: cannot open {name}")
            return 1
    return 0