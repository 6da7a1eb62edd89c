"""Count lines, words and characters."""

import sys
from dataclasses import dataclass

_SPACE = b" \r\t\n\v\0"


@dataclass
class Counts:
    lines: int = 0
    words: int = 0
    chars: int = 0


def count(stream):
    """Count the contents of a binary (or text) stream."""
    counts = Counts()
    inword = False
    while True:
        chunk = stream.read(512)
        if not chunk:
            break
        if isinstance(chunk, str):
            chunk = chunk.encode()
        for b in chunk:
            counts.chars += 1
            if b == 10:
                counts.lines += 1
            if b in _SPACE:
                inword = False
            elif not inword:
                counts.words += 1
                inword = True
    return counts


def _report(c, name):
    print(f"{c.lines} {c.words} {c.chars} {name}")


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        _report(count(sys.stdin.buffer), "")
        return 0
    for name in args:
        try:
            with open(name, "rb") as f:
                c = count(f)
        except OSError:
            print(f"wc: cannot open {name}")
            return 1
        _report(c, name)
    return 0