"""String and input helpers for user programs."""


def _bytes(s):
    return s.encode() if isinstance(s, str) else bytes(s)


def strcmp(p, q):
    """Compare up to the first NUL; negative, zero or positive."""
    a, b = _bytes(p), _bytes(q)
    i = 0
    while True:
        ca = a[i] if i < len(a) else 0
        cb = b[i] if i < len(b) else 0
        if ca == 0 or ca != cb:
            return ca - cb
        i += 1


def atoi(s):
    """Value of the leading decimal digits of ``s``; zero if there are none."""
    n = 0
    for ch in s:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + ord(ch) - ord("0")
    return n


def memcmp(a, b, n):
    """Compare the first ``n`` bytes of ``a`` and ``b``."""
    for x, y in zip(_bytes(a)[:n], _bytes(b)[:n]):
        if x != y:
            return x - y
    return 0


def gets(stream, maxlen):
    """Read up to ``maxlen - 1`` characters, stopping after a newline or CR."""
    out = []
    while len(out) + 1 < maxlen:
        c = stream.read(1)
        if not c:
            break
        out.append(c)
        if c in ("\n", "\r", b"\n", b"\r"):
            break
    empty = b"" if out and isinstance(out[0], bytes) else ""
    return empty.join(out)