"""A small printf supporting %d, %l, %x, %p, %s, %c and %%."""

import sys

_DIGITS = "0123456789ABCDEF"
_MASK32 = 0xFFFFFFFF


def _digits(x, base):
    out = []
    while True:
        out.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            break
    return "".join(reversed(out))


def _int(value, base, signed):
    x = value & _MASK32
    if signed and x & 0x80000000:
        return "-" + _digits((1 << 32) - x, base)
    return _digits(x, base)


def _ptr(value):
    return "0x" + _digits(value & ((1 << 64) - 1), 16).rjust(16, "0")


def format_message(fmt, *args):
    """Render ``fmt`` with ``args``; unknown conversions are echoed."""
    values = iter(args)
    out = []
    pending = False
    for c in fmt:
        if not pending:
            if c == "%":
                pending = True
            else:
                out.append(c)
            continue
        pending = False
        if c == "d":
            out.append(_int(next(values), 10, True))
        elif c == "l":
            out.append(_int(next(values), 10, False))
        elif c == "x":
            out.append(_int(next(values), 16, False))
        elif c == "p":
            out.append(_ptr(next(values)))
        elif c == "s":
            s = next(values)
            out.append("(null)" if s is None else str(s))
        elif c == "c":
            v = next(values)
            out.append(v[:1] if isinstance(v, str) else chr(v & 0xFF))
        elif c == "%":
            out.append("%")
        else:
            out.append("%" + c)
    return "".join(out)


def fprintf(stream, fmt, *args):
    stream.write(format_message(fmt, *args))


def printf(fmt, *args):
    fprintf(sys.stdout, fmt, *args)