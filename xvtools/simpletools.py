"""Small file utilities: cat, echo, ln, mkdir, rm and kill."""

import os
import signal
import sys

from .ulib import atoi


def cat(src, dst):
    """Copy a binary stream to another."""
    while True:
        chunk = src.read(512)
        if not chunk:
            return
        dst.write(chunk)


def cat_main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    try:
        if not args:
            cat(sys.stdin.buffer, out)
            return 0
        for name in args:
            try:
                f = open(name, "rb")
            except OSError:
                sys.stderr.write(f"cat: cannot open {name}\n")
                return 1
            with f:
                cat(f, out)
    except OSError:
        sys.stderr.write("cat: read error\n")
        return 1
    finally:
        out.flush()
    return 0


def echo(args):
    """Arguments joined by spaces and ended by a newline; empty for none."""
    return " ".join(args) + "\n" if args else ""


def echo_main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    sys.stdout.write(echo(args))
    return 0


def ln_main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        sys.stderr.write("Usage: ln old new\n")
        return 1
    try:
        os.link(args[0], args[1])
    except OSError:
        sys.stderr.write(f"link {args[0]} {args[1]}: failed\n")
    return 0


def mkdir_main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("Usage: mkdir files...\n")
        return 1
    for name in args:
        try:
            os.mkdir(name)
        except OSError:
            sys.stderr.write(f"mkdir: {name} failed to create\n")
            break
    return 0


def rm_main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("Usage: rm files...\n")
        return 1
    for name in args:
        try:
            if os.path.isdir(name) and not os.path.islink(name):
                os.rmdir(name)
            else:
                os.unlink(name)
        except OSError:
            sys.stderr.write(f"rm: {name} failed to delete\n")
            break
    return 0


def kill_main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: kill pid...\n")
        return 1
    for arg in args:
        pid = atoi(arg)
        if pid <= 0:
            continue
        try:
            os.kill(pid, signal.SIGTERM)
        except OSError:
            pass
    return 0