"""List files and directories with type, inode number and size."""

import os
import stat as _stat
import sys

from .fmt import format_message

DIRSIZ = 14
_BUFSIZE = 512

T_DIR = 1
T_FILE = 2
T_DEVICE = 3


def fmtname(path):
    """Last path component, blank-padded to the directory-name width."""
    name = path[path.rfind("/") + 1:]
    if len(name) >= DIRSIZ:
        return name
    return name + " " * (DIRSIZ - len(name))


def _type(st):
    if _stat.S_ISDIR(st.st_mode):
        return T_DIR
    if _stat.S_ISREG(st.st_mode):
        return T_FILE
    return T_DEVICE


def ls(path, out):
    """Write a listing of ``path`` to ``out``; open failures go to stderr."""
    try:
        st = os.stat(path)
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    kind = _type(st)
    if kind != T_DIR:
        out.write(format_message("%s %d %d %l\n", fmtname(path), kind, st.st_ino, st.st_size))
        return
    if len(path) + 1 + DIRSIZ + 1 > _BUFSIZE:
        out.write("ls: path too long\n")
        return
    try:
        names = [".", ".."] + sorted(os.listdir(path))
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    for name in names:
        full = f"{path}/{name}"
        try:
            est = os.stat(full)
        except OSError:
            out.write(f"ls: cannot stat {full}\n")
            continue
        out.write(format_message("%s %d %d %d\n", fmtname(full), _type(est),
                                 est.st_ino, est.st_size))


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    for path in args or ["."]:
        ls(path, sys.stdout)
    return 0