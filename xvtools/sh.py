"""Parsing of shell command lines into command trees."""

import sys
from dataclasses import dataclass, field
from enum import IntFlag
from typing import NamedTuple, Optional, Union

from .ulib import gets

MAXARGS = 10
WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class OpenFlag(IntFlag):
    """Flags passed to open()."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200
    TRUNC = 0x400


class ShellSyntaxError(ValueError):
    """A command line could not be parsed."""

    def __init__(self, message, leftover=None):
        super().__init__(message)
        self.leftover = leftover


@dataclass
class ExecCmd:
    """Run a program with arguments."""

    argv: list = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run ``cmd`` with file descriptor ``fd`` reopened on ``file``."""

    cmd: "Command"
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCmd:
    """Connect the output of ``left`` to the input of ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Run ``left``, wait for it, then run ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """Run ``cmd`` in the background."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


class Token(NamedTuple):
    """A token kind and the text it covers.

    Kinds are the symbol itself, ``"+"`` for ``>>``, ``"a"`` for a word and
    ``""`` at the end of the line.
    """

    kind: str
    text: str


class Tokenizer:
    """Splits a command line into words and operator symbols."""

    def __init__(self, line):
        self.text = line
        self.pos = 0

    def _skip_space(self):
        while self.pos < len(self.text) and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks):
        """Skip blanks; true if the next character is one of ``toks``."""
        self._skip_space()
        return self.pos < len(self.text) and self.text[self.pos] in toks

    def get(self):
        """Consume and return the next token."""
        self._skip_space()
        start = self.pos
        text = self.text
        if self.pos >= len(text):
            kind = ""
        else:
            c = text[self.pos]
            if c in "|();&<":
                self.pos += 1
                kind = c
            elif c == ">":
                self.pos += 1
                kind = ">"
                if self.pos < len(text) and text[self.pos] == ">":
                    kind = "+"
                    self.pos += 1
            else:
                kind = "a"
                while (self.pos < len(text) and text[self.pos] not in WHITESPACE
                       and text[self.pos] not in SYMBOLS):
                    self.pos += 1
        token = Token(kind, text[start:self.pos])
        self._skip_space()
        return token

    def at_end(self):
        """True if only blanks remain."""
        self._skip_space()
        return self.pos >= len(self.text)

    def rest(self):
        """The unconsumed remainder of the line."""
        return self.text[self.pos:]


def parse_cmd(line):
    """Parse a whole command line; raise ShellSyntaxError on bad input."""
    line = line.split("\0", 1)[0]
    tz = Tokenizer(line)
    cmd = _parse_line(tz)
    if not tz.at_end():
        raise ShellSyntaxError("syntax", leftover=tz.rest())
    return cmd


def _parse_line(tz):
    cmd = _parse_pipe(tz)
    while tz.peek("&"):
        tz.get()
        cmd = BackCmd(cmd)
    if tz.peek(";"):
        tz.get()
        cmd = ListCmd(cmd, _parse_line(tz))
    return cmd


def _parse_pipe(tz):
    cmd = _parse_exec(tz)
    if tz.peek("|"):
        tz.get()
        cmd = PipeCmd(cmd, _parse_pipe(tz))
    return cmd


def _parse_redirs(cmd, tz):
    while tz.peek("<>"):
        tok = tz.get()
        target = tz.get()
        if target.kind != "a":
            raise ShellSyntaxError("missing file for redirection")
        if tok.kind == "<":
            cmd = RedirCmd(cmd, target.text, OpenFlag.RDONLY, 0)
        elif tok.kind == ">":
            cmd = RedirCmd(cmd, target.text,
                           OpenFlag.WRONLY | OpenFlag.CREATE | OpenFlag.TRUNC, 1)
        else:
            cmd = RedirCmd(cmd, target.text, OpenFlag.WRONLY | OpenFlag.CREATE, 1)
    return cmd


def _parse_block(tz):
    if not tz.peek("("):
        raise ShellSyntaxError("parseblock")
    tz.get()
    cmd = _parse_line(tz)
    if not tz.peek(")"):
        raise ShellSyntaxError("syntax - missing )")
    tz.get()
    return _parse_redirs(cmd, tz)


def _parse_exec(tz):
    if tz.peek("("):
        return _parse_block(tz)
    cmd = ExecCmd()
    ret = _parse_redirs(cmd, tz)
    while not tz.peek("|)&;"):
        tok = tz.get()
        if tok.kind == "":
            break
        if tok.kind != "a":
            raise ShellSyntaxError("syntax")
        cmd.argv.append(tok.text)
        if len(cmd.argv) >= MAXARGS:
            raise ShellSyntaxError("too many args")
        ret = _parse_redirs(ret, tz)
    return ret


def read_command(stream, nbuf=100) -> Optional[str]:
    """Prompt on stderr and read one line of at most ``nbuf - 1`` characters.

    Returns None at end of input.
    """
    sys.stderr.write("$ ")
    sys.stderr.flush()
    line = gets(stream, nbuf)
    if not line:
        return None
    return line