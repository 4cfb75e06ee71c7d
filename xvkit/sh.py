"""Command-line parser for the shell: tokens, command trees and the cd special case."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, NamedTuple, Union

from xvkit.riscv import OpenFlag

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"
MAXARGS = 10

WORD = "a"
APPEND = "+"
END = ""


class ShellSyntaxError(ValueError):
    """A command line that the shell cannot parse."""


@dataclass
class ExecCmd:
    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    cmd: "Command"
    file: str
    mode: int
    fd: int


@dataclass
class PipeCmd:
    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


class Token(NamedTuple):
    """A token kind ('a' for a word, '+' for '>>', '' at the end) and its text."""

    kind: str
    text: str


def _skip_space(s: str, pos: int) -> int:
    while pos < len(s) and s[pos] in WHITESPACE:
        pos += 1
    return pos


def gettoken(s: str, pos: int) -> tuple[Token, int]:
    """Read the token at pos; return it and the position after trailing blanks."""
    pos = _skip_space(s, pos)
    start = pos
    if pos >= len(s):
        kind = END
    else:
        c = s[pos]
        if c in "|();&<":
            kind = c
            pos += 1
        elif c == ">":
            kind = ">"
            pos += 1
            if pos < len(s) and s[pos] == ">":
                kind = APPEND
                pos += 1
        else:
            kind = WORD
            while pos < len(s) and s[pos] not in WHITESPACE and s[pos] not in SYMBOLS:
                pos += 1
    token = Token(kind, s[start:pos])
    return token, _skip_space(s, pos)


def tokenize(s: str) -> Iterator[Token]:
    """Yield every token of s up to the end of input."""
    pos = 0
    while True:
        token, pos = gettoken(s, pos)
        if token.kind == END:
            return
        yield token


class _Parser:
    def __init__(self, s: str) -> None:
        self.s = s
        self.pos = 0

    def peek(self, toks: str) -> bool:
        self.pos = _skip_space(self.s, self.pos)
        return self.pos < len(self.s) and self.s[self.pos] in toks

    def next(self) -> Token:
        token, self.pos = gettoken(self.s, self.pos)
        return token

    def line(self) -> Command:
        cmd = self.pipe()
        while self.peek("&"):
            self.next()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.next()
            cmd = ListCmd(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self.peek("|"):
            self.next()
            cmd = PipeCmd(cmd, self.pipe())
        return cmd

    def redirs(self, cmd: Command) -> Command:
        while self.peek("<>"):
            op = self.next().kind
            target = self.next()
            if target.kind != WORD:
                raise ShellSyntaxError("missing file for redirection")
            if op == "<":
                cmd = RedirCmd(cmd, target.text, int(OpenFlag.RDONLY), 0)
            elif op == ">":
                mode = OpenFlag.WRONLY | OpenFlag.CREATE | OpenFlag.TRUNC
                cmd = RedirCmd(cmd, target.text, int(mode), 1)
            else:
                cmd = RedirCmd(cmd, target.text, int(OpenFlag.WRONLY | OpenFlag.CREATE), 1)
        return cmd

    def block(self) -> Command:
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.next()
        cmd = self.line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.next()
        return self.redirs(cmd)

    def exec(self) -> Command:
        if self.peek("("):
            return self.block()
        ecmd = ExecCmd()
        ret = self.redirs(ecmd)
        while not self.peek("|)&;"):
            token = self.next()
            if token.kind == END:
                break
            if token.kind != WORD:
                raise ShellSyntaxError("syntax")
            ecmd.argv.append(token.text)
            if len(ecmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self.redirs(ret)
        return ret


def parsecmd(s: str) -> Command:
    """Parse a whole command line into a command tree."""
    parser = _Parser(s)
    cmd = parser.line()
    parser.peek("")
    if parser.pos != len(s):
        raise ShellSyntaxError(f"leftovers: {s[parser.pos:]}")
    return cmd


def split_cd(line: str) -> str | None:
    """The directory of a 'cd ' line with its final character chopped, else None."""
    if not line.startswith("cd "):
        return None
    return line[3:len(line) - 1]