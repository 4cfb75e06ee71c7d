"""A grep that understands only the ^ . * $ operators."""

from __future__ import annotations

import sys
from typing import TextIO

BUFSIZE = 1024


def _here(re: str, ri: int, text: str, ti: int) -> bool:
    while True:
        if ri == len(re):
            return True
        if ri + 1 < len(re) and re[ri + 1] == "*":
            return _star(re[ri], re, ri + 2, text, ti)
        if re[ri] == "$" and ri + 1 == len(re):
            return ti == len(text)
        if ti < len(text) and re[ri] in (".", text[ti]):
            ri += 1
            ti += 1
            continue
        return False


def _star(c: str, re: str, ri: int, text: str, ti: int) -> bool:
    while True:
        if _here(re, ri, text, ti):
            return True
        if ti < len(text) and (text[ti] == c or c == "."):
            ti += 1
        else:
            return False


def match(re: str, text: str) -> bool:
    """Whether re matches anywhere in text."""
    if re.startswith("^"):
        return _here(re, 1, text, 0)
    return any(_here(re, 0, text, ti) for ti in range(len(text) + 1))


def matchhere(re: str, text: str) -> bool:
    """Whether re matches at the beginning of text."""
    return _here(re, 0, text, 0)


def matchstar(c: str, re: str, text: str) -> bool:
    """Whether c* followed by re matches at the beginning of text."""
    return _star(c, re, 0, text, 0)


def grep(pattern: str, stream: TextIO, out: TextIO) -> None:
    """Write every newline-terminated line of stream that matches pattern."""
    pending = ""
    while True:
        chunk = stream.read(BUFSIZE - 1 - len(pending))
        if not chunk:
            break
        pending += chunk
        *lines, pending = pending.split("\n")
        for line in lines:
            if match(pattern, line):
                out.write(line + "\n")


def main(argv: list[str] | None = None) -> int:
    """Run grep over the named files, or standard input; return the exit status."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, files = args[0], args[1:]
    if not files:
        grep(pattern, sys.stdin, sys.stdout)
        return 0
    for name in files:
        try:
            f = open(name, encoding="utf-8", errors="surrogateescape", newline="")
        except OSError:
            sys.stdout.write(f"grep: cannot open {name}\n")
            return 1
        with f:
            grep(pattern, f, sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())