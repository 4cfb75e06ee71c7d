"""Small file utilities: cat, echo, wc, find and ls name formatting."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import IO, AnyStr, Iterator, Sequence

from xvkit.printf import format_string

CHUNK = 512
DIRSIZ = 14
MAX_FIND_PATH = 200
# A NUL counts as a separator too.
_WC_SPACE = " \r\t\n\v\0"


def cat(stream: IO[AnyStr], out: IO[AnyStr]) -> None:
    """Copy everything from stream to out."""
    while chunk := stream.read(CHUNK):
        out.write(chunk)


def echo(args: Sequence[str]) -> str:
    """The arguments joined by spaces and ended by a newline; nothing for none."""
    if not args:
        return ""
    return " ".join(args) + "\n"


@dataclass(frozen=True)
class WordCount:
    lines: int
    words: int
    chars: int


def wc(stream: IO[AnyStr]) -> WordCount:
    """Count lines, words and characters (bytes for binary streams)."""
    lines = words = chars = 0
    inword = False
    while chunk := stream.read(CHUNK):
        text = chunk.decode("latin-1") if isinstance(chunk, bytes) else chunk
        for c in text:
            chars += 1
            if c == "\n":
                lines += 1
            if c in _WC_SPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return WordCount(lines, words, chars)


def fmtname(path: str) -> str:
    """The last path component, blank-padded to DIRSIZ unless already that long."""
    name = path.rsplit("/", 1)[-1]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def _walk(path: str, target: str) -> Iterator[str]:
    with os.scandir(path) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        full = f"{path}/{entry.name}"
        if entry.is_file(follow_symlinks=False):
            if entry.name == target:
                yield full
        elif entry.is_dir(follow_symlinks=False):
            if entry.name == target:
                yield full
            if len(full) > MAX_FIND_PATH:
                sys.stderr.write(f"find: path({full}) too long\n")
                continue
            try:
                yield from _walk(full, target)
            except OSError:
                sys.stderr.write(f"find: cannot open {full}\n")


def find(path: str, target: str) -> Iterator[str]:
    """Yield every file or directory below path whose name equals target."""
    if len(path) > MAX_FIND_PATH:
        raise ValueError(f"find: path({path}) too long")
    yield from _walk(path, target)


def cat_main(argv: list[str] | None = None) -> int:
    """Concatenate the named files, or standard input, to standard output."""
    args = sys.argv[1:] if argv is None else argv
    out = sys.stdout.buffer
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
            try:
                cat(f, out)
            except OSError:
                sys.stderr.write("cat: read error\n")
                return 1
    out.flush()
    return 0


def echo_main(argv: list[str] | None = None) -> int:
    """Print the arguments."""
    args = sys.argv[1:] if argv is None else argv
    sys.stdout.write(echo(args))
    return 0


def _print_wc(stream: IO[bytes], name: str) -> bool:
    try:
        counts = wc(stream)
    except OSError:
        sys.stdout.write("wc: read error\n")
        return False
    sys.stdout.write(format_string("%d %d %d %s\n", counts.lines, counts.words, counts.chars, name))
    return True


def wc_main(argv: list[str] | None = None) -> int:
    """Print line, word and byte counts of the named files, or standard input."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        return 0 if _print_wc(sys.stdin.buffer, "") else 1
    for name in args:
        try:
            f = open(name, "rb")
        except OSError:
            sys.stdout.write(f"wc: cannot open {name}\n")
            return 1
        with f:
            if not _print_wc(f, name):
                return 1
    return 0


def find_main(argv: list[str] | None = None) -> int:
    """Print every path below a directory whose name matches."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) < 2:
        sys.stderr.write(f"expect 2 args, but get {len(args)}\n")
        return 0
    path, target = args[0], args[1]
    try:
        for found in find(path, target):
            sys.stdout.write(found + "\n")
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
    except NotADirectoryError:
        sys.stderr.write(f"find: {path} is not a directory\n")
    except OSError:
        sys.stderr.write(f"find: cannot open {path}\n")
    return 0