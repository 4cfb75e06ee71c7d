"""String and input helpers of the user-space library."""

from __future__ import annotations

from typing import TextIO


def atoi(s: str) -> int:
    """Convert the leading decimal digits of s; no sign, no whitespace."""
    n = 0
    for ch in s:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + ord(ch) - ord("0")
    return n


def itoa(n: int) -> str:
    """Render an integer in decimal, with a leading '-' when negative."""
    return str(int(n))


def _cbytes(s: str | bytes) -> bytes:
    data = s.encode() if isinstance(s, str) else bytes(s)
    return data.split(b"\0", 1)[0]


def strcmp(p: str | bytes, q: str | bytes) -> int:
    """Compare as NUL-terminated strings; return the first byte difference."""
    a, b = _cbytes(p), _cbytes(q)
    for x, y in zip(a, b):
        if x != y:
            return x - y
    if len(a) == len(b):
        return 0
    return a[len(b)] if len(a) > len(b) else -b[len(a)]


def gets(stream: TextIO, max_len: int) -> str:
    """Read up to max_len - 1 characters, stopping after a newline or return."""
    chars = []
    while len(chars) + 1 < max_len:
        c = stream.read(1)
        if not c:
            break
        chars.append(c)
        if c in ("\n", "\r"):
            break
    return "".join(chars)