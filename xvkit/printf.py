"""A small printf understanding %d, %l, %x, %p, %s, %c and %%."""

from __future__ import annotations

from typing import Any, Iterator, TextIO

_DIGITS = "0123456789ABCDEF"
_UINT32 = 0xFFFFFFFF
_UINT64 = (1 << 64) - 1


def _as_int32(value: int) -> int:
    value &= _UINT32
    return value - (1 << 32) if value & 0x80000000 else value


def _printint(value: int, base: int, signed: bool) -> str:
    value = _as_int32(value)
    negative = signed and value < 0
    x = -value if negative else value & _UINT32
    digits = []
    while True:
        digits.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _printptr(value: int) -> str:
    return "0x" + format(value & _UINT64, "016X")


def _next_arg(args: Iterator[Any]) -> Any:
    try:
        return next(args)
    except StopIteration:
        raise ValueError("not enough arguments for format string") from None


def format_string(fmt: str, *args: Any) -> str:
    """Render fmt with args the way the user-space printf does."""
    remaining = iter(args)
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
            out.append(_printint(_next_arg(remaining), 10, True))
        elif c == "l":
            out.append(_printint(_next_arg(remaining), 10, False))
        elif c == "x":
            out.append(_printint(_next_arg(remaining), 16, False))
        elif c == "p":
            out.append(_printptr(_next_arg(remaining)))
        elif c == "s":
            s = _next_arg(remaining)
            out.append("(null)" if s is None else str(s))
        elif c == "c":
            ch = _next_arg(remaining)
            out.append(ch[0] if isinstance(ch, str) else chr(ch & 0xFF))
        elif c == "%":
            out.append("%")
        else:
            # Unknown sequence: print it to draw attention.
            out.append("%" + c)
    return "".join(out)


def fprintf(stream: TextIO, fmt: str, *args: Any) -> None:
    """Write the formatted text to a stream."""
    stream.write(format_string(fmt, *args))