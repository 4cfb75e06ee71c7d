"""The Park-Miller minimal standard pseudo-random generator."""

from __future__ import annotations

from dataclasses import dataclass

_MODULUS = 0x7FFFFFFF


def do_rand(ctx: int) -> int:
    """Advance the state ctx and return the new state, in [0, 0x7ffffffd]."""
    x = ctx % 0x7FFFFFFE + 1
    hi, lo = divmod(x, 127773)
    x = 16807 * lo - 2836 * hi
    if x < 0:
        x += _MODULUS
    return x - 1


@dataclass
class ParkMiller:
    """A generator holding its state between calls."""

    state: int = 1

    def next(self) -> int:
        """Return the next number and advance the state."""
        self.state = do_rand(self.state)
        return self.state