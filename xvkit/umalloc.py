"""A first-fit free-list allocator over a break-extended heap."""

from __future__ import annotations

from dataclasses import dataclass, field

HEADER_SIZE = 16  # bytes per header and per allocation unit
MIN_GROWTH_UNITS = 4096


@dataclass
class Heap:
    """A region that grows and shrinks by moving its break."""

    start: int = 0x4000
    limit: int = 1 << 24
    brk: int = field(init=False)

    def __post_init__(self) -> None:
        self.brk = self.start

    def sbrk(self, n: int) -> int:
        """Move the break by n bytes and return the previous break."""
        new = self.brk + n
        if new < self.start or new > self.start + self.limit:
            raise MemoryError("sbrk: cannot move break")
        old, self.brk = self.brk, new
        return old


class Allocator:
    """malloc and free over a Heap, keeping an address-ordered circular free list."""

    def __init__(self, heap: Heap) -> None:
        self.heap = heap
        self._base = heap.start - HEADER_SIZE
        self._size: dict[int, int] = {}
        self._next: dict[int, int] = {}
        self._freep: int | None = None

    def _morecore(self, nu: int) -> int:
        nu = max(nu, MIN_GROWTH_UNITS)
        hp = self.heap.sbrk(nu * HEADER_SIZE)
        self._size[hp] = nu
        self.free(hp + HEADER_SIZE)
        assert self._freep is not None
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Return the address of a block of at least nbytes."""
        if nbytes < 0:
            raise ValueError("negative allocation size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._next[self._base] = self._base
            self._size[self._base] = 0
            self._freep = self._base
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next.pop(p)
                else:
                    self._size[p] -= nunits
                    p += self._size[p] * HEADER_SIZE
                    self._size[p] = nunits
                self._freep = prevp
                return p + HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._next[p]

    def free(self, ap: int) -> None:
        """Return a block obtained from malloc."""
        bp = ap - HEADER_SIZE
        if self._freep is None or bp not in self._size or bp in self._next:
            raise ValueError(f"free of address {ap:#x} that is not allocated")
        nxt = self._next
        p = self._freep
        while not (p < bp < nxt[p]):
            if p >= nxt[p] and (bp > p or bp < nxt[p]):
                break
            p = nxt[p]
        q = nxt[p]
        if bp + self._size[bp] * HEADER_SIZE == q:
            self._size[bp] += self._size.pop(q)
            nxt[bp] = nxt.pop(q)
        else:
            nxt[bp] = q
        if p + self._size[p] * HEADER_SIZE == bp:
            self._size[p] += self._size.pop(bp)
            nxt[p] = nxt.pop(bp)
        else:
            nxt[p] = bp
        self._freep = p