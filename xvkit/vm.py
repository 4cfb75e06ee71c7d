"""Sv39 page tables over a simulated pool of physical pages."""

from __future__ import annotations

import struct

from xvkit.riscv import (
    CLINT,
    KERNBASE,
    MAXVA,
    PGSIZE,
    PHYSTOP,
    PLIC,
    TRAMPOLINE,
    UART0,
    VIRTIO0,
    PteFlag,
    make_satp,
    pa2pte,
    pgrounddown,
    pgroundup,
    pte2pa,
    pte_flags,
    px,
)

_PTE = struct.Struct("<Q")
_PTES_PER_TABLE = PGSIZE // _PTE.size
_V = int(PteFlag.V)
_U = int(PteFlag.U)
_RWX = int(PteFlag.R | PteFlag.W | PteFlag.X)


class VmPanic(RuntimeError):
    """An unrecoverable inconsistency that would halt the kernel."""


class OutOfMemory(MemoryError):
    """No free physical page was available."""


class BadAddress(ValueError):
    """A virtual or physical address that cannot be accessed."""


class PhysicalMemory:
    """A contiguous range of physical pages with a page allocator."""

    def __init__(self, npages: int, base: int = KERNBASE) -> None:
        if npages <= 0:
            raise ValueError("npages must be positive")
        if base % PGSIZE:
            raise ValueError("base must be page aligned")
        self.base = base
        self.end = base + npages * PGSIZE
        self._ram = bytearray(npages * PGSIZE)
        self._free = [base + i * PGSIZE for i in reversed(range(npages))]
        self._allocated: set[int] = set()

    def kalloc(self) -> int:
        """Hand out one free page and return its physical address."""
        if not self._free:
            raise OutOfMemory("out of physical pages")
        pa = self._free.pop()
        self._allocated.add(pa)
        return pa

    def kfree(self, pa: int) -> None:
        """Return a page obtained from kalloc to the pool."""
        if pa % PGSIZE or pa not in self._allocated:
            raise VmPanic("kfree")
        self._allocated.discard(pa)
        self._free.append(pa)

    def free_pages(self) -> int:
        """Number of pages that kalloc can still hand out."""
        return len(self._free)

    def _offset(self, pa: int, n: int) -> int:
        if n < 0 or pa < self.base or pa + n > self.end:
            raise BadAddress(f"physical address {pa:#x} outside memory")
        return pa - self.base

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes starting at a physical address."""
        off = self._offset(pa, n)
        return bytes(self._ram[off:off + n])

    def write(self, pa: int, data: bytes) -> None:
        """Store bytes at a physical address."""
        off = self._offset(pa, len(data))
        self._ram[off:off + len(data)] = data

    def read_pte(self, table: int, index: int) -> int:
        """Read the 64-bit entry at index of the table page at table."""
        return _PTE.unpack_from(self._ram, self._offset(table + 8 * index, 8))[0]

    def write_pte(self, table: int, index: int, value: int) -> None:
        """Store a 64-bit entry at index of the table page at table."""
        _PTE.pack_into(self._ram, self._offset(table + 8 * index, 8), value)


class PageTable:
    """A three-level Sv39 page table rooted at a physical page."""

    def __init__(self, memory: PhysicalMemory, root: int) -> None:
        self.memory = memory
        self.root = root

    def _load(self, addr: int) -> int:
        return self.memory.read_pte(addr, 0)

    def _store(self, addr: int, value: int) -> None:
        self.memory.write_pte(addr, 0, value)

    def _zero(self, pa: int) -> None:
        self.memory.write(pa, bytes(PGSIZE))

    def walk(self, va: int, alloc: bool) -> int | None:
        """Physical address of the level-0 PTE for va, creating tables if alloc."""
        if va >= MAXVA:
            raise VmPanic("walk")
        table = self.root
        for level in (2, 1):
            index = px(level, va)
            pte = self.memory.read_pte(table, index)
            if pte & _V:
                table = pte2pa(pte)
                continue
            if not alloc:
                return None
            try:
                child = self.memory.kalloc()
            except OutOfMemory:
                return None
            self._zero(child)
            self.memory.write_pte(table, index, pa2pte(child) | _V)
            table = child
        return table + 8 * px(0, va)

    def walkaddr(self, va: int) -> int | None:
        """Physical address of a user page, or None if it is not user-mapped."""
        if va >= MAXVA:
            return None
        addr = self.walk(va, False)
        if addr is None:
            return None
        pte = self._load(addr)
        if not pte & _V or not pte & _U:
            return None
        return pte2pa(pte)

    def mappages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map [va, va+size) onto physical memory starting at pa."""
        if size <= 0:
            raise VmPanic("mappages: size")
        a = pgrounddown(va)
        last = pgrounddown(va + size - 1)
        while True:
            addr = self.walk(a, True)
            if addr is None:
                raise OutOfMemory("no page for a page-table page")
            if self._load(addr) & _V:
                raise VmPanic("remap")
            self._store(addr, pa2pte(pa) | int(perm) | _V)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def kvmmap(self, va: int, pa: int, sz: int, perm: int) -> None:
        """Add a kernel mapping; running out of memory here is fatal."""
        try:
            self.mappages(va, sz, pa, perm)
        except OutOfMemory:
            raise VmPanic("kvmmap") from None

    def uvmunmap(self, va: int, npages: int, do_free: bool) -> None:
        """Remove npages existing mappings from va, optionally freeing them."""
        if va % PGSIZE:
            raise VmPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            addr = self.walk(a, False)
            if addr is None:
                raise VmPanic("uvmunmap: walk")
            pte = self._load(addr)
            if not pte & _V:
                raise VmPanic("uvmunmap: not mapped")
            if pte_flags(pte) == _V:
                raise VmPanic("uvmunmap: not a leaf")
            if do_free:
                self.memory.kfree(pte2pa(pte))
            self._store(addr, 0)

    def uvminit(self, src: bytes) -> None:
        """Load initial code, smaller than a page, at virtual address 0."""
        if len(src) >= PGSIZE:
            raise VmPanic("inituvm: more than a page")
        mem = self.memory.kalloc()
        self._zero(mem)
        self.mappages(0, PGSIZE, mem, PteFlag.W | PteFlag.R | PteFlag.X | PteFlag.U)
        self.memory.write(mem, bytes(src))

    def uvmalloc(self, oldsz: int, newsz: int) -> int:
        """Grow user memory from oldsz to newsz and return the new size."""
        if newsz < oldsz:
            return oldsz
        oldsz = pgroundup(oldsz)
        perm = PteFlag.W | PteFlag.X | PteFlag.R | PteFlag.U
        for a in range(oldsz, newsz, PGSIZE):
            try:
                mem = self.memory.kalloc()
            except OutOfMemory:
                self.uvmdealloc(a, oldsz)
                raise
            self._zero(mem)
            try:
                self.mappages(a, PGSIZE, mem, perm)
            except OutOfMemory:
                self.memory.kfree(mem)
                self.uvmdealloc(a, oldsz)
                raise
        return newsz

    def uvmdealloc(self, oldsz: int, newsz: int) -> int:
        """Shrink user memory from oldsz to newsz and return the new size."""
        if newsz >= oldsz:
            return oldsz
        if pgroundup(newsz) < pgroundup(oldsz):
            npages = (pgroundup(oldsz) - pgroundup(newsz)) // PGSIZE
            self.uvmunmap(pgroundup(newsz), npages, True)
        return newsz

    def _freewalk(self, table: int) -> None:
        for i in range(_PTES_PER_TABLE):
            pte = self.memory.read_pte(table, i)
            if pte & _V and not pte & _RWX:
                self._freewalk(pte2pa(pte))
                self.memory.write_pte(table, i, 0)
            elif pte & _V:
                raise VmPanic("freewalk: leaf")
        self.memory.kfree(table)

    def freewalk(self) -> None:
        """Free every page-table page; all leaves must already be gone."""
        self._freewalk(self.root)

    def uvmfree(self, sz: int) -> None:
        """Free the user pages below sz and then the table itself."""
        if sz > 0:
            self.uvmunmap(0, pgroundup(sz) // PGSIZE, True)
        self.freewalk()

    def uvmcopy(self, new: PageTable, sz: int) -> None:
        """Copy the first sz bytes of memory and mappings into new."""
        i = 0
        try:
            while i < sz:
                addr = self.walk(i, False)
                if addr is None:
                    raise VmPanic("uvmcopy: pte should exist")
                pte = self._load(addr)
                if not pte & _V:
                    raise VmPanic("uvmcopy: page not present")
                pa = pte2pa(pte)
                mem = self.memory.kalloc()
                self.memory.write(mem, self.memory.read(pa, PGSIZE))
                try:
                    new.mappages(i, PGSIZE, mem, pte_flags(pte))
                except OutOfMemory:
                    self.memory.kfree(mem)
                    raise
                i += PGSIZE
        except OutOfMemory:
            new.uvmunmap(0, i // PGSIZE, True)
            raise

    def uvmclear(self, va: int) -> None:
        """Make a page inaccessible to user mode."""
        addr = self.walk(va, False)
        if addr is None:
            raise VmPanic("uvmclear")
        self._store(addr, self._load(addr) & ~_U)

    def _user_page(self, va0: int) -> int:
        pa0 = self.walkaddr(va0)
        if pa0 is None:
            raise BadAddress(f"virtual address {va0:#x} is not mapped for user access")
        return pa0

    def copyout(self, dstva: int, src: bytes) -> None:
        """Copy bytes into user memory at dstva."""
        data = memoryview(bytes(src))
        while data:
            va0 = pgrounddown(dstva)
            pa0 = self._user_page(va0)
            n = min(PGSIZE - (dstva - va0), len(data))
            self.memory.write(pa0 + (dstva - va0), data[:n])
            data = data[n:]
            dstva = va0 + PGSIZE

    def copyin(self, srcva: int, length: int) -> bytes:
        """Copy length bytes out of user memory at srcva."""
        out = bytearray()
        while length > 0:
            va0 = pgrounddown(srcva)
            pa0 = self._user_page(va0)
            n = min(PGSIZE - (srcva - va0), length)
            out += self.memory.read(pa0 + (srcva - va0), n)
            length -= n
            srcva = va0 + PGSIZE
        return bytes(out)

    def copyinstr(self, srcva: int, max_len: int) -> bytes:
        """Copy a NUL-terminated string of at most max_len bytes from user memory."""
        out = bytearray()
        while max_len > 0:
            va0 = pgrounddown(srcva)
            pa0 = self._user_page(va0)
            n = min(PGSIZE - (srcva - va0), max_len)
            chunk = self.memory.read(pa0 + (srcva - va0), n)
            nul = chunk.find(0)
            if nul >= 0:
                out += chunk[:nul]
                return bytes(out)
            out += chunk
            max_len -= n
            srcva = va0 + PGSIZE
        raise BadAddress("string is not terminated within the limit")

    def satp(self) -> int:
        """The satp register value that selects this table."""
        return make_satp(self.root)


def uvmcreate(memory: PhysicalMemory) -> PageTable:
    """Create an empty page table."""
    root = memory.kalloc()
    memory.write(root, bytes(PGSIZE))
    return PageTable(memory, root)


def kvminit(memory: PhysicalMemory, etext: int, trampoline: int) -> PageTable:
    """Build the kernel's direct-mapped page table."""
    pt = uvmcreate(memory)
    rw = PteFlag.R | PteFlag.W
    rx = PteFlag.R | PteFlag.X
    pt.kvmmap(UART0, UART0, PGSIZE, rw)
    pt.kvmmap(VIRTIO0, VIRTIO0, PGSIZE, rw)
    pt.kvmmap(CLINT, CLINT, 0x10000, rw)
    pt.kvmmap(PLIC, PLIC, 0x400000, rw)
    pt.kvmmap(KERNBASE, KERNBASE, etext - KERNBASE, rx)
    pt.kvmmap(etext, etext, PHYSTOP - etext, rw)
    pt.kvmmap(TRAMPOLINE, trampoline, PGSIZE, rx)
    return pt


def kvmpa(pagetable: PageTable, va: int) -> int:
    """Translate a kernel virtual address to a physical address."""
    off = va % PGSIZE
    addr = pagetable.walk(va, False)
    if addr is None:
        raise VmPanic("kvmpa")
    pte = pagetable.memory.read_pte(addr, 0)
    if not pte & _V:
        raise VmPanic("kvmpa")
    return pte2pa(pte) + off