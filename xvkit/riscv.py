"""Sv39 paging helpers, the physical memory map and system-wide limits."""

from __future__ import annotations

from enum import IntFlag

UINT64_MASK = (1 << 64) - 1

# System limits.
NPROC = 64
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000
MAXPATH = 128

# Machine status register.
MSTATUS_MPP_MASK = 3 << 11
MSTATUS_MPP_M = 3 << 11
MSTATUS_MPP_S = 1 << 11
MSTATUS_MPP_U = 0 << 11
MSTATUS_MIE = 1 << 3

# Supervisor status register.
SSTATUS_SPP = 1 << 8
SSTATUS_SPIE = 1 << 5
SSTATUS_UPIE = 1 << 4
SSTATUS_SIE = 1 << 1
SSTATUS_UIE = 1 << 0

# Supervisor interrupt enable.
SIE_SEIE = 1 << 9
SIE_STIE = 1 << 5
SIE_SSIE = 1 << 1

# Machine-mode interrupt enable.
MIE_MEIE = 1 << 11
MIE_MTIE = 1 << 7
MIE_MSIE = 1 << 3

SATP_SV39 = 8 << 60

PGSIZE = 4096
PGSHIFT = 12
PXMASK = 0x1FF

# One beyond the highest usable virtual address.
MAXVA = 1 << (9 + 9 + 9 + 12 - 1)

# Physical memory layout of the emulated board.
UART0 = 0x10000000
UART0_IRQ = 10
VIRTIO0 = 0x10001000
VIRTIO0_IRQ = 1
CLINT = 0x2000000
CLINT_MTIME = CLINT + 0xBFF8
PLIC = 0x0C000000
PLIC_PRIORITY = PLIC + 0x0
PLIC_PENDING = PLIC + 0x1000
KERNBASE = 0x80000000
PHYSTOP = KERNBASE + 128 * 1024 * 1024

TRAMPOLINE = MAXVA - PGSIZE
TRAPFRAME = TRAMPOLINE - PGSIZE


class PteFlag(IntFlag):
    """Bits of a page-table entry."""

    V = 1 << 0
    R = 1 << 1
    W = 1 << 2
    X = 1 << 3
    U = 1 << 4


class OpenFlag(IntFlag):
    """Modes accepted by open()."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200
    TRUNC = 0x400


def pgroundup(sz: int) -> int:
    """Round a size up to a whole number of pages."""
    return ((sz + PGSIZE - 1) & ~(PGSIZE - 1)) & UINT64_MASK


def pgrounddown(a: int) -> int:
    """Round an address down to the start of its page."""
    return (a & ~(PGSIZE - 1)) & UINT64_MASK


def pa2pte(pa: int) -> int:
    """Shift a physical address into the PPN field of a PTE."""
    return ((pa >> 12) << 10) & UINT64_MASK


def pte2pa(pte: int) -> int:
    """Extract the physical address a PTE points at."""
    return ((pte >> 10) << 12) & UINT64_MASK


def pte_flags(pte: int) -> int:
    """Return the low ten flag bits of a PTE."""
    return pte & 0x3FF


def pxshift(level: int) -> int:
    """Bit position of the page-table index for a level."""
    return PGSHIFT + 9 * level


def px(level: int, va: int) -> int:
    """The 9-bit page-table index of va at the given level."""
    return ((va & UINT64_MASK) >> pxshift(level)) & PXMASK


def make_satp(pagetable: int) -> int:
    """Build a satp value selecting Sv39 with the given root table."""
    return SATP_SV39 | ((pagetable & UINT64_MASK) >> 12)


def kstack(p: int) -> int:
    """Virtual address of the kernel stack for process slot p."""
    return TRAMPOLINE - (p + 1) * 2 * PGSIZE


def clint_mtimecmp(hartid: int) -> int:
    return CLINT + 0x4000 + 8 * hartid


def plic_menable(hart: int) -> int:
    return PLIC + 0x2000 + hart * 0x100


def plic_senable(hart: int) -> int:
    return PLIC + 0x2080 + hart * 0x100


def plic_mpriority(hart: int) -> int:
    return PLIC + 0x200000 + hart * 0x2000


def plic_spriority(hart: int) -> int:
    return PLIC + 0x201000 + hart * 0x2000


def plic_mclaim(hart: int) -> int:
    return PLIC + 0x200004 + hart * 0x2000


def plic_sclaim(hart: int) -> int:
    return PLIC + 0x201004 + hart * 0x2000