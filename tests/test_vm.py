import pytest

from xvkit.riscv import (
    KERNBASE,
    MAXVA,
    PGSIZE,
    SATP_SV39,
    TRAMPOLINE,
    UART0,
    PteFlag,
)
from xvkit.vm import (
    BadAddress,
    OutOfMemory,
    PhysicalMemory,
    PageTable,
    VmPanic,
    kvminit,
    kvmpa,
    uvmcreate,
)

USER_RW = PteFlag.R | PteFlag.W | PteFlag.U


@pytest.fixture
def memory():
    return PhysicalMemory(64)


@pytest.fixture
def pt(memory):
    return uvmcreate(memory)


def test_kalloc_and_kfree_track_free_pages(memory):
    before = memory.free_pages()
    pa = memory.kalloc()
    assert pa % PGSIZE == 0
    assert memory.free_pages() == before - 1
    memory.kfree(pa)
    assert memory.free_pages() == before


def test_kalloc_exhaustion_raises():
    mem = PhysicalMemory(2)
    mem.kalloc()
    mem.kalloc()
    with pytest.raises(OutOfMemory):
        mem.kalloc()


def test_kfree_rejects_double_free_and_misaligned(memory):
    pa = memory.kalloc()
    memory.kfree(pa)
    with pytest.raises(VmPanic):
        memory.kfree(pa)
    with pytest.raises(VmPanic):
        memory.kfree(pa + 1)


def test_read_write_and_pte_round_trip(memory):
    pa = memory.kalloc()
    memory.write(pa + 10, b"hello")
    assert memory.read(pa + 10, 5) == b"hello"
    memory.write_pte(pa, 3, (1 << 63) | 7)
    assert memory.read_pte(pa, 3) == (1 << 63) | 7


def test_read_outside_memory_raises(memory):
    with pytest.raises(BadAddress):
        memory.read(memory.end, 1)


def test_mappages_and_walkaddr(pt, memory):
    pa = memory.kalloc()
    pt.mappages(PGSIZE * 5, PGSIZE, pa, USER_RW)
    assert pt.walkaddr(PGSIZE * 5) == pa
    assert pt.walkaddr(PGSIZE * 6) is None


def test_walkaddr_requires_user_bit(pt, memory):
    pa = memory.kalloc()
    pt.mappages(0, PGSIZE, pa, PteFlag.R | PteFlag.W)
    assert pt.walkaddr(0) is None


def test_walk_limits(pt):
    with pytest.raises(VmPanic):
        pt.walk(MAXVA, False)
    assert pt.walkaddr(MAXVA) is None
    assert pt.walk(0, False) is None


def test_remap_panics(pt, memory):
    pa = memory.kalloc()
    pt.mappages(0, PGSIZE, pa, USER_RW)
    with pytest.raises(VmPanic, match="remap"):
        pt.mappages(0, PGSIZE, pa, USER_RW)


def test_uvmalloc_zeroes_reused_pages(memory):
    junk = [memory.kalloc() for _ in range(10)]
    for pa in junk:
        memory.write(pa, b"\xaa" * PGSIZE)
    for pa in junk:
        memory.kfree(pa)
    pt = uvmcreate(memory)
    assert pt.uvmalloc(0, 3 * PGSIZE) == 3 * PGSIZE
    assert pt.copyin(0, 3 * PGSIZE) == bytes(3 * PGSIZE)


def test_uvmalloc_shrink_request_returns_old_size(pt):
    assert pt.uvmalloc(2 * PGSIZE, PGSIZE) == 2 * PGSIZE


def test_uvmalloc_out_of_memory_rolls_back():
    mem = PhysicalMemory(4)
    pt = uvmcreate(mem)
    with pytest.raises(OutOfMemory):
        pt.uvmalloc(0, 10 * PGSIZE)
    assert pt.walkaddr(0) is None


def test_uvmdealloc_releases_pages(pt, memory):
    pt.uvmalloc(0, 4 * PGSIZE)
    before = memory.free_pages()
    assert pt.uvmdealloc(4 * PGSIZE, PGSIZE) == PGSIZE
    assert memory.free_pages() == before + 3
    assert pt.walkaddr(0) is not None and pt.walkaddr(PGSIZE) is None


def test_uvmfree_returns_everything(memory):
    initial = memory.free_pages()
    pt = uvmcreate(memory)
    pt.uvmalloc(0, 3 * PGSIZE)
    pt.uvmfree(3 * PGSIZE)
    assert memory.free_pages() == initial


def test_freewalk_with_leaf_panics(pt):
    pt.uvmalloc(0, PGSIZE)
    with pytest.raises(VmPanic, match="leaf"):
        pt.freewalk()


def test_copy_round_trip_across_pages(pt):
    pt.uvmalloc(0, 2 * PGSIZE)
    data = bytes(range(256)) * 4
    pt.copyout(PGSIZE - 100, data)
    assert pt.copyin(PGSIZE - 100, len(data)) == data


def test_copyout_to_unmapped_raises(pt):
    with pytest.raises(BadAddress):
        pt.copyout(PGSIZE, b"x")
    with pytest.raises(BadAddress):
        pt.copyin(PGSIZE, 1)


def test_copyinstr(pt):
    pt.uvmalloc(0, 2 * PGSIZE)
    pt.copyout(PGSIZE - 3, b"abcdef\0tail")
    assert pt.copyinstr(PGSIZE - 3, 100) == b"abcdef"
    with pytest.raises(BadAddress):
        pt.copyinstr(PGSIZE - 3, 4)


def test_uvmcopy_makes_independent_copy(pt, memory):
    pt.uvmalloc(0, 2 * PGSIZE)
    pt.copyout(0, b"parent")
    child = uvmcreate(memory)
    pt.uvmcopy(child, 2 * PGSIZE)
    assert child.copyin(0, 6) == b"parent"
    child.copyout(0, b"child!")
    assert pt.copyin(0, 6) == b"parent"
    assert child.walkaddr(0) != pt.walkaddr(0)


def test_uvmclear_removes_user_access(pt):
    pt.uvmalloc(0, 2 * PGSIZE)
    pt.uvmclear(0)
    assert pt.walkaddr(0) is None
    assert pt.walkaddr(PGSIZE) is not None


def test_uvmunmap_errors(pt):
    with pytest.raises(VmPanic, match="not aligned"):
        pt.uvmunmap(1, 1, False)
    pt.uvmalloc(0, PGSIZE)
    with pytest.raises(VmPanic, match="not mapped"):
        pt.uvmunmap(PGSIZE, 1, False)


def test_uvminit(pt):
    pt.uvminit(b"\x13\x00\x00\x00")
    assert pt.copyin(0, 4) == b"\x13\x00\x00\x00"
    other = uvmcreate(pt.memory)
    with pytest.raises(VmPanic):
        other.uvminit(bytes(PGSIZE))


def test_satp_selects_sv39_and_root(pt):
    value = pt.satp()
    assert value & SATP_SV39 == SATP_SV39
    assert (value & ((1 << 44) - 1)) << 12 == pt.root


def test_kvminit_direct_map():
    mem = PhysicalMemory(128)
    etext = KERNBASE + 16 * PGSIZE
    trampoline = KERNBASE + 4 * PGSIZE
    kpt = kvminit(mem, etext, trampoline)
    assert isinstance(kpt, PageTable)
    assert kvmpa(kpt, UART0) == UART0
    assert kvmpa(kpt, KERNBASE + 123) == KERNBASE + 123
    assert kvmpa(kpt, TRAMPOLINE + 5) == trampoline + 5
    with pytest.raises(VmPanic):
        kvmpa(kpt, 0)


def test_kvmmap_out_of_memory_panics():
    mem = PhysicalMemory(1)
    pt = uvmcreate(mem)
    with pytest.raises(VmPanic, match="kvmmap"):
        pt.kvmmap(UART0, UART0, PGSIZE, PteFlag.R)