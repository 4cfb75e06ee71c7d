import pytest

from xvkit.umalloc import HEADER_SIZE, MIN_GROWTH_UNITS, Allocator, Heap


def test_sbrk_returns_previous_break():
    heap = Heap(start=0x1000, limit=0x1000)
    assert heap.sbrk(0x100) == 0x1000
    assert heap.sbrk(-0x80) == 0x1100
    assert heap.brk == 0x1080


def test_sbrk_limits():
    heap = Heap(start=0x1000, limit=0x1000)
    with pytest.raises(MemoryError):
        heap.sbrk(0x1001)
    with pytest.raises(MemoryError):
        heap.sbrk(-1)
    assert heap.brk == 0x1000


def test_first_malloc_grows_heap_by_minimum():
    heap = Heap()
    alloc = Allocator(heap)
    addr = alloc.malloc(10)
    assert heap.brk - heap.start == MIN_GROWTH_UNITS * HEADER_SIZE
    assert heap.start < addr < heap.brk
    assert (addr - heap.start) % HEADER_SIZE == 0


def test_blocks_do_not_overlap():
    alloc = Allocator(Heap())
    sizes = [1, 17, 100, 1000, 33]
    blocks = sorted((alloc.malloc(n), n) for n in sizes)
    for (a, n), (b, _) in zip(blocks, blocks[1:]):
        assert a + n <= b - HEADER_SIZE


def test_free_then_malloc_reuses_block():
    alloc = Allocator(Heap())
    a = alloc.malloc(200)
    alloc.free(a)
    assert alloc.malloc(200) == a


def test_freed_blocks_coalesce():
    heap = Heap()
    alloc = Allocator(heap)
    blocks = [alloc.malloc(100) for _ in range(3)]
    for b in blocks:
        alloc.free(b)
    brk = heap.brk
    alloc.malloc((MIN_GROWTH_UNITS - 1) * HEADER_SIZE)
    assert heap.brk == brk


def test_large_request_grows_heap_again():
    heap = Heap()
    alloc = Allocator(heap)
    alloc.malloc(10)
    brk = heap.brk
    big = alloc.malloc(MIN_GROWTH_UNITS * HEADER_SIZE)
    assert heap.brk > brk
    assert brk <= big < heap.brk


def test_invalid_free_raises():
    alloc = Allocator(Heap())
    a = alloc.malloc(8)
    alloc.free(a)
    with pytest.raises(ValueError):
        alloc.free(a)
    with pytest.raises(ValueError):
        alloc.free(a + 4)


def test_exhausted_heap_raises():
    alloc = Allocator(Heap(limit=MIN_GROWTH_UNITS * HEADER_SIZE))
    alloc.malloc(10)
    with pytest.raises(MemoryError):
        alloc.malloc(MIN_GROWTH_UNITS * HEADER_SIZE)


def test_negative_size_raises():
    with pytest.raises(ValueError):
        Allocator(Heap()).malloc(-1)