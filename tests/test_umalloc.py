import pytest

from xvtools.umalloc import HEADER, Allocator


def test_blocks_do_not_overlap():
    a = Allocator()
    sizes = [10, 100, 1000, 1]
    ptrs = [a.malloc(n) for n in sizes]
    spans = sorted((p, p + n) for p, n in zip(ptrs, sizes))
    for (s1, e1), (s2, _) in zip(spans, spans[1:]):
        assert e1 <= s2
    assert all(p % HEADER == 0 for p in ptrs)


def test_free_coalesces_everything():
    a = Allocator()
    ptrs = [a.malloc(n) for n in (50, 70, 90)]
    for p in (ptrs[1], ptrs[0], ptrs[2]):
        a.free(p)
    blocks = a.free_blocks()
    assert len(blocks) == 1
    assert blocks[0][0] == a.heap_base
    assert blocks[0][1] * HEADER == a.brk - a.heap_base


def test_reuse_after_free():
    a = Allocator()
    p = a.malloc(32)
    a.free(p)
    assert a.malloc(32) == p


def test_bad_free():
    a = Allocator()
    p = a.malloc(8)
    a.free(p)
    with pytest.raises(ValueError):
        a.free(p)


def test_out_of_memory():
    a = Allocator(limit=1 << 16)
    with pytest.raises(MemoryError):
        a.malloc(1 << 17)


def test_sbrk_returns_old_break():
    a = Allocator()
    old = a.brk
    assert a.sbrk(100) == old
    assert a.brk == old + 100
    with pytest.raises(MemoryError):
        a.sbrk(-200)