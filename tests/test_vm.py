import pytest

from xvtools.riscv import MAXVA, PGSIZE, PTE_R, PTE_U, PTE_W, PTE_X, pte2pa
from xvtools.vm import OutOfMemory, PageTable, PhysicalMemory, VMPanic

USER_RW = PTE_R | PTE_W | PTE_U


@pytest.fixture
def mem():
    return PhysicalMemory(npages=64)


@pytest.fixture
def pt(mem):
    return PageTable.create(mem)


def test_kalloc_exhaustion_raises():
    small = PhysicalMemory(npages=1)
    small.kalloc()
    with pytest.raises(OutOfMemory):
        small.kalloc()


def test_kfree_rejects_double_free(mem):
    page = mem.kalloc()
    mem.kfree(page)
    with pytest.raises(VMPanic):
        mem.kfree(page)


def test_pte_storage_round_trip(mem):
    page = mem.kalloc()
    mem.write_pte(page + 16, 0xDEADBEEF)
    assert mem.read_pte(page + 16) == 0xDEADBEEF
    assert mem.read_pte(page + 8) == 0


def test_map_and_walkaddr(mem, pt):
    page = mem.kalloc()
    pt.map_pages(PGSIZE, PGSIZE, page, USER_RW)
    assert pt.walkaddr(PGSIZE) == page
    assert pt.walkaddr(2 * PGSIZE) is None
    assert pte2pa(mem.read_pte(pt.walk(PGSIZE))) == page


def test_walkaddr_requires_user_bit(mem, pt):
    page = mem.kalloc()
    pt.map_pages(0, PGSIZE, page, PTE_R | PTE_W)
    assert pt.walkaddr(0) is None


def test_walk_beyond_maxva_panics(pt):
    with pytest.raises(VMPanic):
        pt.walk(MAXVA)
    assert pt.walkaddr(MAXVA) is None


def test_remap_panics(mem, pt):
    page = mem.kalloc()
    pt.map_pages(0, PGSIZE, page, USER_RW)
    with pytest.raises(VMPanic, match="remap"):
        pt.map_pages(0, PGSIZE, page, USER_RW)


def test_zero_size_mapping_panics(mem, pt):
    with pytest.raises(VMPanic, match="size"):
        pt.map_pages(0, 0, mem.kalloc(), USER_RW)


def test_first_page_uses_two_intermediate_tables(mem, pt):
    before = mem.free_pages
    assert pt.grow(0, PGSIZE, 0) == PGSIZE
    assert before - mem.free_pages == 3


def test_grow_and_shrink(pt):
    size = 3 * PGSIZE + 10
    assert pt.grow(0, size, PTE_W) == size
    assert all(pt.walkaddr(va) is not None for va in range(0, size, PGSIZE))
    assert pt.shrink(size, PGSIZE) == PGSIZE
    assert pt.walkaddr(0) is not None
    assert pt.walkaddr(PGSIZE) is None
    assert pt.grow(PGSIZE, 0, PTE_W) == PGSIZE
    assert pt.shrink(PGSIZE, 2 * PGSIZE) == PGSIZE


def test_grow_out_of_memory_rolls_back():
    mem = PhysicalMemory(npages=8)
    pt = PageTable.create(mem)
    with pytest.raises(OutOfMemory):
        pt.grow(0, 20 * PGSIZE, PTE_W)
    assert all(pt.walkaddr(va) is None for va in range(0, 20 * PGSIZE, PGSIZE))


def test_free_returns_all_pages(mem):
    total = mem.free_pages
    pt = PageTable.create(mem)
    size = pt.grow(0, 5 * PGSIZE, PTE_W)
    pt.free(size)
    assert mem.free_pages == total


def test_copy_out_and_in_across_pages(pt):
    pt.grow(0, 2 * PGSIZE, PTE_W)
    data = bytes(range(256)) * 2
    start = PGSIZE - 100
    pt.copy_out(start, data)
    assert pt.copy_in(start, len(data)) == data


def test_copy_to_unmapped_address_fails(pt):
    with pytest.raises(ValueError):
        pt.copy_out(0, b"x")
    with pytest.raises(ValueError):
        pt.copy_in(0, 1)


def test_copy_in_str(pt):
    pt.grow(0, 2 * PGSIZE, PTE_W)
    pt.copy_out(PGSIZE - 3, b"hello\0world")
    assert pt.copy_in_str(PGSIZE - 3, 100) == b"hello"
    with pytest.raises(ValueError):
        pt.copy_in_str(PGSIZE - 3, 5)


def test_copy_in_str_runs_off_mapping(pt):
    pt.grow(0, PGSIZE, PTE_W)
    pt.copy_out(PGSIZE - 2, b"ab")
    with pytest.raises(ValueError):
        pt.copy_in_str(PGSIZE - 2, 100)


def test_copy_to_duplicates_memory(mem, pt):
    pt.grow(0, 2 * PGSIZE, PTE_W)
    pt.copy_out(10, b"parent")
    child = PageTable.create(mem)
    pt.copy_to(child, 2 * PGSIZE)
    assert child.copy_in(10, 6) == b"parent"
    assert child.walkaddr(0) != pt.walkaddr(0)
    child.copy_out(10, b"child!")
    assert pt.copy_in(10, 6) == b"parent"


def test_clear_user_hides_page(pt):
    pt.grow(0, 2 * PGSIZE, PTE_W)
    pt.clear_user(0)
    assert pt.walkaddr(0) is None
    assert pt.walkaddr(PGSIZE) is not None


def test_load_first(pt):
    pt.load_first(b"\x13\x00\x00\x00")
    assert pt.copy_in(0, 4) == b"\x13\x00\x00\x00"
    assert pt.copy_in(4, 4) == bytes(4)
    assert pte2pa(pt.mem.read_pte(pt.walk(0))) == pt.walkaddr(0)
    assert pt.mem.read_pte(pt.walk(0)) & PTE_X


def test_load_first_rejects_full_page(pt):
    with pytest.raises(VMPanic):
        pt.load_first(bytes(PGSIZE))


def test_unmap_errors(pt):
    with pytest.raises(VMPanic, match="not aligned"):
        pt.unmap(1, 1, False)
    with pytest.raises(VMPanic, match="walk"):
        pt.unmap(0, 1, False)


def test_free_walk_with_leaf_panics(pt):
    pt.grow(0, PGSIZE, PTE_W)
    with pytest.raises(VMPanic, match="leaf"):
        pt.free_walk()


def test_dump_lists_levels(pt):
    pt.grow(0, PGSIZE, PTE_W)
    lines = pt.dump().splitlines()
    assert lines[0] == f"page table 0x{pt.root:016x}"
    assert len(lines) == 4
    assert lines[1].startswith("..0: pte 0x")
    assert lines[2].startswith(".. ..0: pte 0x")
    assert lines[3].startswith(".. .. ..0: pte 0x")
    assert lines[3].endswith(f"pa 0x{pt.walkaddr(0):016x}")