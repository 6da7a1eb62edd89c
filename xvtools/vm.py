"""Sv39 page tables over a simulated physical memory."""

import struct

from .memlayout import KERNBASE
from .riscv import (
    MAXPTLEVEL,
    MAXVA,
    PGSIZE,
    PTE_R,
    PTE_SIZE,
    PTE_U,
    PTE_V,
    PTE_W,
    PTE_X,
    PTES_PER_TABLE,
    pa2pte,
    pg_round_down,
    pg_round_up,
    pte2pa,
    pte_flags,
    px,
)

_PTE = struct.Struct("<Q")
_TABLE = struct.Struct(f"<{PTES_PER_TABLE}Q")
_MASK64 = (1 << 64) - 1


class VMPanic(RuntimeError):
    """An invariant of the virtual-memory system was violated."""


class OutOfMemory(MemoryError):
    """No physical page could be allocated."""


def _ptr(value):
    return f"0x{value:016x}"


class PhysicalMemory:
    """A contiguous range of page-sized physical frames."""

    def __init__(self, npages=1024, base=KERNBASE):
        if npages <= 0:
            raise ValueError("physical memory needs at least one page")
        if base % PGSIZE:
            raise ValueError("physical memory base must be page aligned")
        self.base = base
        self.npages = npages
        self._data = bytearray(npages * PGSIZE)
        self._free = [base + i * PGSIZE for i in reversed(range(npages))]
        self._allocated = set()

    @property
    def end(self):
        return self.base + self.npages * PGSIZE

    @property
    def free_pages(self):
        return len(self._free)

    def kalloc(self):
        """Allocate one zeroed page and return its physical address."""
        if not self._free:
            raise OutOfMemory("kalloc: out of physical pages")
        pa = self._free.pop()
        self._allocated.add(pa)
        self.write(pa, bytes(PGSIZE))
        return pa

    def kfree(self, pa):
        """Return a page previously handed out by kalloc."""
        if pa % PGSIZE or not self.base <= pa < self.end or pa not in self._allocated:
            raise VMPanic("kfree")
        self._allocated.remove(pa)
        self._free.append(pa)

    def _offset(self, pa, length):
        if length < 0 or pa < self.base or pa + length > self.end:
            raise ValueError(f"physical address {pa:#x} out of range")
        return pa - self.base

    def read(self, pa, length):
        off = self._offset(pa, length)
        return bytes(self._data[off:off + length])

    def write(self, pa, data):
        off = self._offset(pa, len(data))
        self._data[off:off + len(data)] = data

    def read_pte(self, addr):
        return _PTE.unpack_from(self._data, self._offset(addr, PTE_SIZE))[0]

    def write_pte(self, addr, value):
        _PTE.pack_into(self._data, self._offset(addr, PTE_SIZE), value & _MASK64)

    def _entries(self, table):
        return _TABLE.unpack_from(self._data, self._offset(table, PGSIZE))


class PageTable:
    """A three-level Sv39 page table rooted at a physical page."""

    def __init__(self, mem, root):
        self.mem = mem
        self.root = root

    @classmethod
    def create(cls, mem):
        """Allocate an empty page table."""
        return cls(mem, mem.kalloc())

    def walk(self, va, alloc=False):
        """Return the physical address of the leaf PTE for ``va``, or None.

        With ``alloc`` set, missing page-table pages are created.
        """
        if va >= MAXVA:
            raise VMPanic("walk")
        table = self.root
        for level in range(MAXPTLEVEL, 0, -1):
            addr = table + PTE_SIZE * px(level, va)
            pte = self.mem.read_pte(addr)
            if pte & PTE_V:
                table = pte2pa(pte)
                continue
            if not alloc:
                return None
            try:
                table = self.mem.kalloc()
            except OutOfMemory:
                return None
            self.mem.write_pte(addr, pa2pte(table) | PTE_V)
        return table + PTE_SIZE * px(0, va)

    def walkaddr(self, va):
        """Physical page of a user-accessible mapping of ``va``, or None."""
        if va >= MAXVA:
            return None
        addr = self.walk(va)
        if addr is None:
            return None
        pte = self.mem.read_pte(addr)
        if not pte & PTE_V or not pte & PTE_U:
            return None
        return pte2pa(pte)

    def map_pages(self, va, size, pa, perm):
        """Map ``[va, va+size)`` to physical memory starting at ``pa``."""
        if size == 0:
            raise VMPanic("mappages: size")
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        while True:
            addr = self.walk(a, True)
            if addr is None:
                raise OutOfMemory("mappages: no page for page table")
            if self.mem.read_pte(addr) & PTE_V:
                raise VMPanic("mappages: remap")
            self.mem.write_pte(addr, pa2pte(pa) | perm | PTE_V)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def unmap(self, va, npages, do_free):
        """Remove ``npages`` existing leaf mappings starting at aligned ``va``."""
        if va % PGSIZE:
            raise VMPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            addr = self.walk(a)
            if addr is None:
                raise VMPanic("uvmunmap: walk")
            pte = self.mem.read_pte(addr)
            if not pte & PTE_V:
                raise VMPanic("uvmunmap: not mapped")
            if pte_flags(pte) == PTE_V:
                raise VMPanic("uvmunmap: not a leaf")
            if do_free:
                self.mem.kfree(pte2pa(pte))
            self.mem.write_pte(addr, 0)

    def load_first(self, src):
        """Place ``src`` (less than a page) at address zero."""
        if len(src) >= PGSIZE:
            raise VMPanic("uvmfirst: more than a page")
        page = self.mem.kalloc()
        self.map_pages(0, PGSIZE, page, PTE_W | PTE_R | PTE_X | PTE_U)
        self.mem.write(page, bytes(src))

    def grow(self, oldsz, newsz, xperm):
        """Allocate zeroed user pages to grow from ``oldsz`` to ``newsz``.

        Returns the new size; on failure the new pages are released and
        OutOfMemory is raised.
        """
        if newsz < oldsz:
            return oldsz
        oldsz = pg_round_up(oldsz)
        for a in range(oldsz, newsz, PGSIZE):
            try:
                page = self.mem.kalloc()
            except OutOfMemory:
                self.shrink(a, oldsz)
                raise
            try:
                self.map_pages(a, PGSIZE, page, PTE_R | PTE_U | xperm)
            except OutOfMemory:
                self.mem.kfree(page)
                self.shrink(a, oldsz)
                raise
        return newsz

    def shrink(self, oldsz, newsz):
        """Release user pages to bring the size from ``oldsz`` down to ``newsz``."""
        if newsz >= oldsz:
            return oldsz
        if pg_round_up(newsz) < pg_round_up(oldsz):
            npages = (pg_round_up(oldsz) - pg_round_up(newsz)) // PGSIZE
            self.unmap(pg_round_up(newsz), npages, True)
        return newsz

    def _free_walk(self, table):
        for i, pte in enumerate(self.mem._entries(table)):
            if pte & PTE_V and not pte & (PTE_R | PTE_W | PTE_X):
                self._free_walk(pte2pa(pte))
                self.mem.write_pte(table + PTE_SIZE * i, 0)
            elif pte & PTE_V:
                raise VMPanic("freewalk: leaf")
        self.mem.kfree(table)

    def free_walk(self):
        """Free the page-table pages; all leaf mappings must be gone."""
        self._free_walk(self.root)

    def free(self, sz):
        """Free ``sz`` bytes of user memory, then the page-table pages."""
        if sz > 0:
            self.unmap(0, pg_round_up(sz) // PGSIZE, True)
        self.free_walk()

    def copy_to(self, other, sz):
        """Copy the first ``sz`` bytes of mappings and memory into ``other``."""
        i = 0
        try:
            for i in range(0, sz, PGSIZE):
                addr = self.walk(i)
                if addr is None:
                    raise VMPanic("uvmcopy: pte should exist")
                pte = self.mem.read_pte(addr)
                if not pte & PTE_V:
                    raise VMPanic("uvmcopy: page not present")
                page = other.mem.kalloc()
                other.mem.write(page, self.mem.read(pte2pa(pte), PGSIZE))
                try:
                    other.map_pages(i, PGSIZE, page, pte_flags(pte))
                except OutOfMemory:
                    other.mem.kfree(page)
                    raise
        except OutOfMemory:
            other.unmap(0, i // PGSIZE, True)
            raise

    def clear_user(self, va):
        """Make the page at ``va`` inaccessible to user mode."""
        addr = self.walk(va)
        if addr is None:
            raise VMPanic("uvmclear")
        self.mem.write_pte(addr, self.mem.read_pte(addr) & ~PTE_U)

    def _user_page(self, va0):
        pa0 = self.walkaddr(va0)
        if pa0 is None:
            raise ValueError(f"user address {va0:#x} is not mapped")
        return pa0

    def copy_out(self, dstva, data):
        """Copy ``data`` to user virtual address ``dstva``."""
        view = memoryview(bytes(data))
        while view:
            va0 = pg_round_down(dstva)
            pa0 = self._user_page(va0)
            n = min(PGSIZE - (dstva - va0), len(view))
            self.mem.write(pa0 + (dstva - va0), view[:n])
            view = view[n:]
            dstva = va0 + PGSIZE

    def copy_in(self, srcva, length):
        """Return ``length`` bytes read from user virtual address ``srcva``."""
        parts = []
        while length > 0:
            va0 = pg_round_down(srcva)
            pa0 = self._user_page(va0)
            n = min(PGSIZE - (srcva - va0), length)
            parts.append(self.mem.read(pa0 + (srcva - va0), n))
            length -= n
            srcva = va0 + PGSIZE
        return b"".join(parts)

    def copy_in_str(self, srcva, maxlen):
        """Read a NUL-terminated string of at most ``maxlen`` bytes, without the NUL."""
        out = bytearray()
        while maxlen > 0:
            va0 = pg_round_down(srcva)
            pa0 = self._user_page(va0)
            n = min(PGSIZE - (srcva - va0), maxlen)
            chunk = self.mem.read(pa0 + (srcva - va0), n)
            nul = chunk.find(0)
            if nul >= 0:
                out += chunk[:nul]
                return bytes(out)
            out += chunk
            maxlen -= n
            srcva = va0 + PGSIZE
        raise ValueError("string not terminated within limit")

    def _dump(self, table, level, lines):
        prefix = ".. .. .."[:(level + 1) * 2 + level]
        for i, pte in enumerate(self.mem._entries(table)):
            if pte & PTE_V:
                lines.append(f"{prefix}{i}: pte {_ptr(pte)} pa {_ptr(pte2pa(pte))}")
                if level < MAXPTLEVEL:
                    self._dump(pte2pa(pte), level + 1, lines)

    def dump(self):
        """Return a listing of every valid PTE, one line each."""
        lines = [f"page table {_ptr(self.root)}"]
        self._dump(self.root, 0, lines)
        return "\n".join(lines) + "\n"