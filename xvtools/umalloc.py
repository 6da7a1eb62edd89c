"""A first-fit free-list allocator over a simulated program break."""

HEADER = 16
_MIN_UNITS = 4096


class Allocator:
    """Hands out blocks from a heap grown with ``sbrk``; addresses are ints."""

    def __init__(self, heap_base=0x4000, limit=1 << 22):
        self.heap_base = heap_base
        self.brk = heap_base
        self.limit = heap_base + limit
        self._base = heap_base - HEADER
        self._next = {}
        self._size = {}
        self._freep = None
        self._allocated = set()

    def sbrk(self, n):
        """Move the break by ``n`` bytes; return the old break."""
        new = self.brk + n
        if new > self.limit or new < self.heap_base:
            raise MemoryError("sbrk: out of memory")
        old, self.brk = self.brk, new
        return old

    def _morecore(self, nu):
        nu = max(nu, _MIN_UNITS)
        hp = self.sbrk(nu * HEADER)
        self._size[hp] = nu
        self._allocated.add(hp)
        self.free(hp + HEADER)
        return self._freep

    def malloc(self, nbytes):
        """Allocate ``nbytes`` and return the address of the block."""
        nunits = (nbytes + HEADER - 1) // HEADER + 1
        if self._freep is None:
            self._next[self._base] = self._base
            self._size[self._base] = 0
            self._freep = self._base
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next[p]
                else:
                    self._size[p] -= nunits
                    p += self._size[p] * HEADER
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return p + HEADER
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._next[p]

    def free(self, addr):
        """Return a block to the free list, merging with its neighbours."""
        bp = addr - HEADER
        if bp not in self._allocated:
            raise ValueError(f"free: {addr:#x} was not allocated")
        self._allocated.remove(bp)
        nxt, size = self._next, self._size
        p = self._freep
        while not (p < bp < nxt[p]):
            if p >= nxt[p] and (bp > p or bp < nxt[p]):
                break
            p = nxt[p]
        if bp + size[bp] * HEADER == nxt[p]:
            size[bp] += size[nxt[p]]
            nxt[bp] = nxt[nxt[p]]
        else:
            nxt[bp] = nxt[p]
        if p + size[p] * HEADER == bp:
            size[p] += size[bp]
            nxt[p] = nxt[bp]
        else:
            nxt[p] = bp
        self._freep = p

    def free_blocks(self):
        """The free list as sorted (address, units) pairs."""
        if self._freep is None:
            return []
        blocks = []
        p = self._next[self._base]
        while p != self._base:
            blocks.append((p, self._size[p]))
            p = self._next[p]
        return sorted(blocks)