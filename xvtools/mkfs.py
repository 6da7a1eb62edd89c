"""Build a file-system image holding a root directory and a set of files."""

import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path

NINODES = 200
FSMAGIC = 0x10203040
ROOTINO = 1

T_DIR = 1
T_FILE = 2
T_DEVICE = 3

_SUPERBLOCK = struct.Struct("<8I")
_INODE_HEAD = struct.Struct("<hhhhI")


class MkfsError(Exception):
    """The image could not be built."""


@dataclass(frozen=True)
class Layout:
    """Geometry of the image: block size, counts and where each region starts.

    Disk layout: boot block, superblock, log, inode blocks, free bitmap, data.
    """

    bsize: int = 1024
    fssize: int = 2000
    nlog: int = 30
    ninodes: int = NINODES
    ndirect: int = 12
    dirsiz: int = 14
    magic: int = FSMAGIC

    def __post_init__(self):
        if self.bsize % self.inode_size or self.bsize % self.dirent_size:
            raise MkfsError("block size must hold whole inodes and directory entries")

    @property
    def inode_size(self):
        return _INODE_HEAD.size + 4 * (self.ndirect + 1)

    @property
    def dirent_size(self):
        return 2 + self.dirsiz

    @property
    def ipb(self):
        return self.bsize // self.inode_size

    @property
    def nindirect(self):
        return self.bsize // 4

    @property
    def maxfile(self):
        return self.ndirect + self.nindirect

    @property
    def nbitmap(self):
        return self.fssize // (self.bsize * 8) + 1

    @property
    def ninodeblocks(self):
        return self.ninodes // self.ipb + 1

    @property
    def nmeta(self):
        return 2 + self.nlog + self.ninodeblocks + self.nbitmap

    @property
    def nblocks(self):
        return self.fssize - self.nmeta

    @property
    def logstart(self):
        return 2

    @property
    def inodestart(self):
        return 2 + self.nlog

    @property
    def bmapstart(self):
        return 2 + self.nlog + self.ninodeblocks

    def iblock(self, inum):
        """Sector holding inode ``inum``."""
        return inum // self.ipb + self.inodestart

    def superblock(self):
        return Superblock(
            magic=self.magic, size=self.fssize, nblocks=self.nblocks,
            ninodes=self.ninodes, nlog=self.nlog, logstart=self.logstart,
            inodestart=self.inodestart, bmapstart=self.bmapstart,
        )


@dataclass
class Superblock:
    """The on-disk superblock, stored little-endian in sector 1."""

    magic: int = FSMAGIC
    size: int = 0
    nblocks: int = 0
    ninodes: int = 0
    nlog: int = 0
    logstart: int = 0
    inodestart: int = 0
    bmapstart: int = 0

    def pack(self):
        return _SUPERBLOCK.pack(
            self.magic, self.size, self.nblocks, self.ninodes,
            self.nlog, self.logstart, self.inodestart, self.bmapstart,
        )

    @classmethod
    def unpack(cls, data):
        return cls(*_SUPERBLOCK.unpack_from(data))


@dataclass
class DiskInode:
    """An on-disk inode: type, device numbers, links, size and block addresses."""

    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list = field(default_factory=lambda: [0] * 13)

    def pack(self):
        return _INODE_HEAD.pack(
            self.type, self.major, self.minor, self.nlink, self.size
        ) + struct.pack(f"<{len(self.addrs)}I", *self.addrs)

    @classmethod
    def unpack(cls, data):
        head = _INODE_HEAD.unpack_from(data)
        n = (len(data) - _INODE_HEAD.size) // 4
        addrs = list(struct.unpack_from(f"<{n}I", data, _INODE_HEAD.size))
        return cls(*head, addrs=addrs)


class ImageBuilder:
    """Assembles an image in memory, starting with a root directory."""

    def __init__(self, layout=None):
        self.layout = layout or Layout()
        lay = self.layout
        self.image = bytearray(lay.fssize * lay.bsize)
        self.superblock = lay.superblock()
        self.freeinode = 1
        self.freeblock = lay.nmeta
        self.write_sector(1, self.superblock.pack())
        self.root = self.ialloc(T_DIR)
        if self.root != ROOTINO:
            raise MkfsError("root inode is not the first inode")
        self.iappend(self.root, self._dirent(self.root, b"."))
        self.iappend(self.root, self._dirent(self.root, b".."))

    def _dirent(self, inum, name):
        return struct.pack(f"<H{self.layout.dirsiz}s", inum, name)

    def _check_sector(self, sec):
        if not 0 <= sec < self.layout.fssize:
            raise MkfsError(f"sector {sec} outside the image")
        return sec * self.layout.bsize

    def read_sector(self, sec):
        off = self._check_sector(sec)
        return bytes(self.image[off:off + self.layout.bsize])

    def write_sector(self, sec, data):
        off = self._check_sector(sec)
        bsize = self.layout.bsize
        if len(data) > bsize:
            raise MkfsError("sector data larger than a block")
        self.image[off:off + bsize] = bytes(data) + bytes(bsize - len(data))

    def _inode_slot(self, inum):
        lay = self.layout
        return lay.iblock(inum), (inum % lay.ipb) * lay.inode_size

    def read_inode(self, inum):
        sec, off = self._inode_slot(inum)
        buf = self.read_sector(sec)
        return DiskInode.unpack(buf[off:off + self.layout.inode_size])

    def write_inode(self, inum, inode):
        sec, off = self._inode_slot(inum)
        packed = inode.pack()
        if len(packed) != self.layout.inode_size:
            raise MkfsError("inode has the wrong number of block addresses")
        buf = bytearray(self.read_sector(sec))
        buf[off:off + len(packed)] = packed
        self.write_sector(sec, buf)

    def ialloc(self, itype):
        """Allocate the next inode with one link and no data."""
        inum = self.freeinode
        if inum >= self.layout.ninodes:
            raise MkfsError("out of inodes")
        self.freeinode += 1
        inode = DiskInode(type=itype, nlink=1, size=0,
                          addrs=[0] * (self.layout.ndirect + 1))
        self.write_inode(inum, inode)
        return inum

    def _new_block(self):
        block = self.freeblock
        if block >= self.layout.fssize:
            raise MkfsError("out of blocks")
        self.freeblock += 1
        return block

    def iappend(self, inum, data):
        """Append ``data`` to the end of inode ``inum``, allocating blocks."""
        lay = self.layout
        din = self.read_inode(inum)
        off = din.size
        view = memoryview(bytes(data))
        while view:
            fbn = off // lay.bsize
            if fbn >= lay.maxfile:
                raise MkfsError(f"file of inode {inum} exceeds the maximum size")
            if fbn < lay.ndirect:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._new_block()
                x = din.addrs[fbn]
            else:
                if din.addrs[lay.ndirect] == 0:
                    din.addrs[lay.ndirect] = self._new_block()
                ind_sec = din.addrs[lay.ndirect]
                indirect = list(struct.unpack(f"<{lay.nindirect}I", self.read_sector(ind_sec)))
                k = fbn - lay.ndirect
                if indirect[k] == 0:
                    indirect[k] = self._new_block()
                    self.write_sector(ind_sec, struct.pack(f"<{lay.nindirect}I", *indirect))
                x = indirect[k]
            n1 = min(len(view), (fbn + 1) * lay.bsize - off)
            buf = bytearray(self.read_sector(x))
            start = off - fbn * lay.bsize
            buf[start:start + n1] = view[:n1]
            self.write_sector(x, buf)
            view = view[n1:]
            off += n1
        din.size = off
        self.write_inode(inum, din)

    def balloc(self, used):
        """Mark the first ``used`` blocks as in use in the bitmap."""
        bsize = self.layout.bsize
        if used >= bsize * 8:
            raise MkfsError("too many used blocks for one bitmap block")
        buf = bytearray(bsize)
        for i in range(used):
            buf[i // 8] |= 1 << (i % 8)
        self.write_sector(self.superblock.bmapstart, buf)

    def add_file(self, path):
        """Copy a host file into the root directory; return its inode number."""
        name = str(path)
        short = name[5:] if name.startswith("user/") else name
        if "/" in short:
            raise MkfsError(f"{name}: file name must not contain '/'")
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise MkfsError(f"{name}: {exc.strerror or exc}") from exc
        if short.startswith("_"):
            short = short[1:]
        inum = self.ialloc(T_FILE)
        self.iappend(self.root, self._dirent(inum, short.encode()))
        self.iappend(inum, data)
        return inum

    def finish(self):
        """Round up the root directory's size, write the bitmap, return the image."""
        din = self.read_inode(self.root)
        din.size = (din.size // self.layout.bsize + 1) * self.layout.bsize
        self.write_inode(self.root, din)
        self.balloc(self.freeblock)
        return bytes(self.image)


def make_image(image_path, files):
    """Write an image holding ``files`` to ``image_path``; return the builder."""
    builder = ImageBuilder()
    for f in files:
        builder.add_file(f)
    image = builder.finish()
    try:
        Path(image_path).write_bytes(image)
    except OSError as exc:
        raise MkfsError(f"{image_path}: {exc.strerror or exc}") from exc
    return builder


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: mkfs fs.img files...", file=sys.stderr)
        return 1
    lay = Layout()
    print(f"nmeta {lay.nmeta} (boot, super, log blocks {lay.nlog} inode blocks "
          f"{lay.ninodeblocks}, bitmap blocks {lay.nbitmap}) blocks {lay.nblocks} "
          f"total {lay.fssize}")
    try:
        builder = make_image(args[0], args[1:])
    except MkfsError as exc:
        print(f"mkfs: {exc}", file=sys.stderr)
        return 1
    print(f"balloc: first {builder.freeblock} blocks have been allocated")
    print(f"balloc: write bitmap block at sector {builder.superblock.bmapstart}")
    return 0