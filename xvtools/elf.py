"""Reading and writing ELF64 file and program headers."""

import struct
from dataclasses import dataclass
from typing import ClassVar, Iterator

ELF_MAGIC = 0x464C457F

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_ELF_HEADER = struct.Struct("<I12sHHIQQQIHHHHHH")
_PROG_HEADER = struct.Struct("<IIQQQQQQ")


class ElfFormatError(ValueError):
    """Raised when bytes do not hold a well-formed ELF image."""


@dataclass
class ElfHeader:
    """The ELF file header."""

    SIZE: ClassVar[int] = _ELF_HEADER.size

    magic: int = ELF_MAGIC
    elf: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    @classmethod
    def unpack(cls, data):
        """Parse a header from the start of ``data``; the magic must match."""
        if len(data) < cls.SIZE:
            raise ElfFormatError("truncated ELF header")
        header = cls(*_ELF_HEADER.unpack_from(data))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
        return header

    def pack(self):
        """Serialise the header to bytes."""
        return _ELF_HEADER.pack(
            self.magic, self.elf, self.type, self.machine, self.version,
            self.entry, self.phoff, self.shoff, self.flags, self.ehsize,
            self.phentsize, self.phnum, self.shentsize, self.shnum,
            self.shstrndx,
        )


@dataclass
class ProgramHeader:
    """An ELF program (segment) header."""

    SIZE: ClassVar[int] = _PROG_HEADER.size

    type: int = 0
    flags: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    align: int = 0

    @classmethod
    def unpack(cls, data):
        """Parse a program header from the start of ``data``."""
        if len(data) < cls.SIZE:
            raise ElfFormatError("truncated program header")
        return cls(*_PROG_HEADER.unpack_from(data))

    def pack(self):
        """Serialise the program header to bytes."""
        return _PROG_HEADER.pack(
            self.type, self.flags, self.off, self.vaddr,
            self.paddr, self.filesz, self.memsz, self.align,
        )

    @property
    def is_loadable(self):
        return self.type == ELF_PROG_LOAD


def program_headers(data) -> Iterator[ProgramHeader]:
    """Yield the program headers listed by the ELF image in ``data``."""
    header = ElfHeader.unpack(data)
    for i in range(header.phnum):
        off = header.phoff + i * ProgramHeader.SIZE
        if off + ProgramHeader.SIZE > len(data):
            raise ElfFormatError(f"program header {i} lies beyond the image")
        yield ProgramHeader.unpack(data[off:off + ProgramHeader.SIZE])