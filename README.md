# xvtools

A pure-Python toolkit around a small teaching Unix for RISC-V. No
third-party packages are needed.

## What is in it

- **`xvtools.mkfs`** – builds a file system image (boot block, superblock,
  log, inode blocks, free bitmap, data blocks) holding a root directory and
  the files you name. `Layout` describes the geometry (by default 2000
  blocks of 1024 bytes, 30 log blocks, 200 inodes); `ImageBuilder`
  assembles the image in memory; `make_image(image_path, files)` writes it
  to disk. `Superblock` and `DiskInode` pack and unpack the on-disk records.
- **`xvtools.vm`** – Sv39 three-level page tables over a simulated
  `PhysicalMemory`. `PageTable` can walk, map and unmap pages, grow and
  shrink a user address space, copy it into another table, clear the user
  bit of a page, copy bytes and NUL-terminated strings in and out, and
  `dump()` a listing of every valid entry.
- **`xvtools.riscv`** – control-register bit constants and paging helpers:
  `pg_round_up`, `pg_round_down`, `pa2pte`, `pte2pa`, `pte_flags`,
  `px_shift`, `px`, `make_satp`.
- **`xvtools.memlayout`** – addresses of the `virt` machine's devices and
  memory regions, with `clint_mtimecmp`, the `plic_*` register helpers and
  `kstack`.
- **`xvtools.elf`** – `ElfHeader` and `ProgramHeader` with `unpack` and
  `pack`, and `program_headers(data)` to iterate over an image's segments.
- **`xvtools.sh`** – the shell's command-line parser. `parse_cmd(line)`
  returns a tree of `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and
  `BackCmd`; `Tokenizer` splits a line into words and symbols;
  `read_command(stream, nbuf)` prompts with `$ ` on stderr and reads one
  line. Open modes of redirections are `OpenFlag` values.
- **`xvtools.umalloc`** – `Allocator`, a first-fit free-list allocator over
  a simulated program break, with `sbrk`, `malloc`, `free` and
  `free_blocks`. Addresses are plain integers.
- **`xvtools.prng`** – `do_rand` and `ParkMiller`, the Park–Miller minimal
  standard random generator (seed 1 by default).
- **`xvtools.fmt`** – a small `printf`: `format_message`, `fprintf` and
  `printf` understand `%d %l %x %p %s %c %%`; other conversions are echoed
  as written.
- **`xvtools.ulib`** – `strcmp`, `atoi`, `memcmp` and `gets`.
- Utilities: `xvtools.grep`, `xvtools.wc`, `xvtools.ls` and
  `xvtools.simpletools` (cat, echo, ln, mkdir, rm, kill).

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command-line tools

Build a file system image from a list of files. A leading `user/` is
dropped from each name, as is a leading underscore, so `user/_cat` becomes
`cat` in the image:

```
xv-mkfs fs.img README user/_cat user/_echo
```

The utilities work on the host's files and standard streams:

```
xv-grep '^int.*(' notes.txt
xv-wc notes.txt
xv-ls .
xv-cat a.txt b.txt
xv-echo hello world
xv-ln old new
xv-mkdir newdir
xv-rm newdir
xv-kill 12345
```

Some details of their behaviour:

- `xv-grep` supports only `^`, `.`, `*` and `$`, and only considers lines
  that end in a newline.
- `xv-wc` prints lines, words and bytes followed by the file name.
- `xv-ls` prints each entry's name padded to 14 characters, its type
  (1 directory, 2 file, 3 anything else), inode number and size; a
  directory listing starts with `.` and `..`, then the names in sorted
  order.
- `xv-rm` removes files and empty directories and stops at the first
  failure; `xv-mkdir` also stops at the first failure.
- `xv-kill` sends SIGTERM to each positive process id given.

## Library use

Parsing a shell command line:

```python
from xvtools.sh import parse_cmd, PipeCmd

cmd = parse_cmd("cat < in.txt | grep x > out.txt\n")
assert isinstance(cmd, PipeCmd)
```

Pattern matching as `grep` does it:

```python
from xvtools.grep import match

match("^a.*c$", "abbbc")   # True
match("b*", "")            # True
```

Formatting in the style of the user `printf`:

```python
from xvtools.fmt import format_message

format_message("%d %x %s\n", -5, 255, "ok")   # '-5 FF ok\n'
```

Working with a page table:

```python
from xvtools.vm import PhysicalMemory, PageTable
from xvtools.riscv import PTE_W

mem = PhysicalMemory()
pt = PageTable.create(mem)
size = pt.grow(0, 8192, PTE_W)
pt.copy_out(100, b"hello\0")
pt.copy_in_str(100, 64)    # b'hello'
pt.free(size)
```

Building an image in memory:

```python
from xvtools.mkfs import ImageBuilder

builder = ImageBuilder()
image = builder.finish()   # bytes of an image holding an empty root directory
```

Errors are raised as exceptions: `VMPanic` and `OutOfMemory` from the page
table model, `ElfFormatError` for bad ELF data, `MkfsError` while building
an image and `ShellSyntaxError` for a command line that does not parse.

## What it does not do

- There is no shell command. `xvtools.sh` parses command lines into trees
  and reads a line of input, but does not run the commands.
- There is no stress-test runner; `xvtools.prng` provides only the random
  generator.
- The page tables, memory and allocator are models in Python objects; no
  kernel, processes or devices are simulated.