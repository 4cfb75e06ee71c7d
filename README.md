# xvkit

Pieces of a small RISC-V teaching operating system as a plain Python
library with no dependencies: a simulated Sv39 virtual-memory system, an
ELF header codec, the user-space allocator, formatter and string helpers,
the shell's command-line parser, and a handful of file tools.

## Modules

- `xvkit.riscv` – system limits (`NPROC`, `MAXPATH`, ...), the physical
  memory map (`KERNBASE`, `PHYSTOP`, `TRAMPOLINE`, `TRAPFRAME`, ...),
  page-table entry bits (`PteFlag`), open modes (`OpenFlag`), and the
  helpers `pgroundup`, `pgrounddown`, `pa2pte`, `pte2pa`, `pte_flags`,
  `pxshift`, `px`, `make_satp`, `kstack`, `clint_mtimecmp`,
  `plic_menable`, `plic_senable`, `plic_mpriority`, `plic_spriority`,
  `plic_mclaim` and `plic_sclaim`.
- `xvkit.elf` – `ElfHeader` and `ProgramHeader` dataclasses with
  `pack()`, and `parse_elf_header`, `parse_program_header` and the
  generator `program_headers`. Short data or a wrong magic number raises
  `ElfFormatError`.
- `xvkit.vm` – `PhysicalMemory`, a pool of pages with `kalloc`, `kfree`,
  `free_pages`, `read`, `write`, `read_pte` and `write_pte`; and
  `PageTable`, a three-level Sv39 table with `walk`, `walkaddr`,
  `mappages`, `kvmmap`, `uvmunmap`, `uvminit`, `uvmalloc`, `uvmdealloc`,
  `freewalk`, `uvmfree`, `uvmcopy`, `uvmclear`, `copyout`, `copyin`,
  `copyinstr` and `satp`. `uvmcreate`, `kvminit` and `kvmpa` build and
  query tables. Kernel panics raise `VmPanic`, exhausted memory raises
  `OutOfMemory`, and user addresses that are not mapped (or a string with
  no NUL within the limit) raise `BadAddress`.
- `xvkit.umalloc` – `Heap`, a region moved with `sbrk` (raising
  `MemoryError` past its limits), and `Allocator`, the first-fit,
  coalescing free-list `malloc`/`free` over it. Addresses are integers.
- `xvkit.rand` – the Park–Miller generator: `do_rand(state)` and the
  stateful `ParkMiller().next()`.
- `xvkit.printf` – `format_string` and `fprintf`, understanding
  `%d %l %x %p %s %c %%`; unknown sequences are printed as they stand,
  and too few arguments raise `ValueError`.
- `xvkit.ulib` – `atoi`, `itoa`, `strcmp` (C-style, NUL-terminated) and
  `gets` from a text stream.
- `xvkit.sh` – the shell tokenizer and recursive-descent parser:
  `gettoken`, `tokenize`, `parsecmd` and `split_cd`, producing trees of
  `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`. Bad input
  raises `ShellSyntaxError`.
- `xvkit.grep` – the `^ . * $` matcher (`match`, `matchhere`,
  `matchstar`), `grep` over a stream, and `main`.
- `xvkit.coreutils` – `cat`, `echo`, `wc` (returning a `WordCount` of
  lines, words and characters; bytes for binary streams), `fmtname`,
  `find` (a generator of matching paths, in name order), and the command
  entry points `cat_main`, `echo_main`, `wc_main` and `find_main`.

## Install

```
pip install .
```

## Examples

```python
from xvkit.printf import format_string
from xvkit.ulib import atoi, itoa
from xvkit.grep import match
from xvkit.riscv import pgroundup

format_string("%d %x\n", 10, 255)   # '10 FF\n'
atoi("12ab")                         # 12
itoa(-42)                            # '-42'
match("^a.*b$", "axxb")              # True
pgroundup(4097)                      # 8192
```

A user address space in simulated memory:

```python
from xvkit.vm import PhysicalMemory, uvmcreate

memory = PhysicalMemory(64)
pt = uvmcreate(memory)
pt.uvmalloc(0, 8192)            # 8192
pt.copyout(100, b"hello\0")
pt.copyinstr(100, 32)           # b'hello'
```

Parsing a shell line:

```python
from xvkit.sh import parsecmd

parsecmd("echo hi")             # ExecCmd(argv=['echo', 'hi'])
tree = parsecmd("cat < in | grep x > out ; echo done &")
```

The allocator:

```python
from xvkit.umalloc import Allocator, Heap

allocator = Allocator(Heap())
p = allocator.malloc(100)
allocator.free(p)
```

## Commands

The file tools are installed as commands working on ordinary files and
standard input/output:

```
xvkit-echo hello world
xvkit-cat notes.txt
xvkit-wc notes.txt
xvkit-grep '^int.*;$' main.c
xvkit-find . README
```

## What this package does not do

It does not boot or run an operating system: there is no scheduler, no
processes, no file system or disk image, and no system calls. The shell
module only parses command lines into trees; it does not run them, and
there is no shell command. `fmtname` gives the name column of a
directory listing, but there is no `ls` command.

## Tests

```
pip install .[test]
pytest
```