"""Reading and writing ELF64 file and program headers."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntFlag
from typing import Iterator

ELF_MAGIC = 0x464C457F  # "\x7FELF" read as a little-endian word
ELF_PROG_LOAD = 1

_ELF_HEADER = struct.Struct("<I12sHHIQQQIHHHHHH")
_PROGRAM_HEADER = struct.Struct("<IIQQQQQQ")

ELF_HEADER_SIZE = _ELF_HEADER.size
PROGRAM_HEADER_SIZE = _PROGRAM_HEADER.size


class ProgFlag(IntFlag):
    """Permission bits of a program header."""

    EXEC = 1
    WRITE = 2
    READ = 4


class ElfFormatError(ValueError):
    """Raised when bytes do not hold a valid ELF structure."""


@dataclass
class ElfHeader:
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

    def pack(self) -> bytes:
        """Encode the header in its on-disk little-endian layout."""
        return _ELF_HEADER.pack(
            self.magic, self.elf, self.type, self.machine, self.version,
            self.entry, self.phoff, self.shoff, self.flags, self.ehsize,
            self.phentsize, self.phnum, self.shentsize, self.shnum, self.shstrndx,
        )


@dataclass
class ProgramHeader:
    type: int = 0
    flags: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    align: int = 0

    @property
    def is_load(self) -> bool:
        return self.type == ELF_PROG_LOAD

    def pack(self) -> bytes:
        """Encode the program header in its on-disk layout."""
        return _PROGRAM_HEADER.pack(
            self.type, self.flags, self.off, self.vaddr,
            self.paddr, self.filesz, self.memsz, self.align,
        )


def parse_elf_header(data: bytes) -> ElfHeader:
    """Decode the file header at the start of data."""
    if len(data) < ELF_HEADER_SIZE:
        raise ElfFormatError("truncated ELF header")
    header = ElfHeader(*_ELF_HEADER.unpack_from(data, 0))
    if header.magic != ELF_MAGIC:
        raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
    return header


def parse_program_header(data: bytes, offset: int) -> ProgramHeader:
    """Decode one program header at the given byte offset."""
    if offset < 0 or offset + PROGRAM_HEADER_SIZE > len(data):
        raise ElfFormatError(f"program header at {offset} lies outside the data")
    return ProgramHeader(*_PROGRAM_HEADER.unpack_from(data, offset))


def program_headers(data: bytes) -> Iterator[ProgramHeader]:
    """Yield every program header listed by the file header."""
    header = parse_elf_header(data)
    for i in range(header.phnum):
        yield parse_program_header(data, header.phoff + i * PROGRAM_HEADER_SIZE)