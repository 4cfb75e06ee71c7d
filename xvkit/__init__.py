"""Simulated Sv39 paging, ELF headers, a shell parser, an allocator and small file tools."""

__version__ = "0.1.0"