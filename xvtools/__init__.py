"""Tools and models for a small RISC-V teaching Unix: image builder, page tables, ELF headers, shell parser and utilities."""

__version__ = "0.1.0"