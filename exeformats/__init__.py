"""Readers for MS-DOS MZ, NE and Java class binary formats."""

__version__ = "0.1.0"
__all__ = ["binary", "dosdefs", "msdos", "neheader", "ne", "javaclass"]