"""Header layouts, fixed values and name tables for NE (new executable) files."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass, fields

from exeformats.binary import BinaryFile
from exeformats.dosdefs import IMAGE_DOS_SIGNATURE_MZ, field_offset

IMAGE_OS2_SIGNATURE = 0x454E

FLAG_8086 = 0x0010
FLAG_80286 = 0x0020
FLAG_80386 = 0x0040

OS2_HEADER_SIZE = 0x40
NE_SEGMENT_SIZE = 8

# name -> (offset, width in bytes)
OS2_HEADER_FIELDS: dict[str, tuple[int, int]] = {
    "ne_magic": (0x00, 2),
    "ne_ver": (0x02, 1),
    "ne_rev": (0x03, 1),
    "ne_enttab": (0x04, 2),
    "ne_cbenttab": (0x06, 2),
    "ne_crc": (0x08, 4),
    "ne_flags": (0x0C, 2),
    "ne_autodata": (0x0E, 2),
    "ne_heap": (0x10, 2),
    "ne_stack": (0x12, 2),
    "ne_csip": (0x14, 4),
    "ne_sssp": (0x18, 4),
    "ne_cseg": (0x1C, 2),
    "ne_cmod": (0x1E, 2),
    "ne_cbnrestab": (0x20, 2),
    "ne_segtab": (0x22, 2),
    "ne_rsrctab": (0x24, 2),
    "ne_restab": (0x26, 2),
    "ne_modtab": (0x28, 2),
    "ne_imptab": (0x2A, 2),
    "ne_nrestab": (0x2C, 4),
    "ne_cmovent": (0x30, 2),
    "ne_align": (0x32, 2),
    "ne_cres": (0x34, 2),
    "ne_exetyp": (0x36, 1),
    "ne_flagsothers": (0x37, 1),
    "ne_pretthunks": (0x38, 2),
    "ne_psegrefbytes": (0x3A, 2),
    "ne_swaparea": (0x3C, 2),
    "ne_expver": (0x3E, 2),
}

_OS2_LAYOUT = struct.Struct("<HBBHHIHHHHIIHHHHHHHHIHHHBBHHHH")
_SEGMENT_LAYOUT = struct.Struct("<4H")


def is_ne(data: bytes) -> bool:
    """True when ``data`` is an MZ file whose new header carries the NE signature."""
    binary = BinaryFile(data)
    if binary.read_uint16(0) != IMAGE_DOS_SIGNATURE_MZ:
        return False
    lfanew = binary.read_int32(field_offset("e_lfanew"))
    if not 0 < lfanew < (binary.size() & 0xFFFFFFFF):
        return False
    return binary.read_uint16(lfanew) == IMAGE_OS2_SIGNATURE


def header_field_offset(name: str) -> int:
    """Offset of a field within the OS/2 header."""
    try:
        return OS2_HEADER_FIELDS[name][0]
    except KeyError:
        raise KeyError(f"unknown NE header field: {name!r}") from None


def ne_magics() -> dict[int, str]:
    return {0x454E: "IMAGE_OS2_SIGNATURE"}


def ne_magics_short() -> dict[int, str]:
    return {0x454E: "OS2_SIGNATURE"}


def ne_flags() -> dict[int, str]:
    return {
        0x0001: "single shared",
        0x0002: "multiple",
        0x0004: "Global initialization",
        0x0008: "Protected mode only",
        0x0010: "8086 instructions",
        0x0020: "80286 instructions",
        0x0040: "80386 instructions",
        0x0080: "80x87 instructions",
        0x0100: "Full screen",
        0x0200: "Compatible with Windows/P.M.",
        0x0800: "OS/2 family application",
        0x1000: "reserved?",
        0x2000: "Errors in image/executable",
        0x4000: "non-conforming program",
        0x8000: "DLL or driver",
    }


def ne_exetypes() -> dict[int, str]:
    return {
        0x0000: "Unknown",
        0x0001: "OS/2",
        0x0002: "Windows",
        0x0003: "European MS-DOS 4.x",
        0x0004: "Windows 386",
        0x0005: "BOSS (Borland Operating System Services)",
    }


def ne_flags_others() -> dict[int, str]:
    return {
        0x0001: "Long filename support",
        0x0002: "2.x protected mode",
        0x0004: "2.x proportional fonts",
        0x0008: "Executable has gangload area",
    }


def segment_types() -> dict[int, str]:
    return {0x0000: "CODE", 0x0001: "DATA"}


def _pack(layout: struct.Struct, values: tuple) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"header value out of range: {exc}") from None


@dataclass
class Os2Header:
    """The OS/2 (NE) executable header that follows the DOS stub."""

    ne_magic: int = 0
    ne_ver: int = 0
    ne_rev: int = 0
    ne_enttab: int = 0
    ne_cbenttab: int = 0
    ne_crc: int = 0
    ne_flags: int = 0
    ne_autodata: int = 0
    ne_heap: int = 0
    ne_stack: int = 0
    ne_csip: int = 0
    ne_sssp: int = 0
    ne_cseg: int = 0
    ne_cmod: int = 0
    ne_cbnrestab: int = 0
    ne_segtab: int = 0
    ne_rsrctab: int = 0
    ne_restab: int = 0
    ne_modtab: int = 0
    ne_imptab: int = 0
    ne_nrestab: int = 0
    ne_cmovent: int = 0
    ne_align: int = 0
    ne_cres: int = 0
    ne_exetyp: int = 0
    ne_flagsothers: int = 0
    ne_pretthunks: int = 0
    ne_psegrefbytes: int = 0
    ne_swaparea: int = 0
    ne_expver: int = 0

    @classmethod
    def parse(cls, data: bytes) -> "Os2Header":
        """Decode the first 64 bytes of ``data``; missing bytes read as zero."""
        raw = bytes(data[:OS2_HEADER_SIZE]).ljust(OS2_HEADER_SIZE, b"\x00")
        return cls(*_OS2_LAYOUT.unpack(raw))

    def pack(self) -> bytes:
        """Encode the header as 64 bytes."""
        return _pack(_OS2_LAYOUT, astuple(self))


@dataclass
class NeSegment:
    """One entry of the segment table; zero sizes stand for 64K."""

    file_offset: int = 0
    file_size: int = 0
    flags: int = 0
    min_alloc_size: int = 0

    @classmethod
    def parse(cls, data: bytes) -> "NeSegment":
        raw = bytes(data[:NE_SEGMENT_SIZE]).ljust(NE_SEGMENT_SIZE, b"\x00")
        return cls(*_SEGMENT_LAYOUT.unpack(raw))

    def pack(self) -> bytes:
        return _pack(_SEGMENT_LAYOUT, tuple(getattr(self, f.name) for f in fields(self)))