"""MZ executable header layout and fixed values for DOS programs."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

IMAGE_DOS_SIGNATURE = 0x5A4D
IMAGE_DOS_SIGNATURE_MZ = 0x5A4D
IMAGE_DOS_SIGNATURE_ZM = 0x4D5A

COM_ADDRESS_BEGIN = 0x100
COM_IMAGE_SIZE = 0x10000

DOS_HEADER_SIZE = 0x1C
DOS_HEADER_EX_SIZE = 0x40

# name -> (offset, width in bytes, number of elements)
DOS_HEADER_FIELDS: dict[str, tuple[int, int, int]] = {
    "e_magic": (0x00, 2, 1),
    "e_cblp": (0x02, 2, 1),
    "e_cp": (0x04, 2, 1),
    "e_crlc": (0x06, 2, 1),
    "e_cparhdr": (0x08, 2, 1),
    "e_minalloc": (0x0A, 2, 1),
    "e_maxalloc": (0x0C, 2, 1),
    "e_ss": (0x0E, 2, 1),
    "e_sp": (0x10, 2, 1),
    "e_csum": (0x12, 2, 1),
    "e_ip": (0x14, 2, 1),
    "e_cs": (0x16, 2, 1),
    "e_lfarlc": (0x18, 2, 1),
    "e_ovno": (0x1A, 2, 1),
    "e_res": (0x1C, 2, 4),
    "e_oemid": (0x24, 2, 1),
    "e_oeminfo": (0x26, 2, 1),
    "e_res2": (0x28, 2, 10),
    "e_lfanew": (0x3C, 4, 1),
}

_LAYOUT = struct.Struct("<14H4H2H10Hi")


def is_msdos(data: bytes) -> bool:
    """True when ``data`` starts with an MZ or ZM signature."""
    if len(data) < 2:
        return False
    magic = int.from_bytes(data[:2], "little")
    return magic in (IMAGE_DOS_SIGNATURE_MZ, IMAGE_DOS_SIGNATURE_ZM)


def image_magics() -> dict[int, str]:
    return {0x5A4D: "IMAGE_DOS_SIGNATURE", 0x4D5A: "IMAGE_DOS_SIGNATURE_ZM"}


def image_magics_short() -> dict[int, str]:
    return {0x5A4D: "DOS_SIGNATURE", 0x4D5A: "DOS_SIGNATURE_ZM"}


def field_offset(name: str, index: int = 0) -> int:
    """File offset of a header field, or of one element of an array field."""
    try:
        offset, width, count = DOS_HEADER_FIELDS[name]
    except KeyError:
        raise KeyError(f"unknown DOS header field: {name!r}") from None
    if not 0 <= index < count:
        raise IndexError(f"index {index} out of range for {name}")
    return offset + width * index


@dataclass
class DosHeader:
    """The extended DOS header that ends with the offset of the new header."""

    e_magic: int = 0
    e_cblp: int = 0
    e_cp: int = 0
    e_crlc: int = 0
    e_cparhdr: int = 0
    e_minalloc: int = 0
    e_maxalloc: int = 0
    e_ss: int = 0
    e_sp: int = 0
    e_csum: int = 0
    e_ip: int = 0
    e_cs: int = 0
    e_lfarlc: int = 0
    e_ovno: int = 0
    e_res: tuple[int, ...] = field(default_factory=lambda: (0,) * 4)
    e_oemid: int = 0
    e_oeminfo: int = 0
    e_res2: tuple[int, ...] = field(default_factory=lambda: (0,) * 10)
    e_lfanew: int = 0

    @classmethod
    def parse(cls, data: bytes) -> "DosHeader":
        """Decode the first 64 bytes of ``data``; missing bytes read as zero."""
        raw = bytes(data[:DOS_HEADER_EX_SIZE]).ljust(DOS_HEADER_EX_SIZE, b"\x00")
        values = _LAYOUT.unpack(raw)
        return cls(
            *values[:14],
            e_res=tuple(values[14:18]),
            e_oemid=values[18],
            e_oeminfo=values[19],
            e_res2=tuple(values[20:30]),
            e_lfanew=values[30],
        )

    def pack(self) -> bytes:
        """Encode the header as 64 bytes."""
        if len(self.e_res) != 4 or len(self.e_res2) != 10:
            raise ValueError("e_res needs 4 words and e_res2 needs 10")
        return _LAYOUT.pack(
            self.e_magic, self.e_cblp, self.e_cp, self.e_crlc, self.e_cparhdr,
            self.e_minalloc, self.e_maxalloc, self.e_ss, self.e_sp, self.e_csum,
            self.e_ip, self.e_cs, self.e_lfarlc, self.e_ovno,
            *self.e_res, self.e_oemid, self.e_oeminfo, *self.e_res2,
            self.e_lfanew,
        )