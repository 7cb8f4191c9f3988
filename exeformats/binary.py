"""Byte-level access to binary files and the shared vocabulary of memory maps."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from os import PathLike
from typing import Union


class FileType(enum.Enum):
    """Kinds of file that the readers in this package recognise."""

    UNKNOWN = "unknown"
    BINARY = "binary"
    COM = "com"
    MSDOS = "msdos"
    NE = "ne"
    ELF = "elf"
    JAVACLASS = "javaclass"
    CFBF = "cfbf"


class Mode(enum.Enum):
    """Addressing mode of the code in a file."""

    UNKNOWN = "unknown"
    MODE_16 = "16"
    MODE_16SEG = "16seg"
    MODE_32 = "32"
    MODE_64 = "64"


class Endian(enum.Enum):
    """Byte order of multi-byte values."""

    UNKNOWN = "unknown"
    LITTLE = "little"
    BIG = "big"


class OsName(enum.Enum):
    """Operating system a file is built for."""

    UNKNOWN = "Unknown"
    MSDOS = "MSDOS"
    WINDOWS = "Windows"
    OS2 = "OS/2"
    BORLANDOSSERVICES = "Borland Operating System Services"


class MemoryType(enum.Enum):
    """Role of a region in a memory map."""

    UNKNOWN = "unknown"
    HEADER = "header"
    LOADSEGMENT = "loadsegment"
    DATA = "data"
    OVERLAY = "overlay"


class AddressSegment(enum.Enum):
    """What a mapped region holds, where known."""

    UNKNOWN = "unknown"
    CODE = "code"
    DATA = "data"


@dataclass
class MemoryRecord:
    """One region of a memory map; -1 marks an absent offset or address."""

    offset: int = -1
    address: int = -1
    size: int = 0
    type: MemoryType = MemoryType.UNKNOWN
    segment: AddressSegment = AddressSegment.UNKNOWN
    name: str = ""
    index: int = 0
    is_virtual: bool = False


@dataclass
class MemoryMap:
    """Layout of a file: where its parts lie on disk and in memory."""

    file_type: FileType = FileType.UNKNOWN
    arch: str = ""
    type_name: str = ""
    mode: Mode = Mode.UNKNOWN
    endian: Endian = Endian.LITTLE
    binary_size: int = 0
    image_size: int = 0
    module_address: int = 0
    entry_point_address: int = 0
    start_load_offset: int = 0
    records: list[MemoryRecord] = field(default_factory=list)


def segment_address(segment: int, offset: int) -> int:
    """Linear real-mode address of segment:offset."""
    return ((segment & 0xFFFF) << 4) + (offset & 0xFFFF)


class BinaryFile:
    """A mutable in-memory view of a file's bytes.

    Reads past the end are short: integer reads fill missing bytes with
    zeros, and byte reads return only what is there.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview] = b"") -> None:
        self.data = bytearray(data)

    @classmethod
    def from_file(cls, path: Union[str, "PathLike[str]"]):
        """Load the whole file at ``path``."""
        with open(path, "rb") as handle:
            return cls(handle.read())

    def size(self) -> int:
        return len(self.data)

    def is_offset_valid(self, offset: int) -> bool:
        return 0 <= offset < len(self.data)

    def read_bytes(self, offset: int, size: int) -> bytes:
        if offset < 0 or size <= 0 or offset >= len(self.data):
            return b""
        return bytes(self.data[offset:offset + size])

    def _read_padded(self, offset: int, size: int) -> bytes:
        return self.read_bytes(offset, size).ljust(size, b"\x00")

    def _unpack(self, fmt: str, offset: int, size: int, big_endian: bool):
        prefix = ">" if big_endian else "<"
        return struct.unpack(prefix + fmt, self._read_padded(offset, size))[0]

    def read_uint8(self, offset: int) -> int:
        return self._unpack("B", offset, 1, False)

    def read_uint16(self, offset: int, big_endian: bool = False) -> int:
        return self._unpack("H", offset, 2, big_endian)

    def read_uint32(self, offset: int, big_endian: bool = False) -> int:
        return self._unpack("I", offset, 4, big_endian)

    def read_int32(self, offset: int, big_endian: bool = False) -> int:
        return self._unpack("i", offset, 4, big_endian)

    def read_uint64(self, offset: int, big_endian: bool = False) -> int:
        return self._unpack("Q", offset, 8, big_endian)

    def read_float(self, offset: int, big_endian: bool = False) -> float:
        return self._unpack("f", offset, 4, big_endian)

    def read_double(self, offset: int, big_endian: bool = False) -> float:
        return self._unpack("d", offset, 8, big_endian)

    def write_bytes(self, offset: int, data: bytes) -> int:
        """Overwrite bytes in place without growing the file; return the count written."""
        if offset < 0 or offset >= len(self.data):
            return 0
        chunk = bytes(data[:len(self.data) - offset])
        self.data[offset:offset + len(chunk)] = chunk
        return len(chunk)

    def _pack(self, fmt: str, offset: int, value: int, bits: int, big_endian: bool) -> int:
        prefix = ">" if big_endian else "<"
        return self.write_bytes(offset, struct.pack(prefix + fmt, value & ((1 << bits) - 1)))

    def write_uint8(self, offset: int, value: int) -> int:
        return self._pack("B", offset, value, 8, False)

    def write_uint16(self, offset: int, value: int, big_endian: bool = False) -> int:
        return self._pack("H", offset, value, 16, big_endian)

    def write_uint32(self, offset: int, value: int, big_endian: bool = False) -> int:
        return self._pack("I", offset, value, 32, big_endian)

    def find_bytes(self, offset: int, size: int, needle: bytes) -> int:
        """Offset of ``needle`` inside [offset, offset + size), or -1."""
        if not needle or offset < 0 or size <= 0:
            return -1
        return self.data.find(needle, offset, offset + size)

    def memory_map(self) -> MemoryMap:
        """A plain map: the whole file as a single data region."""
        size = self.size()
        result = MemoryMap(
            file_type=FileType.BINARY,
            mode=Mode.UNKNOWN,
            endian=Endian.LITTLE,
            binary_size=size,
            image_size=size,
        )
        if size:
            result.records.append(
                MemoryRecord(offset=0, address=0, size=size, type=MemoryType.DATA, name="Data")
            )
        return result