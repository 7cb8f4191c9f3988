"""Reader for DOS MZ executables and the stub shared by later formats."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from exeformats.binary import (
    AddressSegment,
    BinaryFile,
    Endian,
    FileType,
    MemoryMap,
    MemoryRecord,
    MemoryType,
    Mode,
    OsName,
    segment_address,
)
from exeformats.dosdefs import (
    DOS_HEADER_EX_SIZE,
    DOS_HEADER_FIELDS,
    DOS_HEADER_SIZE,
    IMAGE_DOS_SIGNATURE_MZ,
    IMAGE_DOS_SIGNATURE_ZM,
    DosHeader,
    field_offset,
)

_SIGNATURE_LE = 0x454C
_SIGNATURE_LX = 0x584C
_SIGNATURE_NE = 0x454E
_SIGNATURE_PE = 0x4550

_RICH_MARKER = b"Rich"
_DANS_MARKER = 0x536E6144
_RICH_STUB_LIMIT = 0x400


@dataclass(frozen=True)
class RichRecord:
    """One entry of the linker's Rich signature: tool id, build and use count."""

    id: int
    version: int
    count: int


class MsdosType(enum.IntEnum):
    UNKNOWN = 0
    EXE = 1


def is_rich_version_present(records: Iterable[RichRecord], version: int) -> bool:
    """True when any Rich record carries ``version``."""
    return any(record.version == version for record in records)


class MSDOS(BinaryFile):
    """An MZ executable held in memory."""

    def is_valid(self) -> bool:
        return self.read_uint16(0) in (IMAGE_DOS_SIGNATURE_MZ, IMAGE_DOS_SIGNATURE_ZM)

    def lfanew(self) -> int:
        """Signed offset of the new executable header."""
        return self.read_int32(field_offset("e_lfanew"))

    def dos_header(self) -> DosHeader:
        return DosHeader.parse(self.read_bytes(0, DOS_HEADER_EX_SIZE))

    def set_dos_header(self, header: DosHeader) -> None:
        self.write_bytes(0, header.pack())

    def read_field(self, name: str, index: int = 0) -> int:
        """Value of a DOS header field; array fields take an element index."""
        offset = field_offset(name, index)
        width = DOS_HEADER_FIELDS[name][1]
        if width == 4:
            return self.read_uint32(offset)
        return self.read_uint16(offset)

    def write_field(self, name: str, value: int, index: int = 0) -> None:
        offset = field_offset(name, index)
        width = DOS_HEADER_FIELDS[name][1]
        if width == 4:
            self.write_uint32(offset, value)
        else:
            self.write_uint16(offset, value)

    def memory_map(self) -> MemoryMap:
        cp = self.read_field("e_cp")
        cblp = self.read_field("e_cblp")
        cparhdr = self.read_field("e_cparhdr")

        max_offset = cp * 0x200 - ((-cblp) & 0x1FF)
        header_size = (cparhdr * 16) & 0xFFFF
        file_size = self.size()

        result = MemoryMap(
            file_type=FileType.MSDOS,
            arch=self.arch(),
            type_name=self.type_id_to_string(self.type()),
            mode=Mode.MODE_16,
            endian=Endian.LITTLE,
            binary_size=file_size,
            image_size=self.image_size(),
            module_address=self.module_address(),
            start_load_offset=cparhdr * 16,
        )
        result.entry_point_address = result.module_address + segment_address(
            self.read_field("e_cs"), self.read_field("e_ip")
        )

        overlay_offset = max_offset
        overlay_size = max(file_size - max_offset, 0)
        index = 0

        result.records.append(
            MemoryRecord(
                offset=0,
                address=-1,
                size=header_size,
                type=MemoryType.HEADER,
                segment=AddressSegment.UNKNOWN,
                name="MSDOS Header",
                index=index,
            )
        )
        index += 1

        delta = overlay_offset - header_size
        if delta > 0:
            result.records.append(
                MemoryRecord(
                    offset=header_size,
                    address=0x10000000,
                    size=delta,
                    type=MemoryType.LOADSEGMENT,
                    segment=AddressSegment.CODE,
                    index=index,
                )
            )
            index += 1

        if overlay_size:
            result.records.append(
                MemoryRecord(
                    offset=overlay_offset,
                    address=-1,
                    size=overlay_size,
                    type=MemoryType.OVERLAY,
                    segment=AddressSegment.UNKNOWN,
                    name="Overlay",
                    index=index,
                )
            )

        return result

    def image_size(self) -> int:
        return 0x10000

    def module_address(self) -> int:
        return 0x10000000

    def _new_signature(self) -> int:
        return self.read_uint16(self.read_field("e_lfanew"))

    def is_le(self) -> bool:
        return self._new_signature() == _SIGNATURE_LE

    def is_lx(self) -> bool:
        return self._new_signature() == _SIGNATURE_LX

    def is_ne(self) -> bool:
        return self._new_signature() == _SIGNATURE_NE

    def is_pe(self) -> bool:
        return self._new_signature() == _SIGNATURE_PE

    def is_rich_signature_present(self) -> bool:
        size = self.lfanew() - DOS_HEADER_SIZE
        if 0 < size <= _RICH_STUB_LIMIT:
            return _RICH_MARKER in self.read_bytes(DOS_HEADER_SIZE, size)
        return False

    def rich_signature_records(self) -> list[RichRecord]:
        """Decode the Rich signature hidden in the DOS stub, if any."""
        stub_offset = self.dos_stub_offset()
        rich_offset = self.find_bytes(stub_offset, self.dos_stub_size(), _RICH_MARKER)
        if rich_offset == -1:
            return []

        key = self.read_uint32(rich_offset + 4)
        current = rich_offset - 4
        while current > stub_offset:
            if self.read_uint32(current) ^ key == _DANS_MARKER:
                records = []
                for position in range(current + 16, rich_offset, 8):
                    value = self.read_uint32(position) ^ key
                    count = self.read_uint32(position + 4) ^ key
                    records.append(
                        RichRecord(id=(value >> 16) & 0xFFFF, version=value & 0xFFFF, count=count)
                    )
                return records
            current -= 4
        return []

    def dos_stub_offset(self) -> int:
        return DOS_HEADER_EX_SIZE

    def dos_stub_size(self) -> int:
        return max(self.lfanew() - DOS_HEADER_EX_SIZE, 0)

    def dos_stub(self) -> bytes:
        return self.read_bytes(self.dos_stub_offset(), self.dos_stub_size())

    def is_dos_stub_present(self) -> bool:
        return self.dos_stub_size() != 0

    def mode(self) -> Mode:
        return Mode.MODE_16

    def arch(self) -> str:
        return "8086"

    def endian(self) -> Endian:
        return Endian.LITTLE

    def file_type(self) -> FileType:
        return FileType.MSDOS

    def type(self) -> MsdosType:
        return MsdosType.EXE

    def os_name(self) -> OsName:
        return OsName.MSDOS

    def type_id_to_string(self, type_id: int) -> str:
        if type_id == MsdosType.EXE:
            return "EXE"
        return "Unknown"