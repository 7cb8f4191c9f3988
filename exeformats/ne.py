"""Reader for NE (new executable) files used by 16-bit Windows and OS/2."""

from __future__ import annotations

import enum

from exeformats.binary import (
    AddressSegment,
    Endian,
    FileType,
    MemoryMap,
    MemoryRecord,
    MemoryType,
    Mode,
    OsName,
)
from exeformats.msdos import MSDOS
from exeformats.neheader import (
    NE_SEGMENT_SIZE,
    OS2_HEADER_FIELDS,
    OS2_HEADER_SIZE,
    NeSegment,
    Os2Header,
    header_field_offset,
    is_ne,
)

_SEGMENT_SPAN = 0x10000

_OS_NAMES = {
    1: OsName.OS2,
    2: OsName.WINDOWS,
    3: OsName.MSDOS,
    4: OsName.WINDOWS,
    5: OsName.BORLANDOSSERVICES,
}

_OS_VERSIONS = {3: "4.x", 4: "386", 5: "386"}


class NeType(enum.IntEnum):
    UNKNOWN = 0
    EXE = 1
    DLL = 2
    DRIVER = 3


class NE(MSDOS):
    """An NE executable held in memory."""

    def is_valid(self) -> bool:
        return is_ne(bytes(self.data))

    def os2_header_offset(self) -> int:
        """Offset of the OS/2 header, or -1 when it lies outside the file."""
        offset = self.lfanew()
        return offset if self.is_offset_valid(offset) else -1

    def os2_header(self) -> Os2Header:
        offset = self.os2_header_offset()
        if offset == -1:
            return Os2Header()
        return Os2Header.parse(self.read_bytes(offset, OS2_HEADER_SIZE))

    def read_header_field(self, name: str) -> int:
        """Value of an OS/2 header field; 0 when the header is absent."""
        field_pos = header_field_offset(name)
        offset = self.os2_header_offset()
        if offset == -1:
            return 0
        width = OS2_HEADER_FIELDS[name][1]
        position = offset + field_pos
        if width == 1:
            return self.read_uint8(position)
        if width == 2:
            return self.read_uint16(position)
        return self.read_uint32(position)

    def write_header_field(self, name: str, value: int) -> None:
        """Store an OS/2 header field; nothing happens when the header is absent."""
        field_pos = header_field_offset(name)
        offset = self.os2_header_offset()
        if offset == -1:
            return
        width = OS2_HEADER_FIELDS[name][1]
        position = offset + field_pos
        if width == 1:
            self.write_uint8(position, value)
        elif width == 2:
            self.write_uint16(position, value)
        else:
            self.write_uint32(position, value)

    def entry_table_offset(self) -> int:
        return self.os2_header_offset() + self.read_header_field("ne_enttab")

    def entry_table_size(self) -> int:
        return self.read_header_field("ne_cbenttab")

    def segment_table_offset(self) -> int:
        return self.os2_header_offset() + self.read_header_field("ne_segtab")

    def resource_table_offset(self) -> int:
        return self.os2_header_offset() + self.read_header_field("ne_rsrctab")

    def resident_name_table_offset(self) -> int:
        return self.os2_header_offset() + self.read_header_field("ne_restab")

    def module_reference_table_offset(self) -> int:
        return self.os2_header_offset() + self.read_header_field("ne_modtab")

    def imported_names_table_offset(self) -> int:
        return self.os2_header_offset() + self.read_header_field("ne_imptab")

    def non_resident_name_table_offset(self) -> int:
        """Offset of the non-resident name table; it is relative to the file start."""
        return self.read_header_field("ne_nrestab")

    def segments(self) -> list[NeSegment]:
        start = self.segment_table_offset()
        count = self.read_header_field("ne_cseg")
        return [
            NeSegment.parse(self.read_bytes(start + i * NE_SEGMENT_SIZE, NE_SEGMENT_SIZE))
            for i in range(count)
        ]

    def memory_map(self) -> MemoryMap:
        shift = self.read_header_field("ne_align")
        segments = self.segments()

        result = MemoryMap(
            file_type=FileType.NE,
            arch=self.arch(),
            type_name=self.type_id_to_string(self.type()),
            mode=Mode.MODE_16SEG,
            endian=Endian.LITTLE,
            binary_size=self.size(),
            module_address=self.module_address(),
            image_size=len(segments) * _SEGMENT_SPAN,
            entry_point_address=self.read_header_field("ne_csip"),
        )

        index = 0
        for number, segment in enumerate(segments, start=1):
            file_size = segment.file_size or _SEGMENT_SPAN
            file_offset = segment.file_offset << shift
            base = number * _SEGMENT_SPAN

            if file_offset:
                result.records.append(
                    MemoryRecord(
                        offset=file_offset,
                        address=base,
                        size=file_size,
                        type=MemoryType.LOADSEGMENT,
                        segment=AddressSegment.UNKNOWN,
                        index=index,
                    )
                )
                index += 1

            remainder = _SEGMENT_SPAN - file_size
            if remainder:
                result.records.append(
                    MemoryRecord(
                        offset=-1,
                        address=base + file_size,
                        size=remainder,
                        type=MemoryType.LOADSEGMENT,
                        segment=AddressSegment.UNKNOWN,
                        index=index,
                        is_virtual=True,
                    )
                )
                index += 1

        return result

    def module_address(self) -> int:
        return 0x10000

    def mode(self) -> Mode:
        return Mode.MODE_16SEG

    def arch(self) -> str:
        return "8086"

    def endian(self) -> Endian:
        return Endian.LITTLE

    def file_type(self) -> FileType:
        return FileType.NE

    def type(self) -> NeType:
        return NeType.EXE

    def os_name(self) -> OsName:
        return _OS_NAMES.get(self.read_header_field("ne_exetyp"), OsName.UNKNOWN)

    def os_version(self) -> str:
        return _OS_VERSIONS.get(self.read_header_field("ne_exetyp"), "")

    def type_id_to_string(self, type_id: int) -> str:
        names = {
            NeType.EXE: "EXE",
            NeType.DLL: "DLL",
            NeType.DRIVER: "Driver",
        }
        return names.get(type_id, "Unknown")