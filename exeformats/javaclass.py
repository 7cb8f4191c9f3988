"""Reader for compiled Java class files."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Union

from exeformats.binary import (
    BinaryFile,
    Endian,
    FileType,
    MemoryMap,
    MemoryRecord,
    MemoryType,
    Mode,
)

JAVA_CLASS_MAGIC = 0xCAFEBABE
MIN_FILE_SIZE = 24

_JDK_VERSIONS = {
    0x2D: "JDK 1.1",
    0x2E: "JDK 1.2",
    0x2F: "JDK 1.3",
    0x30: "JDK 1.4",
    0x31: "Java SE 5.0",
    0x32: "Java SE 6",
    0x33: "Java SE 7",
    0x34: "Java SE 8",
    0x35: "Java SE 9",
    0x36: "Java SE 10",
    0x37: "Java SE 11",
    0x38: "Java SE 12",
    0x39: "Java SE 13",
    0x3A: "Java SE 14",
    0x3B: "Java SE 15",
    0x3C: "Java SE 16",
    0x3D: "Java SE 17",
    0x3E: "Java SE 18",
    0x3F: "Java SE 19",
    0x40: "Java SE 20",
    0x41: "Java SE 21",
    0x42: "Java SE 22",
    0x43: "Java SE 23",
    0x44: "Java SE 24",
    0x45: "Java SE 25",
    0x46: "Java SE 26",
    0x47: "Java SE 27",
    0x48: "Java SE 28",
    0x49: "Java SE 29",
    0x4A: "Java SE 30",
}


class ConstantTag(enum.IntEnum):
    """Tags of constant pool entries."""

    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELDREF = 9
    METHODREF = 10
    INTERFACE_METHODREF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20


@dataclass
class ConstantPoolEntry:
    """One constant pool entry; ``value`` is None for an unknown tag."""

    offset: int
    tag: int
    value: Union[str, int, float, None] = None


@dataclass
class AttributeInfo:
    name_index: int = 0
    length: int = 0
    info: bytes = b""


@dataclass
class MemberInfo:
    """A field or method record."""

    access_flags: int = 0
    name_index: int = 0
    descriptor_index: int = 0
    attributes_count: int = 0
    attributes: list[AttributeInfo] = field(default_factory=list)


@dataclass
class ClassInfo:
    """The decoded structure of a class file; ``size`` is where parsing ended."""

    size: int = 0
    minor_version: int = 0
    major_version: int = 0
    constant_pool_count: int = 0
    constant_pool: list[ConstantPoolEntry] = field(default_factory=list)
    access_flags: int = 0
    this_class: int = 0
    super_class: int = 0
    interfaces_count: int = 0
    interfaces: list[int] = field(default_factory=list)
    fields_count: int = 0
    fields: list[MemberInfo] = field(default_factory=list)
    methods_count: int = 0
    methods: list[MemberInfo] = field(default_factory=list)
    attributes_count: int = 0
    attributes: list[AttributeInfo] = field(default_factory=list)


def jdk_version(major: int, minor: int) -> str:
    """Release name for a class file version, or "" when the major is unknown."""
    name = _JDK_VERSIONS.get(major, "")
    if name and minor:
        name += f".{minor}"
    return name


# tag -> (reader kind, bytes the entry occupies)
_ENTRY_LAYOUT = {
    ConstantTag.INTEGER: ("u32", 5),
    ConstantTag.FLOAT: ("f32", 5),
    ConstantTag.LONG: ("u64", 9),
    ConstantTag.DOUBLE: ("f64", 9),
    ConstantTag.CLASS: ("u16", 3),
    ConstantTag.STRING: ("u16", 3),
    ConstantTag.FIELDREF: ("u16", 5),
    ConstantTag.METHODREF: ("u16", 5),
    ConstantTag.INTERFACE_METHODREF: ("u16", 5),
    ConstantTag.NAME_AND_TYPE: ("u16", 5),
    ConstantTag.METHOD_HANDLE: ("u8", 4),
    ConstantTag.METHOD_TYPE: ("u16", 3),
    ConstantTag.INVOKE_DYNAMIC: ("u16", 5),
    ConstantTag.MODULE: ("u16", 3),
    ConstantTag.PACKAGE: ("u16", 3),
}


class JavaClass(BinaryFile):
    """A Java class file held in memory."""

    def is_valid(self) -> bool:
        return (
            self.size() >= MIN_FILE_SIZE
            and self.read_uint32(0, True) == JAVA_CLASS_MAGIC
            and self.read_uint32(4, True) > 10
        )

    def arch(self) -> str:
        return "JVM"

    def mode(self) -> Mode:
        return Mode.MODE_32

    def endian(self) -> Endian:
        return Endian.BIG

    def file_type(self) -> FileType:
        return FileType.JAVACLASS

    def version(self) -> str:
        minor = self.read_uint16(4, True)
        major = self.read_uint16(6, True)
        return jdk_version(major, minor) if major else ""

    def file_format_ext(self) -> str:
        return "class"

    def _read_entry(self, offset: int) -> tuple[ConstantPoolEntry, int]:
        tag = self.read_uint8(offset)
        entry = ConstantPoolEntry(offset=offset, tag=tag)
        if tag == ConstantTag.UTF8:
            length = self.read_uint16(offset + 1, True)
            entry.value = self.read_bytes(offset + 3, length).decode("utf-8", errors="replace")
            return entry, 3 + length
        layout = _ENTRY_LAYOUT.get(tag)
        if layout is None:
            return entry, 0
        kind, width = layout
        position = offset + 1
        if kind == "u8":
            entry.value = self.read_uint8(position)
        elif kind == "u16":
            entry.value = self.read_uint16(position, True)
        elif kind == "u32":
            entry.value = self.read_uint32(position, True)
        elif kind == "u64":
            entry.value = self.read_uint64(position, True)
        elif kind == "f32":
            entry.value = self.read_float(position, True)
        else:
            entry.value = self.read_double(position, True)
        return entry, width

    def _read_attribute(self, offset: int) -> tuple[AttributeInfo, int]:
        length = self.read_uint32(offset + 2, True)
        attribute = AttributeInfo(
            name_index=self.read_uint16(offset, True),
            length=length,
            info=self.read_bytes(offset + 6, length),
        )
        return attribute, 6 + length

    def _read_member(self, offset: int) -> tuple[MemberInfo, int]:
        start = offset
        member = MemberInfo(
            access_flags=self.read_uint16(offset, True),
            name_index=self.read_uint16(offset + 2, True),
            descriptor_index=self.read_uint16(offset + 4, True),
            attributes_count=self.read_uint16(offset + 6, True),
        )
        offset += 8
        for _ in range(member.attributes_count):
            attribute, consumed = self._read_attribute(offset)
            member.attributes.append(attribute)
            offset += consumed
        return member, offset - start

    def info(self) -> ClassInfo:
        """Decode the class file structure."""
        result = ClassInfo(
            minor_version=self.read_uint16(4, True),
            major_version=self.read_uint16(6, True),
            constant_pool_count=self.read_uint16(8, True),
        )
        offset = 10
        size = self.size()

        index = 1
        while index < result.constant_pool_count:
            entry, consumed = self._read_entry(offset)
            offset += consumed
            result.constant_pool.append(entry)
            if entry.tag in (ConstantTag.LONG, ConstantTag.DOUBLE):
                index += 1
            if offset >= size:
                break
            index += 1

        result.access_flags = self.read_uint16(offset, True)
        result.this_class = self.read_uint16(offset + 2, True)
        result.super_class = self.read_uint16(offset + 4, True)
        result.interfaces_count = self.read_uint16(offset + 6, True)
        offset += 8

        for _ in range(result.interfaces_count):
            result.interfaces.append(self.read_uint16(offset, True))
            offset += 2

        result.fields_count = self.read_uint16(offset, True)
        offset += 2
        for _ in range(result.fields_count):
            member, consumed = self._read_member(offset)
            result.fields.append(member)
            offset += consumed

        result.methods_count = self.read_uint16(offset, True)
        offset += 2
        for _ in range(result.methods_count):
            member, consumed = self._read_member(offset)
            result.methods.append(member)
            offset += consumed

        result.attributes_count = self.read_uint16(offset, True)
        offset += 2
        for _ in range(result.attributes_count):
            attribute, consumed = self._read_attribute(offset)
            result.attributes.append(attribute)
            offset += consumed

        result.size = offset
        return result

    def memory_map(self) -> MemoryMap:
        total = self.size()
        parsed_size = self.info().size
        result = MemoryMap(
            file_type=self.file_type(),
            arch=self.arch(),
            mode=self.mode(),
            endian=self.endian(),
            binary_size=total,
        )
        result.records.append(
            MemoryRecord(
                offset=0,
                address=-1,
                size=parsed_size,
                type=MemoryType.DATA,
                name="Data",
                index=0,
            )
        )
        if total > parsed_size:
            result.records.append(
                MemoryRecord(
                    offset=parsed_size,
                    address=-1,
                    size=total - parsed_size,
                    type=MemoryType.OVERLAY,
                    name="Overlay",
                    index=1,
                )
            )
        return result


def _optional_entry(entries: list[ConstantPoolEntry], tag: int) -> Optional[ConstantPoolEntry]:
    return next((entry for entry in entries if entry.tag == tag), None)