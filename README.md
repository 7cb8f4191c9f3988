# exeformats

Pure-Python readers for the headers and layouts of a few binary formats:

- MS-DOS MZ executables, including the DOS stub and the Rich signature
- 16-bit NE (OS/2 and Windows) executables and their segment tables
- Java class files, including the constant pool, fields, methods and attributes

Every format class derives from `exeformats.binary.BinaryFile` and works on an
in-memory copy of the file (its `data` attribute, a `bytearray`). It can tell
you whether the data has the right layout, read and write single fields, and
build a `MemoryMap` of the file's regions.

## Installation

```
pip install exeformats
```

## Modules

- `exeformats.binary`: `BinaryFile` (byte, integer and float reads and
  writes, `find_bytes`, `from_file`), the `MemoryMap` and `MemoryRecord`
  dataclasses, the enums `FileType`, `Mode`, `Endian`, `OsName`, `MemoryType`,
  `AddressSegment`, and `segment_address(segment, offset)`.
- `exeformats.dosdefs`: the `DosHeader` dataclass (`parse`, `pack`),
  `is_msdos`, `field_offset`, `image_magics`, `image_magics_short`.
- `exeformats.msdos`: the `MSDOS` reader, `RichRecord`, `MsdosType` and
  `is_rich_version_present`.
- `exeformats.neheader`: the `Os2Header` and `NeSegment` dataclasses, `is_ne`,
  `header_field_offset` and the name tables `ne_flags`, `ne_exetypes`,
  `ne_flags_others`, `segment_types`, `ne_magics`, `ne_magics_short`.
- `exeformats.ne`: the `NE` reader and `NeType`.
- `exeformats.javaclass`: the `JavaClass` reader, `ClassInfo`,
  `ConstantPoolEntry`, `MemberInfo`, `AttributeInfo`, `ConstantTag` and
  `jdk_version`.

## Usage

MZ executables:

```python
from exeformats.msdos import MSDOS

exe = MSDOS.from_file("program.exe")
if exe.is_valid():
    header = exe.dos_header()
    print(hex(header.e_magic), exe.lfanew())
    print(exe.is_pe(), exe.is_ne())
    print(exe.read_field("e_res2", 3))
    for record in exe.rich_signature_records():
        print(record.id, record.version, record.count)
    for region in exe.memory_map().records:
        print(region)
```

NE executables:

```python
from exeformats.ne import NE

ne = NE.from_file("old.exe")
if ne.is_valid():
    print(ne.os_name(), ne.os_version())
    print(ne.read_header_field("ne_cseg"))
    for segment in ne.segments():
        print(segment)
```

Java class files:

```python
from exeformats.javaclass import JavaClass, jdk_version

cls = JavaClass.from_file("Hello.class")
if cls.is_valid():
    print(cls.version())
    info = cls.info()
    print(len(info.constant_pool), len(info.methods))

print(jdk_version(0x34, 0))  # "Java SE 8"
```

## What it does not do

- It has no command-line tool; it is a library only.
- Writes (`write_field`, `set_dos_header`, `write_header_field`, the
  `write_*` methods) change the in-memory copy only and never grow it. Nothing
  is saved to disk; write `obj.data` out yourself if you need to keep changes.
- Only the MZ, NE and Java class formats are read. PE, LE/LX and other
  formats are recognised at most by signature (`MSDOS.is_pe`, `is_le`, `is_lx`),
  not parsed.

## Running the tests

```
pip install exeformats[test]
pytest
```