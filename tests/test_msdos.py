import struct

import pytest

from exeformats.binary import AddressSegment, FileType, MemoryType, Mode, OsName
from exeformats.dosdefs import DosHeader
from exeformats.msdos import MSDOS, MsdosType, RichRecord, is_rich_version_present

RICH_KEY = 0x11223344


def make_mz(size=0x200, lfanew=0x80):
    data = bytearray(size)
    data[0:2] = b"MZ"
    struct.pack_into("<i", data, 0x3C, lfanew)
    return data


def make_rich(records):
    lfanew = 0x100
    data = make_mz(0x200, lfanew)
    pos = 0x80
    struct.pack_into("<I", data, pos, 0x536E6144 ^ RICH_KEY)
    for i in range(1, 4):
        struct.pack_into("<I", data, pos + 4 * i, RICH_KEY)
    pos += 16
    for record in records:
        struct.pack_into("<I", data, pos, ((record.id << 16) | record.version) ^ RICH_KEY)
        struct.pack_into("<I", data, pos + 4, record.count ^ RICH_KEY)
        pos += 8
    data[pos:pos + 4] = b"Rich"
    struct.pack_into("<I", data, pos + 4, RICH_KEY)
    return MSDOS(data)


def test_valid_signatures():
    assert MSDOS(make_mz()).is_valid()
    zm = make_mz()
    zm[0:2] = b"ZM"
    assert MSDOS(zm).is_valid()
    assert not MSDOS(b"\x7fELF" + bytes(60)).is_valid()
    assert not MSDOS(b"").is_valid()


def test_field_round_trip():
    exe = MSDOS(make_mz())
    exe.write_field("e_ip", 0x1234)
    exe.write_field("e_res2", 0xBEEF, 9)
    exe.write_field("e_lfanew", 0x90)
    assert exe.read_field("e_ip") == 0x1234
    assert exe.read_field("e_res2", 9) == 0xBEEF
    assert exe.lfanew() == 0x90
    assert exe.dos_header().e_ip == 0x1234


def test_field_errors():
    exe = MSDOS(make_mz())
    with pytest.raises(IndexError):
        exe.read_field("e_res", 4)
    with pytest.raises(IndexError):
        exe.write_field("e_res2", 1, 10)
    with pytest.raises(KeyError):
        exe.read_field("e_nope")


def test_set_dos_header_round_trip():
    exe = MSDOS(make_mz())
    header = exe.dos_header()
    header.e_cs = 0x0042
    header.e_res = (1, 2, 3, 4)
    exe.set_dos_header(header)
    assert exe.dos_header() == header
    assert MSDOS(exe.data).dos_header() == DosHeader.parse(bytes(exe.data))


@pytest.mark.parametrize(
    "sig,attr",
    [(b"NE", "is_ne"), (b"PE", "is_pe"), (b"LE", "is_le"), (b"LX", "is_lx")],
)
def test_new_header_signatures(sig, attr):
    data = make_mz()
    data[0x80:0x82] = sig
    exe = MSDOS(data)
    checks = {"is_ne", "is_pe", "is_le", "is_lx"}
    assert getattr(exe, attr)() is True
    for other in checks - {attr}:
        assert getattr(exe, other)() is False


def test_dos_stub():
    exe = MSDOS(make_mz(lfanew=0x80))
    assert exe.dos_stub_offset() == 0x40
    assert exe.is_dos_stub_present()
    assert len(exe.dos_stub()) == exe.dos_stub_size()
    assert exe.dos_stub_offset() + exe.dos_stub_size() == exe.lfanew()
    no_stub = MSDOS(make_mz(lfanew=0x20))
    assert not no_stub.is_dos_stub_present()
    assert no_stub.dos_stub() == b""


def test_rich_records_decoded():
    expected = [RichRecord(id=0x0104, version=0x7809, count=5), RichRecord(id=0x00FF, version=0x1C83, count=1)]
    exe = make_rich(expected)
    assert exe.is_rich_signature_present()
    assert exe.rich_signature_records() == expected


def test_rich_absent():
    exe = MSDOS(make_mz())
    assert not exe.is_rich_signature_present()
    assert exe.rich_signature_records() == []


def test_is_rich_version_present():
    records = [RichRecord(1, 100, 2), RichRecord(2, 200, 3)]
    assert is_rich_version_present(records, 200)
    assert not is_rich_version_present(records, 300)
    assert not is_rich_version_present([], 100)


def test_memory_map_layout():
    data = make_mz(0x300)
    exe = MSDOS(data)
    exe.write_field("e_cp", 1)
    exe.write_field("e_cblp", 0x100)
    exe.write_field("e_cparhdr", 4)
    mm = exe.memory_map()
    assert mm.file_type is FileType.MSDOS
    assert mm.arch == "8086"
    assert mm.type_name == "EXE"
    assert mm.mode is Mode.MODE_16
    assert mm.module_address == 0x10000000
    assert mm.binary_size == exe.size()
    header, load, overlay = mm.records
    assert header.type is MemoryType.HEADER and header.name == "MSDOS Header"
    assert load.type is MemoryType.LOADSEGMENT and load.segment is AddressSegment.CODE
    assert load.offset == header.size
    assert load.offset + load.size == overlay.offset
    assert overlay.offset == 0x100
    assert overlay.type is MemoryType.OVERLAY and overlay.name == "Overlay"
    assert overlay.offset + overlay.size == exe.size()
    assert [r.index for r in mm.records] == [0, 1, 2]


def test_memory_map_no_overlay():
    exe = MSDOS(make_mz(0x200))
    exe.write_field("e_cp", 1)
    exe.write_field("e_cparhdr", 4)
    mm = exe.memory_map()
    assert [r.type for r in mm.records] == [MemoryType.HEADER, MemoryType.LOADSEGMENT]
    assert mm.records[1].offset + mm.records[1].size == exe.size()


def test_descriptors():
    exe = MSDOS(make_mz())
    assert exe.os_name() is OsName.MSDOS
    assert exe.type() is MsdosType.EXE
    assert exe.type_id_to_string(MsdosType.EXE) == "EXE"
    assert exe.type_id_to_string(MsdosType.UNKNOWN) == "Unknown"
    assert exe.image_size() == 0x10000