import pytest

from exeformats.binary import (
    BinaryFile,
    Endian,
    FileType,
    MemoryType,
    segment_address,
)


def test_read_little_and_big_endian():
    b = BinaryFile(b"\x01\x02\x03\x04")
    assert b.read_uint16(0) == 0x0201
    assert b.read_uint16(0, True) == 0x0102
    assert b.read_uint32(0) == 0x04030201
    assert b.read_uint32(0, big_endian=True) == 0x01020304


def test_java_magic_read_big_endian():
    b = BinaryFile(b"\xca\xfe\xba\xbe")
    assert b.read_uint32(0, True) == 0xCAFEBABE


def test_read_past_end_is_zero_padded():
    b = BinaryFile(b"\xff")
    assert b.read_uint16(0) == 0x00FF
    assert b.read_uint32(10) == 0
    assert b.read_bytes(0, 10) == b"\xff"
    assert b.read_bytes(-1, 2) == b""


def test_signed_read():
    b = BinaryFile(b"\xff\xff\xff\xff")
    assert b.read_int32(0) == -1
    assert b.read_uint32(0) == 0xFFFFFFFF


def test_write_round_trip():
    b = BinaryFile(bytes(16))
    b.write_uint16(0, 0x5A4D)
    b.write_uint32(4, 0xDEADBEEF, big_endian=True)
    b.write_uint8(12, 0x7F)
    assert b.read_bytes(0, 2) == b"MZ"
    assert b.read_uint32(4, True) == 0xDEADBEEF
    assert b.read_uint8(12) == 0x7F


def test_write_does_not_grow():
    b = BinaryFile(bytes(3))
    assert b.write_uint32(1, 0x11223344) == 2
    assert b.size() == 3
    assert b.write_bytes(5, b"x") == 0


def test_float_and_double_round_trip():
    import struct

    data = struct.pack(">f", 1.5) + struct.pack("<d", -2.25) + struct.pack("<Q", 7)
    b = BinaryFile(data)
    assert b.read_float(0, True) == 1.5
    assert b.read_double(4) == -2.25
    assert b.read_uint64(12) == 7


def test_find_bytes_respects_window():
    b = BinaryFile(b"xxRichyyRich")
    assert b.find_bytes(0, b.size(), b"Rich") == 2
    assert b.find_bytes(3, b.size() - 3, b"Rich") == 8
    assert b.find_bytes(0, 5, b"Rich") == -1


def test_is_offset_valid():
    b = BinaryFile(b"abc")
    assert b.is_offset_valid(2)
    assert not b.is_offset_valid(3)
    assert not b.is_offset_valid(-1)


def test_from_file(tmp_path):
    path = tmp_path / "sample.bin"
    path.write_bytes(b"hello")
    b = BinaryFile.from_file(path)
    assert b.read_bytes(0, 5) == b"hello"


def test_memory_map_covers_file():
    b = BinaryFile(bytes(40))
    mm = b.memory_map()
    assert mm.file_type is FileType.BINARY
    assert mm.endian is Endian.LITTLE
    assert mm.binary_size == 40
    assert sum(r.size for r in mm.records) == 40
    assert mm.records[0].type is MemoryType.DATA


def test_empty_memory_map():
    assert BinaryFile().memory_map().records == []


@pytest.mark.parametrize("seg,off", [(0, 0), (1, 0), (0, 0x100), (0xFFFF, 0xFFFF)])
def test_segment_address_is_monotonic_in_offset(seg, off):
    assert segment_address(seg, off) == segment_address(seg, 0) + off