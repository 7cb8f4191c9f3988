import pytest

from exeformats.dosdefs import (
    DOS_HEADER_EX_SIZE,
    DosHeader,
    field_offset,
    image_magics,
    image_magics_short,
    is_msdos,
)


def test_is_msdos_signatures():
    assert is_msdos(b"MZ\x90\x00")
    assert is_msdos(b"ZM")
    assert not is_msdos(b"PE")
    assert not is_msdos(b"M")


def test_magic_tables():
    assert image_magics()[0x5A4D] == "IMAGE_DOS_SIGNATURE"
    assert image_magics()[0x4D5A] == "IMAGE_DOS_SIGNATURE_ZM"
    assert image_magics_short() == {0x5A4D: "DOS_SIGNATURE", 0x4D5A: "DOS_SIGNATURE_ZM"}


def test_field_offsets_from_layout():
    assert field_offset("e_magic") == 0
    assert field_offset("e_lfanew") == 0x3C
    assert field_offset("e_oemid") == 0x24
    assert field_offset("e_res2", 1) == field_offset("e_res2") + 2


def test_field_offset_errors():
    with pytest.raises(IndexError):
        field_offset("e_res", 4)
    with pytest.raises(IndexError):
        field_offset("e_res2", -1)
    with pytest.raises(KeyError):
        field_offset("e_bogus")


def test_pack_parse_round_trip():
    header = DosHeader(
        e_magic=0x5A4D, e_cblp=0x90, e_cp=3, e_cparhdr=4, e_maxalloc=0xFFFF,
        e_sp=0xB8, e_lfarlc=0x40, e_res=(1, 2, 3, 4), e_oemid=5,
        e_res2=tuple(range(10)), e_lfanew=0x80,
    )
    raw = header.pack()
    assert len(raw) == DOS_HEADER_EX_SIZE
    assert raw[:2] == b"MZ"
    assert DosHeader.parse(raw) == header


def test_pack_places_lfanew():
    raw = DosHeader(e_lfanew=0x80).pack()
    assert int.from_bytes(raw[field_offset("e_lfanew"):], "little") == 0x80


def test_parse_short_data_pads_zero():
    header = DosHeader.parse(b"MZ")
    assert header.e_magic == 0x5A4D
    assert header.e_lfanew == 0
    assert header.e_res2 == (0,) * 10


def test_lfanew_is_signed():
    raw = bytearray(64)
    raw[0x3C:0x40] = b"\xff\xff\xff\xff"
    assert DosHeader.parse(bytes(raw)).e_lfanew == -1


def test_pack_rejects_bad_arrays():
    with pytest.raises(ValueError):
        DosHeader(e_res=(1, 2)).pack()