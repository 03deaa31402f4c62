import struct
import uuid

import pytest
from hypothesis import given
from hypothesis import strategies as st

from efipath import media
from efipath.fmt import format_vendor
from efipath.media import format_media_node, make_file, make_hd
from efipath.node import DevicePathError, NodeType, make_generic, make_vendor, node_size


def _args(text, label):
    assert text.startswith(label + "(") and text.endswith(")")
    return text[len(label) + 1:-1].split(",")


_PATH_TEXT = st.text(alphabet=st.characters(min_codepoint=1, max_codepoint=0xD7FF), max_size=40)


@given(_PATH_TEXT)
def test_file_round_trip(path):
    built = make_file(path)
    assert node_size(built) == len(built) == 4 + 2 * (len(path) + 1)
    assert format_media_node(built) == f"File({path})"


def test_file_stops_at_terminator():
    built = make_file("\\EFI\\BOOT\\BOOTX64.EFI")
    assert built.endswith(b"\0\0")
    assert format_media_node(built) == "File(\\EFI\\BOOT\\BOOTX64.EFI)"


def test_file_rejects_non_bmp():
    with pytest.raises(DevicePathError):
        make_file("\U0001F600")


def test_hd_mbr_pinned():
    built = make_hd(1, 0x800, 0x100000, b"\x78\x56\x34\x12", 1, media.SIGNATURE_MBR)
    assert format_media_node(built) == "HD(1,MBR,0x12345678,0x800,0x100000)"


@given(
    st.integers(0, 0x7FFFFFFF),
    st.integers(0, 2**64 - 1),
    st.integers(0, 2**64 - 1),
)
def test_hd_gpt_round_trip(number, start, size):
    guid = uuid.UUID(int=number * 7919 + 1)
    built = make_hd(number, start, size, guid.bytes_le, 2, media.SIGNATURE_GUID)
    parts = _args(format_media_node(built), "HD")
    assert int(parts[0]) == number
    assert parts[1] == "GPT"
    assert uuid.UUID(parts[2]) == guid
    assert int(parts[3], 16) == start
    assert int(parts[4], 16) == size


def test_hd_other_signature_type():
    signature = bytes(range(16))
    built = make_hd(3, 0, 0, signature, 2, 7)
    parts = _args(format_media_node(built), "HD")
    assert parts[:3] == ["3", "7", signature.hex()]


def test_hd_signature_too_long():
    with pytest.raises(DevicePathError):
        make_hd(1, 0, 0, bytes(17), 2, media.SIGNATURE_GUID)


def test_hd_none_signature_is_zero():
    built = make_hd(1, 0, 0, None, 2, media.SIGNATURE_GUID)
    assert struct.unpack_from("16s", built, 24)[0] == bytes(16)


def test_protocol_and_firmware_guids():
    guid = uuid.uuid4()
    for subtype, label in (
        (media.PROTOCOL, "Media"),
        (media.FIRMWARE_FILE, "FvFile"),
        (media.FIRMWARE_VOLUME, "FvVol"),
    ):
        built = make_generic(NodeType.MEDIA, subtype, guid.bytes_le)
        assert _args(format_media_node(built), label) == [str(guid)]


@given(st.integers(0, 2**64 - 1), st.integers(0, 2**64 - 1), st.integers(0, 0xFFFF))
def test_ramdisk_known_type(start, end, instance):
    payload = struct.pack("<QQ16sH", start, end, media.VIRTUAL_DISK_GUID.bytes_le, instance)
    parts = _args(format_media_node(make_generic(NodeType.MEDIA, media.RAMDISK, payload)), "VirtualDisk")
    assert [int(parts[0], 16), int(parts[1], 16), int(parts[2])] == [start, end, instance]


def test_ramdisk_unknown_type():
    guid = uuid.uuid4()
    payload = struct.pack("<QQ16sH", 1, 2, guid.bytes_le, 3)
    parts = _args(format_media_node(make_generic(NodeType.MEDIA, media.RAMDISK, payload)), "Ramdisk")
    assert uuid.UUID(parts[3]) == guid


@given(st.integers(0, 2**64 - 1), st.integers(0, 2**64 - 1))
def test_relative_offset(first, last):
    payload = struct.pack("<IQQ", 0, first, last)
    parts = _args(format_media_node(make_generic(NodeType.MEDIA, media.RELATIVE_OFFSET, payload)), "Offset")
    assert [int(p, 16) for p in parts] == [first, last]


def test_cdrom():
    payload = struct.pack("<IQQ", 2, 0x10, 0x20)
    parts = _args(format_media_node(make_generic(NodeType.MEDIA, media.CDROM, payload)), "CDROM")
    assert [int(parts[0]), int(parts[1], 16), int(parts[2], 16)] == [2, 0x10, 0x20]


def test_vendor_uses_venmedia():
    built = make_vendor(NodeType.MEDIA, media.VENDOR, uuid.uuid4(), b"\x09")
    assert format_media_node(built) == format_vendor("VenMedia", built)


def test_unknown_subtype():
    text = format_media_node(make_generic(NodeType.MEDIA, 0x30, b"\xab\xcd\xef\x01"))
    assert text.startswith("MediaPath(48,")
    assert text.endswith(")")


def test_truncated_hd():
    with pytest.raises(DevicePathError):
        format_media_node(make_generic(NodeType.MEDIA, media.HD, bytes(10)))