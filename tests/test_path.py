import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from efipath.acpi import ADR, NVDIMM_HID, format_acpi_node, make_acpi_hid
from efipath.fmt import format_hex
from efipath.hardware import format_hardware_node, make_pci
from efipath.media import format_media_node, make_file
from efipath.message import format_message_node, make_scsi
from efipath.node import (
    DevicePathError,
    NodeType,
    append_instance,
    append_node,
    make_end_entire,
    make_generic,
)
from efipath.path import format_device_path


def _path(*nodes):
    result = None
    for node in nodes:
        result = append_node(result, node)
    return result


def test_single_node_matches_node_formatter():
    pci = make_pci(2, 1)
    assert format_device_path(_path(pci)) == format_hardware_node(pci)


def test_nodes_are_joined_with_slashes():
    root = make_acpi_hid(0x0A0341D0, 0)
    pci = make_pci(0x1F, 2)
    scsi = make_scsi(1, 0)
    file_node = make_file("\\EFI\\boot.efi")
    expected = "/".join([
        format_acpi_node(root),
        format_hardware_node(pci),
        format_message_node(scsi),
        format_media_node(file_node),
    ])
    assert format_device_path(_path(root, pci, scsi, file_node)) == expected


def test_end_entire_alone_is_empty():
    assert format_device_path(make_end_entire()) == ""


def test_zero_limit_gives_empty_text():
    assert format_device_path(_path(make_pci(1, 1)), 0) == ""


def test_limit_smaller_than_first_node_raises():
    with pytest.raises(DevicePathError):
        format_device_path(_path(make_pci(1, 1)), 5)


def test_limit_below_header_raises():
    with pytest.raises(DevicePathError):
        format_device_path(_path(make_pci(1, 1)), 3)


def test_limit_stops_after_fitting_nodes():
    pci = make_pci(3, 0)
    scsi = make_scsi(4, 5)
    path = _path(pci, scsi)
    assert format_device_path(path, len(pci)) == format_hardware_node(pci)
    assert format_device_path(path, len(pci) + 3) == format_hardware_node(pci)


def test_limit_exactly_covering_path_matches_unlimited():
    path = _path(make_pci(3, 0), make_scsi(4, 5))
    assert format_device_path(path, len(path)) == format_device_path(path)


def test_none_raises():
    with pytest.raises(DevicePathError):
        format_device_path(None)


def test_truncated_path_raises():
    path = _path(make_pci(1, 2))
    with pytest.raises(DevicePathError):
        format_device_path(path[:-4])


def test_bbs_node():
    node = make_generic(NodeType.BIOS_BOOT, 1, struct.pack("<HH", 2, 0x10) + b"desc\0")
    assert format_device_path(_path(node)) == "BBS(HD,desc,0x10)"


def test_bbs_unknown_device_type_is_numeric():
    node = make_generic(NodeType.BIOS_BOOT, 1, struct.pack("<HH", 9, 0) + b"x\0")
    assert format_device_path(_path(node)) == "BBS(9,x,0x0)"


def test_bbs_other_subtype():
    node = make_generic(NodeType.BIOS_BOOT, 2, b"\x01\x02")
    assert format_device_path(_path(node)) == "BbsPath(2,0102)"


def test_unknown_type_renders_raw():
    payload = b"\xab\xcd"
    node = make_generic(0x06, 1, payload)
    assert format_device_path(_path(node)) == f"Path(6,1,{format_hex(payload)})"


def test_end_instance_stops_formatting():
    first = _path(make_pci(1, 0))
    second = _path(make_scsi(2, 3))
    joined = append_instance(first, second)
    assert format_device_path(joined) == format_device_path(first)


def test_nvroot_then_adr_node_listed_again():
    root = make_acpi_hid(NVDIMM_HID, 0)
    adr = make_generic(NodeType.ACPI, ADR, struct.pack("<I", 0x00012345))
    path = _path(root, adr)
    text = format_device_path(path)
    assert text == format_acpi_node(path) + "/" + format_acpi_node(adr)


@given(st.lists(st.tuples(st.integers(0, 255), st.integers(0, 255)), min_size=1, max_size=6))
def test_pci_chain_invariant(pairs):
    nodes = [make_pci(device, function) for device, function in pairs]
    expected = "/".join(format_hardware_node(node) for node in nodes)
    assert format_device_path(_path(*nodes)) == expected
    assert format_device_path(_path(*nodes), -5) == expected