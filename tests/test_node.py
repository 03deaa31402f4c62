import uuid

import pytest
from hypothesis import given
from hypothesis import strategies as st

from efipath import node
from efipath.node import (
    DevicePathError,
    NodeType,
    append_instance,
    append_node,
    append_path,
    iter_nodes,
    make_end_entire,
    make_generic,
    make_vendor,
    node_size,
    node_subtype,
    node_type,
    path_size,
    set_node_data,
)


def _pci_like(payload=b"\x00\x01"):
    return make_generic(NodeType.HARDWARE, 1, payload)


def _path(*nodes):
    return b"".join(nodes) + make_end_entire()


def test_end_entire_wire_bytes():
    assert make_end_entire() == bytes([0x7F, 0xFF, 0x04, 0x00])


@given(
    st.integers(0, 255),
    st.integers(0, 255),
    st.binary(max_size=64),
)
def test_make_generic_round_trip(type_, subtype, payload):
    built = make_generic(type_, subtype, payload)
    assert node_type(built) == type_
    assert node_subtype(built) == subtype
    assert node_size(built) == len(payload) + 4
    assert built[4:] == payload


def test_make_generic_too_large():
    with pytest.raises(DevicePathError):
        make_generic(NodeType.MEDIA, 4, bytes(0x10000))


def test_node_size_truncated():
    built = _pci_like()
    with pytest.raises(DevicePathError):
        node_size(built[:5])


def test_node_size_below_header():
    with pytest.raises(DevicePathError):
        node_size(b"\x01\x01\x02\x00")


def test_header_too_short():
    with pytest.raises(DevicePathError):
        node_type(b"\x01")


def test_iter_nodes_splits_path():
    first = _pci_like(b"\x02\x03")
    second = make_generic(NodeType.MEDIA, 4, b"\x41\x00\x00\x00")
    path = _path(first, second)
    assert list(iter_nodes(path)) == [first, second, make_end_entire()]


def test_iter_nodes_needs_end():
    with pytest.raises(DevicePathError):
        list(iter_nodes(_pci_like()))


def test_path_size_ignores_trailing_bytes():
    path = _path(_pci_like())
    assert path_size(path + b"trailing") == len(path)


def test_make_vendor_layout():
    guid = uuid.uuid4()
    built = make_vendor(NodeType.HARDWARE, 4, guid, b"abc")
    assert built[4:20] == guid.bytes_le
    assert built[20:] == b"abc"
    assert node_size(built) == len(built)


def test_make_vendor_bad_guid():
    with pytest.raises(DevicePathError):
        make_vendor(NodeType.HARDWARE, 4, b"short", b"")


def test_set_node_data_replaces_prefix():
    built = _pci_like(b"\x00\x00\x00")
    updated = set_node_data(built, b"\xaa\xbb")
    assert updated[:4] == built[:4]
    assert updated[4:6] == b"\xaa\xbb"
    assert updated[6:] == built[6:]


def test_set_node_data_too_large():
    with pytest.raises(DevicePathError):
        set_node_data(_pci_like(b"\x00"), b"\x01\x02")


def test_set_node_data_header_only():
    with pytest.raises(DevicePathError):
        set_node_data(make_end_entire(), b"")


def test_append_path_both_none():
    assert append_path(None, None) == make_end_entire()


def test_append_path_one_side():
    path = _path(_pci_like())
    assert append_path(path, None) == path
    assert append_path(None, path + b"xx") == path


def test_append_path_joins():
    a = _pci_like(b"\x01\x01")
    b = _pci_like(b"\x02\x02")
    joined = append_path(_path(a), _path(b))
    assert list(iter_nodes(joined)) == [a, b, make_end_entire()]


def test_append_node_both_none():
    assert append_node(None, None) == make_end_entire()


def test_append_node_adds_before_end():
    a = _pci_like(b"\x01\x01")
    b = _pci_like(b"\x05\x06")
    result = append_node(_path(a), b)
    assert list(iter_nodes(result)) == [a, b, make_end_entire()]


def test_append_instance_needs_something():
    with pytest.raises(DevicePathError):
        append_instance(None, None)


def test_append_instance_without_dp():
    path = _path(_pci_like())
    assert append_instance(None, path) == path


def test_append_instance_marks_instance_end():
    a = _pci_like(b"\x01\x01")
    b = _pci_like(b"\x02\x02")
    result = append_instance(_path(a), _path(b))
    nodes = list(iter_nodes(result))
    assert nodes[0] == a
    assert node_type(nodes[1]) == NodeType.END
    assert node_subtype(nodes[1]) == node.END_INSTANCE
    assert nodes[2:] == [b, make_end_entire()]