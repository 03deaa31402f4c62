"""Device path nodes: headers, construction and concatenation."""

import struct
import uuid
from enum import IntEnum
from typing import Iterator, Optional

HEADER_SIZE = 4
END_INSTANCE = 0x01
END_ENTIRE = 0xFF
_MAX_NODE_SIZE = 0xFFFF
_GUID_SIZE = 16


class DevicePathError(ValueError):
    """Raised when a device path or node is malformed or cannot be built."""


class NodeType(IntEnum):
    """Top-level device path node types."""

    HARDWARE = 0x01
    ACPI = 0x02
    MESSAGE = 0x03
    MEDIA = 0x04
    BIOS_BOOT = 0x05
    END = 0x7F


def _header(data) -> tuple[int, int, int]:
    raw = bytes(data)
    if len(raw) < HEADER_SIZE:
        raise DevicePathError("device path node is smaller than its header")
    type_, subtype, length = struct.unpack_from("<BBH", raw)
    return type_, subtype, length


def node_type(data) -> int:
    """Return the type byte of the node at the start of ``data``."""
    return _header(data)[0]


def node_subtype(data) -> int:
    """Return the subtype byte of the node at the start of ``data``."""
    return _header(data)[1]


def node_size(data) -> int:
    """Return the length of the node at the start of ``data``.

    Raises DevicePathError if the length is smaller than the header or
    runs past the end of ``data``.
    """
    _, _, length = _header(data)
    if length < HEADER_SIZE:
        raise DevicePathError(f"node length {length} is smaller than the header")
    if length > len(bytes(data)):
        raise DevicePathError(
            f"node length {length} runs past the {len(bytes(data))} bytes given"
        )
    return length


def _is_end_entire(node: bytes) -> bool:
    return node[0] == NodeType.END and node[1] == END_ENTIRE


def iter_nodes(data) -> Iterator[bytes]:
    """Yield every node of a device path up to and including End Entire."""
    raw = bytes(data)
    offset = 0
    while offset < len(raw):
        size = node_size(raw[offset:])
        node = raw[offset:offset + size]
        yield node
        if _is_end_entire(node):
            return
        offset += size
    raise DevicePathError("device path has no End Entire node")


def path_size(data) -> int:
    """Return the size in bytes of a device path, End Entire included."""
    return sum(len(node) for node in iter_nodes(data))


def _without_end(data) -> bytes:
    nodes = list(iter_nodes(data))
    return b"".join(nodes[:-1])


def _copy_path(data) -> bytes:
    return bytes(data)[:path_size(data)]


def make_generic(type_, subtype, payload=b"") -> bytes:
    """Build a node with the given type, subtype and payload."""
    body = bytes(payload)
    total = HEADER_SIZE + len(body)
    if total > _MAX_NODE_SIZE:
        raise DevicePathError(f"node of {total} bytes does not fit a 16-bit length")
    if not 0 <= int(type_) <= 0xFF or not 0 <= int(subtype) <= 0xFF:
        raise DevicePathError("node type and subtype must each fit in a byte")
    return struct.pack("<BBH", int(type_), int(subtype), total) + body


def _guid_bytes(guid) -> bytes:
    if isinstance(guid, uuid.UUID):
        return guid.bytes_le
    raw = bytes(guid)
    if len(raw) != _GUID_SIZE:
        raise DevicePathError(f"a GUID is {_GUID_SIZE} bytes, got {len(raw)}")
    return raw


def make_vendor(type_, subtype, vendor_guid, data=b"") -> bytes:
    """Build a vendor-defined node: a GUID followed by vendor data."""
    return make_generic(type_, subtype, _guid_bytes(vendor_guid) + bytes(data))


def make_end_entire() -> bytes:
    """Return an End Entire Device Path node."""
    return make_generic(NodeType.END, END_ENTIRE)


def set_node_data(node, data) -> bytes:
    """Return a copy of ``node`` with its payload starting with ``data``."""
    raw = bytes(node)
    length = node_size(raw)
    payload = bytes(data)
    if length <= HEADER_SIZE or len(payload) > length - HEADER_SIZE:
        raise DevicePathError("data does not fit in the node")
    return (
        raw[:HEADER_SIZE]
        + payload
        + raw[HEADER_SIZE + len(payload):length]
    )


def append_path(dp0: Optional[bytes], dp1: Optional[bytes]) -> bytes:
    """Join two device paths into one, dropping the first one's End Entire."""
    if dp0 is None and dp1 is None:
        return make_end_entire()
    if dp1 is None:
        return _copy_path(dp0)
    if dp0 is None:
        return _copy_path(dp1)
    return _without_end(dp0) + _copy_path(dp1)


def append_node(dp: Optional[bytes], dn: Optional[bytes]) -> bytes:
    """Return ``dp`` with node ``dn`` added before its End Entire."""
    prefix = _without_end(dp) if dp is not None else b""
    node = b""
    if dn is not None:
        node = bytes(dn)[:node_size(dn)]
    return prefix + node + make_end_entire()


def append_instance(dp: Optional[bytes], dpi: Optional[bytes]) -> bytes:
    """Return ``dp`` followed by the path instance ``dpi``.

    The End Entire of ``dp`` becomes an End Instance node.
    """
    if dp is None and dpi is None:
        raise DevicePathError("no device path or instance given")
    if dp is None:
        return _copy_path(dpi)
    nodes = list(iter_nodes(dp))
    end = nodes[-1]
    instance_end = end[:1] + bytes([END_INSTANCE]) + end[2:]
    return b"".join(nodes[:-1]) + instance_end + _copy_path(dpi)