"""ACPI device path nodes."""

import struct
from typing import Optional

from .fmt import format_hex
from .node import DevicePathError, NodeType, make_generic, node_size

HID = 0x01
HID_EX = 0x02
ADR = 0x03

_HID_EX_STRINGS = 16


def _pnp_id(product: int) -> int:
    return (product << 16) | 0x41D0


PCI_ROOT_HID = _pnp_id(0x0A03)
CONTAINER_0A05_HID = _pnp_id(0x0A05)
CONTAINER_0A06_HID = _pnp_id(0x0A06)
PCIE_ROOT_HID = _pnp_id(0x0A08)
EC_HID = _pnp_id(0x0A09)
FLOPPY_HID = _pnp_id(0x0604)
KEYBOARD_HID = _pnp_id(0x0301)
SERIAL_HID = _pnp_id(0x0501)
NVDIMM_HID = _pnp_id(0x0012)


def _unpack(node: bytes, fmt: str, offset: int) -> tuple:
    try:
        return struct.unpack_from(fmt, node, offset)
    except struct.error as exc:
        raise DevicePathError("node too short for its fields") from exc


def _pack(fmt: str, *values) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise DevicePathError(f"value out of range: {exc}") from exc


def _cstr(node: bytes, start: int, limit: int) -> tuple[str, int]:
    segment = node[start:start + max(limit, 0)]
    end = segment.find(b"\0")
    if end < 0:
        end = len(segment)
    return segment[:end].decode("latin-1"), end


def _format_hid_ex(hid: int, uid: int, cid: int, hidstr: Optional[str],
                   cidstr: Optional[str], uidstr: Optional[str]) -> str:
    if hidstr is None and cidstr is None and (uidstr is not None or uid):
        uid_text = uidstr if uidstr is not None else f"{uid:#x}"
        return f"AcpiExp({hid:#x},{cid:#x},{uid_text})"
    hid_text = hidstr if hidstr is not None else f"{hid:#x}"
    cid_text = cidstr if cidstr is not None else f"{cid:#x}"
    uid_text = uidstr if uidstr is not None else f"{uid:#x}"
    return f"AcpiEx({hid_text},{cid_text},{uid_text})"


def _format_hid_ex_node(node: bytes) -> str:
    hid, uid, cid = _unpack(node, "<III", 4)
    limit = len(node) - _HID_EX_STRINGS
    hidstr, hidlen = _cstr(node, _HID_EX_STRINGS, limit)
    limit -= hidlen + 1
    uidstr = cidstr = None
    if limit > 0:
        uid_start = _HID_EX_STRINGS + hidlen + 1
        uidstr, uidlen = _cstr(node, uid_start, limit)
        limit -= uidlen + 1
        if limit > 0:
            cidstr, _ = _cstr(node, uid_start + uidlen + 1, limit)
    if uidstr is None:
        return ""
    if hid == PCI_ROOT_HID:
        return f"PciRoot({uidstr})"
    if hid in (CONTAINER_0A05_HID, CONTAINER_0A06_HID):
        return f"AcpiContainer({uidstr})"
    if hid == PCIE_ROOT_HID:
        return f"PcieRoot({uidstr})"
    if hid == EC_HID:
        return "EmbeddedController()"
    return _format_hid_ex(hid, uid, cid, hidstr, cidstr, uidstr)


def _decode_nvdimm_adr(adr: int) -> tuple[int, int, int, int, int]:
    return (
        (adr & 0x0FFF0000) >> 16,
        (adr & 0x0000F000) >> 12,
        (adr & 0x00000F00) >> 8,
        (adr & 0x000000F0) >> 4,
        adr & 0x0000000F,
    )


def _format_nvdimm(rest: bytes) -> str:
    if len(rest) < 4:
        raise DevicePathError("NvRoot() node has no following node")
    size = node_size(rest)
    if rest[0] != NodeType.ACPI or rest[1] != ADR:
        raise DevicePathError(
            f"invalid child node type (0x{rest[0]:02x},0x{rest[1]:02x})"
        )
    count = (size - 4) // 4
    adrs = struct.unpack_from(f"<{count}I", rest, 4)
    dimms = ",".join(
        "NvDimm(0x{:03x},0x{:01x},0x{:01x},0x{:01x},0x{:01x})".format(
            *_decode_nvdimm_adr(adr)
        )
        for adr in adrs
    )
    return "NvRoot()" + dimms


def _format_hid_node(node: bytes, rest: bytes) -> str:
    hid, uid = _unpack(node, "<II", 4)
    simple = {
        PCI_ROOT_HID: "PciRoot",
        PCIE_ROOT_HID: "PcieRoot",
        FLOPPY_HID: "Floppy",
        KEYBOARD_HID: "Keyboard",
        SERIAL_HID: "Serial",
    }
    if hid in simple:
        return f"{simple[hid]}({uid:#x})"
    if hid in (CONTAINER_0A05_HID, CONTAINER_0A06_HID):
        return "AcpiContainer()"
    if hid == EC_HID:
        return "EmbeddedController()"
    if hid == NVDIMM_HID:
        return _format_nvdimm(rest)
    return f"Acpi(0x{hid:08x},{uid:#x})"


def format_acpi_node(data) -> str:
    """Render an ACPI node as text.

    ``data`` starts at the node; the bytes after it are the rest of the
    path, which an NvRoot() node needs to reach its child.
    """
    raw = bytes(data)
    size = node_size(raw)
    node = raw[:size]
    subtype = node[1]
    if subtype == ADR:
        count = (size - 4) // 4
        adrs = struct.unpack_from(f"<{count}I", node, 4)
        return "AcpiAdr(" + ",".join(f"{adr:#x}" for adr in adrs) + ")"
    if subtype == HID_EX:
        return _format_hid_ex_node(node)
    if subtype == HID:
        return _format_hid_node(node, raw[size:])
    return f"AcpiPath({subtype},{format_hex(node[4:4 + (size - 4) // 2])})"


def make_acpi_hid(hid: int, uid: int) -> bytes:
    """Build an ACPI HID node."""
    return make_generic(NodeType.ACPI, HID, _pack("<II", hid, uid))


def _encode(text: Optional[str]) -> bytes:
    if not text:
        return b""
    raw = text.encode("latin-1")
    if b"\0" in raw:
        raise DevicePathError("ACPI id strings may not contain NUL")
    return raw


def make_acpi_hid_ex(hid: int, uid: int, cid: int, hidstr: Optional[str],
                     uidstr: Optional[str], cidstr: Optional[str]) -> bytes:
    """Build an expanded ACPI HID node; a given string replaces its number."""
    hid_raw, uid_raw, cid_raw = _encode(hidstr), _encode(uidstr), _encode(cidstr)
    numbers = _pack(
        "<III",
        0 if hid_raw else hid,
        0 if uid_raw else uid,
        0 if cid_raw else cid,
    )
    strings = hid_raw + b"\0" + uid_raw + b"\0" + cid_raw + b"\0"
    return make_generic(NodeType.ACPI, HID_EX, numbers + strings)