"""Hardware device path nodes."""

import struct
import uuid

from .fmt import format_hex, format_vendor
from .node import DevicePathError, NodeType, make_generic, make_vendor, node_size

PCI = 0x01
PCCARD = 0x02
MMIO = 0x03
VENDOR = 0x04
CONTROLLER = 0x05
BMC = 0x06

EDD10_HARDWARE_VENDOR_PATH_GUID = uuid.UUID("cf31fac5-c24e-11d2-85f3-00a0c93ec93b")


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


def _is_edd10(node: bytes) -> bool:
    if len(node) < 20:
        return False
    return uuid.UUID(bytes_le=node[4:20]) == EDD10_HARDWARE_VENDOR_PATH_GUID


def format_hardware_node(data) -> str:
    """Render a hardware node as text."""
    node = bytes(data)[:node_size(data)]
    subtype = node[1]
    if subtype == PCI:
        function, device = _unpack(node, "<BB", 4)
        return f"Pci({device:#x},{function:#x})"
    if subtype == PCCARD:
        (function,) = _unpack(node, "<B", 4)
        return f"PcCard({function:#x})"
    if subtype == MMIO:
        memory_type, start, end = _unpack(node, "<IQQ", 4)
        return f"MemoryMapped({memory_type},{start:#x},{end:#x})"
    if subtype == VENDOR:
        if _is_edd10(node):
            (hardware_device,) = _unpack(node, "<I", 20)
            return f"EDD10({hardware_device:#x})"
        return format_vendor("VenHw", node)
    if subtype == CONTROLLER:
        (controller,) = _unpack(node, "<I", 4)
        return f"Ctrl({controller:#x})"
    if subtype == BMC:
        interface_type, base_addr = _unpack(node, "<BQ", 4)
        return f"BMC({interface_type},{base_addr:#x})"
    return f"HardwarePath({subtype},{format_hex(node[4:])})"


def make_pci(device: int, function: int) -> bytes:
    """Build a PCI node."""
    return make_generic(NodeType.HARDWARE, PCI, _pack("<BB", function, device))


def make_edd10(hardware_device: int) -> bytes:
    """Build an EDD 1.0 hardware vendor node."""
    return make_vendor(
        NodeType.HARDWARE,
        VENDOR,
        EDD10_HARDWARE_VENDOR_PATH_GUID,
        _pack("<I", hardware_device),
    )