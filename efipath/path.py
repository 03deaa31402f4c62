"""Rendering whole device paths as text."""

from .acpi import format_acpi_node
from .fmt import format_hex
from .hardware import format_hardware_node
from .media import format_media_node
from .message import format_message_node
from .node import END_ENTIRE, END_INSTANCE, DevicePathError, NodeType, node_size

BIOS_BOOT = 0x01

_BBS_DEVICE_TYPES = ("", "Floppy", "HD", "CDROM", "PCMCIA", "USB", "Network", "")


def _cstr(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("latin-1")


def _format_bios_boot(node: bytes) -> str:
    subtype = node[1]
    if subtype != BIOS_BOOT:
        return f"BbsPath({subtype},{format_hex(node[4:])})"
    if len(node) < 8:
        raise DevicePathError("BBS node too short for its fields")
    device_type = int.from_bytes(node[4:6], "little")
    status = int.from_bytes(node[6:8], "little")
    description = _cstr(node[8:])
    if 0 < device_type < 7:
        kind = _BBS_DEVICE_TYPES[device_type]
    else:
        kind = str(device_type)
    return f"BBS({kind},{description},{status:#x})"


def _format_node(rest: bytes, size: int) -> str:
    node = rest[:size]
    type_, subtype = node[0], node[1]
    if type_ == NodeType.HARDWARE:
        return format_hardware_node(node)
    if type_ == NodeType.ACPI:
        # An NvRoot() node looks at the node that follows it.
        return format_acpi_node(rest)
    if type_ == NodeType.MESSAGE:
        return format_message_node(node)
    if type_ == NodeType.MEDIA:
        return format_media_node(node)
    if type_ == NodeType.BIOS_BOOT:
        return _format_bios_boot(node)
    if type_ == NodeType.END:
        return "," if subtype == END_INSTANCE else ""
    return f"Path({type_},{subtype},{format_hex(node[4:])})"


def format_device_path(dp, limit: int = -1) -> str:
    """Render a device path as text, nodes separated by ``/``.

    A negative ``limit`` means no limit; otherwise at most ``limit`` bytes
    of the path are read.  Formatting stops at the first End node after
    the first node.  Raises DevicePathError if ``dp`` is None or not even
    its first node fits within ``limit``.
    """
    if dp is None:
        raise DevicePathError("no device path given")
    raw = bytes(dp)
    parts: list[str] = []
    offset = 0
    first = True

    while limit:
        rest = raw[offset:]
        if limit >= 0 and (limit < 4 or node_size(rest) > limit):
            text = "".join(parts)
            if text:
                return text
            raise DevicePathError("device path does not fit within the limit")

        size = node_size(rest)
        type_, subtype = rest[0], rest[1]

        if first:
            first = False
        elif type_ == NodeType.END:
            return "".join(parts)
        else:
            parts.append("/")

        parts.append(_format_node(rest, size))

        limit -= size
        if type_ == NodeType.END and subtype == END_ENTIRE:
            break
        offset += size

    return "".join(parts)