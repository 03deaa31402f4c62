"""Media device path nodes."""

import struct
import uuid

from .fmt import format_guid, format_hex, format_ucs2, format_vendor
from .node import DevicePathError, NodeType, make_generic, node_size

HD = 0x01
CDROM = 0x02
VENDOR = 0x03
FILE = 0x04
PROTOCOL = 0x05
FIRMWARE_FILE = 0x06
FIRMWARE_VOLUME = 0x07
RELATIVE_OFFSET = 0x08
RAMDISK = 0x09

SIGNATURE_MBR = 0x01
SIGNATURE_GUID = 0x02

_SIGNATURE_SIZE = 16

VIRTUAL_DISK_GUID = uuid.UUID("77ab535a-45fc-624b-5560-f7b281d1f96e")
VIRTUAL_CD_GUID = uuid.UUID("3d5abd30-4175-87ce-6d64-d2ade523c4bb")
PERSISTENT_VIRTUAL_DISK_GUID = uuid.UUID("5cea02c9-4d07-69d3-269f-4496fbe096f9")
PERSISTENT_VIRTUAL_CD_GUID = uuid.UUID("08018188-42cd-bb48-100f-5387d53ded3d")

_RAMDISK_LABELS = {
    VIRTUAL_DISK_GUID: "VirtualDisk",
    VIRTUAL_CD_GUID: "VirtualCD",
    PERSISTENT_VIRTUAL_DISK_GUID: "PersistentVirtualDisk",
    PERSISTENT_VIRTUAL_CD_GUID: "PersistentVirtualCD",
}


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


def _format_hd(node: bytes) -> str:
    number, start, size, signature, _format, signature_type = _unpack(
        node, "<IQQ16sBB", 4
    )
    if signature_type == SIGNATURE_MBR:
        mbr = int.from_bytes(signature[:4], "little")
        return f"HD({number},MBR,{mbr:#x},{start:#x},{size:#x})"
    if signature_type == SIGNATURE_GUID:
        return f"HD({number},GPT,{format_guid(signature)},{start:#x},{size:#x})"
    return (
        f"HD({number},{signature_type},{format_hex(signature)},"
        f"{start:#x},{size:#x})"
    )


def _format_ramdisk(node: bytes) -> str:
    start, end, guid_raw, instance = _unpack(node, "<QQ16sH", 4)
    label = _RAMDISK_LABELS.get(uuid.UUID(bytes_le=guid_raw))
    if label:
        return f"{label}({start:#x},{end:#x},{instance})"
    return f"Ramdisk({start:#x},{end:#x},{instance},{format_guid(guid_raw)})"


def _format_guid_node(label: str, node: bytes) -> str:
    (guid_raw,) = _unpack(node, "16s", 4)
    return f"{label}({format_guid(guid_raw)})"


def format_media_node(data) -> str:
    """Render a media node as text."""
    size = node_size(data)
    node = bytes(data)[:size]
    subtype = node[1]
    if subtype == HD:
        return _format_hd(node)
    if subtype == CDROM:
        entry, rba, sectors = _unpack(node, "<IQQ", 4)
        return f"CDROM({entry},{rba:#x},{sectors:#x})"
    if subtype == VENDOR:
        return format_vendor("VenMedia", node)
    if subtype == FILE:
        limit = (size - 4) // 2
        return f"File({format_ucs2(node[4:4 + limit * 2])})"
    if subtype == PROTOCOL:
        return _format_guid_node("Media", node)
    if subtype == FIRMWARE_FILE:
        return _format_guid_node("FvFile", node)
    if subtype == FIRMWARE_VOLUME:
        return _format_guid_node("FvVol", node)
    if subtype == RELATIVE_OFFSET:
        _reserved, first, last = _unpack(node, "<IQQ", 4)
        return f"Offset({first:#x},{last:#x})"
    if subtype == RAMDISK:
        return _format_ramdisk(node)
    return f"MediaPath({subtype},{format_hex(node[4:4 + (size - 4) // 2])})"


def make_file(filepath: str) -> bytes:
    """Build a File() node holding ``filepath`` as NUL-terminated UCS-2."""
    if any(ord(char) > 0xFFFF for char in filepath):
        raise DevicePathError("file path has characters outside UCS-2")
    name = (filepath + "\0").encode("utf-16-le", errors="surrogatepass")
    return make_generic(NodeType.MEDIA, FILE, name)


def make_hd(num: int, part_start: int, part_size: int, signature,
            format_: int, signature_type: int) -> bytes:
    """Build a hard drive partition node."""
    raw = bytes(signature) if signature is not None else b""
    if len(raw) > _SIGNATURE_SIZE:
        raise DevicePathError(f"signature is at most {_SIGNATURE_SIZE} bytes")
    payload = _pack(
        "<IQQ16sBB",
        num,
        part_start,
        part_size,
        raw.ljust(_SIGNATURE_SIZE, b"\0"),
        format_,
        signature_type,
    )
    return make_generic(NodeType.MEDIA, HD, payload)