"""Text helpers shared by the device path node formatters."""

import uuid

_HEADER_SIZE = 4
_GUID_SIZE = 16


def format_hex(data, separator: str = "", stride: int = 0) -> str:
    """Render bytes as lowercase hex, optionally grouped by ``stride`` bytes."""
    raw = bytes(data)
    if not separator or stride <= 0:
        return raw.hex()
    groups = (raw[start:start + stride].hex() for start in range(0, len(raw), stride))
    return separator.join(groups)


def format_guid(raw) -> str:
    """Render a 16-byte EFI GUID (mixed-endian layout) as text."""
    data = bytes(raw)
    if len(data) != _GUID_SIZE:
        raise ValueError(f"a GUID is {_GUID_SIZE} bytes, got {len(data)}")
    return str(uuid.UUID(bytes_le=data))


def format_ucs2(raw) -> str:
    """Decode a UCS-2 field, stopping at the first NUL.

    The final code unit is the terminator slot and is never shown.
    """
    data = bytes(raw)
    units = len(data) // 2
    if units == 0:
        return ""
    text = data[:(units - 1) * 2].decode("utf-16-le", errors="surrogatepass")
    return text.split("\0", 1)[0]


def format_vendor(label: str, node) -> str:
    """Render a vendor-defined node as ``label(guid[,hexdata])``."""
    data = bytes(node)
    minimum = _HEADER_SIZE + _GUID_SIZE
    if len(data) < minimum:
        raise ValueError("node too short for a vendor device path")
    length = int.from_bytes(data[2:4], "little")
    if length < minimum or length > len(data):
        raise ValueError(f"invalid vendor node length {length}")
    body = format_guid(data[_HEADER_SIZE:minimum])
    vendor_data = data[minimum:length]
    if vendor_data:
        body += "," + format_hex(vendor_data)
    return f"{label}({body})"