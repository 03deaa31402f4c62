"""Messaging device path nodes."""

import struct
from typing import Callable, Iterator, Optional
from uuid import UUID

from .fmt import format_guid, format_hex, format_ucs2, format_vendor
from .node import DevicePathError, NodeType, make_generic, make_vendor, node_size

ATAPI = 0x01
SCSI = 0x02
FIBRECHANNEL = 0x03
FIREWIRE = 0x04
USB = 0x05
I2O = 0x06
INFINIBAND = 0x09
VENDOR = 0x0A
MAC_ADDR = 0x0B
IPV4 = 0x0C
IPV6 = 0x0D
UART = 0x0E
USB_CLASS = 0x0F
USB_WWID = 0x10
LUN = 0x11
SATA = 0x12
ISCSI = 0x13
VLAN = 0x14
FIBRECHANNELEX = 0x15
SAS_EX = 0x16
NVME = 0x17
URI = 0x18
UFS = 0x19
SD = 0x1A
BT = 0x1B
WIFI = 0x1C
EMMC = 0x1D
BTLE = 0x1E
DNS = 0x1F
NVDIMM = 0x20

PC_ANSI_GUID = UUID("e0c14753-f9be-11d2-9a0c-0090273fc14d")
VT_100_GUID = UUID("dfa66065-b419-11d3-9a2d-0090273fc14d")
VT_100_PLUS_GUID = UUID("7baec70b-57e0-4c76-8e87-2f9e28088343")
VT_UTF8_GUID = UUID("ad15a0d6-8bec-4acf-a073-d01de77e2d88")
DEBUGPORT_GUID = UUID("eba4e8d2-3858-41ec-a281-2647ba9660d0")
UART_GUID = UUID("37499a9d-542f-4c89-a026-35da142094e4")
SAS_GUID = UUID("d487ddb4-008b-11d9-afdc-001083ffca4d")

USB_CLASS_AUDIO = 0x01
USB_CLASS_CDC_CONTROL = 0x02
USB_CLASS_HID = 0x03
USB_CLASS_IMAGE = 0x06
USB_CLASS_PRINTER = 0x07
USB_CLASS_MASS_STORAGE = 0x08
USB_CLASS_HUB = 0x09
USB_CLASS_CDC_DATA = 0x0A
USB_CLASS_SMARTCARD = 0x0B
USB_CLASS_VIDEO = 0x0E
USB_CLASS_DIAGNOSTIC = 0xDC
USB_CLASS_WIRELESS = 0xE0
USB_CLASS_254 = 0xFE

USB_SUBCLASS_FW_UPDATE = 0x01
USB_SUBCLASS_IRDA_BRIDGE = 0x02
USB_SUBCLASS_TEST_AND_MEASURE = 0x03

SAS_TOPOLOGY_MASK = 0x0F
SAS_TOPOLOGY_NEXTBYTE = 0x2
SAS_DEVICE_MASK = 0x30
SAS_DEVICE_SHIFT = 4
SAS_DEVICE_SAS_INTERNAL = 0x0
SAS_DEVICE_SATA_INTERNAL = 0x1
SAS_DEVICE_SAS_EXTERNAL = 0x2
SAS_DEVICE_SATA_EXTERNAL = 0x3
SAS_CONNECT_MASK = 0x40
SAS_CONNECT_SHIFT = 6

ISCSI_HEADER_DIGEST_SHIFT = 0
ISCSI_DATA_DIGEST_SHIFT = 2
ISCSI_HEADER_CRC32 = 0x2
ISCSI_DATA_CRC32 = 0x2
ISCSI_AUTH_SHIFT = 10
ISCSI_AUTH_NONE = 0x2
ISCSI_CHAP_SHIFT = 12
ISCSI_CHAP_UNI = 0x1
ISCSI_MAX_TARGET_NAME_LEN = 223

_HEADER_SIZE = 4
_GUID_SIZE = 16
_VENDOR_DATA = _HEADER_SIZE + _GUID_SIZE
_MAC_SIZE = 32
_IP_ADDR_SIZE = 16

_USB_CLASS_LABELS = {
    USB_CLASS_AUDIO: "UsbAudio",
    USB_CLASS_CDC_CONTROL: "UsbCDCControl",
    USB_CLASS_HID: "UsbHID",
    USB_CLASS_IMAGE: "UsbImage",
    USB_CLASS_PRINTER: "UsbPrinter",
    USB_CLASS_MASS_STORAGE: "UsbMassStorage",
    USB_CLASS_HUB: "UsbHub",
    USB_CLASS_CDC_DATA: "UsbCDCData",
    USB_CLASS_SMARTCARD: "UsbSmartCard",
    USB_CLASS_VIDEO: "UsbVideo",
    USB_CLASS_DIAGNOSTIC: "UsbDiagnostic",
    USB_CLASS_WIRELESS: "UsbWireless",
}

_USB_254_LABELS = {
    USB_SUBCLASS_FW_UPDATE: "UsbDeviceFirmwareUpdate",
    USB_SUBCLASS_IRDA_BRIDGE: "UsbIrdaBridge",
    USB_SUBCLASS_TEST_AND_MEASURE: "UsbTestAndMeasurement",
}

_SASSATA_LABELS = ("NoTopology", "SAS", "SATA")
_LOCATION_LABELS = ("Internal", "External")
_CONNECT_LABELS = ("Direct", "Expanded")
_FLOW_CONTROL_LABELS = ("None", "Hardware", "XonXoff")
_PARITY_LABELS = "DNEOMS"
_STOP_BIT_LABELS = ("D", "1", "1.5", "2")


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


def _cstr(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("latin-1")


def _format_ipv4_addr(addr: bytes, port: Optional[int]) -> str:
    text = ".".join(str(octet) for octet in addr[:4])
    if port is not None and port > 0:
        text += f":{port}"
    return text


def _zero_run(words: tuple) -> tuple[int, int]:
    """Find the zero run to abbreviate as ``::``; returns (offset, size)."""
    largest_size, largest_offset = 0, -1
    this_size, this_offset = 0, -1
    in_zero_block = False
    for index, word in enumerate(words):
        if word != 0 and in_zero_block and this_size > largest_size:
            largest_size, largest_offset = this_size, this_offset
            this_size, this_offset = 0, -1
            in_zero_block = False
        if word == 0:
            if not in_zero_block:
                in_zero_block = True
                this_offset = index
            this_size += 1
    if this_size > largest_size:
        largest_size, largest_offset = this_size, this_offset
    if largest_size == 1:
        largest_offset = -1
    return largest_offset, largest_size


def _ipv6_pieces(words: tuple) -> Iterator[str]:
    offset, size = _zero_run(words)
    index = 0
    while index < len(words):
        if index == offset:
            yield "::"
            index += size
            continue
        if index > 0:
            yield ":"
        yield f"{words[index]:x}"
        index += 1


def _format_ipv6_addr(addr: bytes, port: Optional[int]) -> str:
    words = struct.unpack("<8H", addr[:_IP_ADDR_SIZE])
    text = "[" + "".join(_ipv6_pieces(words)) + "]"
    if port is not None and port >= 0:
        text += f":{port}"
    return text


def _format_sas(address: int, lun: int, topology: int, bay: int, rtp: int) -> str:
    more_info = topology & SAS_TOPOLOGY_MASK
    sassata = location = connect = 0
    drive_bay = -1
    if more_info:
        device = (topology & SAS_DEVICE_MASK) >> SAS_DEVICE_SHIFT
        if device in (SAS_DEVICE_SATA_EXTERNAL, SAS_DEVICE_SAS_EXTERNAL):
            location = 1
        if device in (SAS_DEVICE_SAS_INTERNAL, SAS_DEVICE_SATA_INTERNAL):
            sassata = 1
        else:
            sassata = 2
        connect = (topology & SAS_CONNECT_MASK) >> SAS_CONNECT_SHIFT
        if more_info == SAS_TOPOLOGY_NEXTBYTE:
            drive_bay = bay + 1
    text = f"SAS({address:x},{lun:x},{rtp:x},{_SASSATA_LABELS[sassata]}"
    if more_info:
        text += f",{_LOCATION_LABELS[location]},{_CONNECT_LABELS[connect]}"
    if more_info == SAS_TOPOLOGY_NEXTBYTE and drive_bay >= 0:
        text += f",{drive_bay}"
    return text + ")"


def _format_vendor_sas(node: bytes) -> str:
    _reserved, address, lun, topology, bay, rtp = _unpack(
        node, "<IQQBBH", _VENDOR_DATA
    )
    return _format_sas(address, lun, topology, bay, rtp)


def _format_vendor_uart(node: bytes) -> str:
    (value,) = _unpack(node, "<I", _VENDOR_DATA)
    if value > 2:
        return f"UartFlowControl({value})"
    return f"UartFlowControl({_FLOW_CONTROL_LABELS[value]})"


_VENDOR_LABELS = {
    PC_ANSI_GUID: "VenPcAnsi",
    VT_100_GUID: "VenVt100",
    VT_100_PLUS_GUID: "VenVt100Plus",
    VT_UTF8_GUID: "VenUtf8",
    DEBUGPORT_GUID: "DebugPort",
}

_VENDOR_FORMATTERS: dict[UUID, Callable[[bytes], str]] = {
    UART_GUID: _format_vendor_uart,
    SAS_GUID: _format_vendor_sas,
}


def _format_vendor_node(node: bytes) -> str:
    (guid_raw,) = _unpack(node, "16s", _HEADER_SIZE)
    guid = UUID(bytes_le=guid_raw)
    label = _VENDOR_LABELS.get(guid)
    if label is not None:
        data = node[_VENDOR_DATA:]
        return f"{label}({format_hex(data) if data else ''})"
    formatter = _VENDOR_FORMATTERS.get(guid)
    if formatter is not None:
        return formatter(node)
    return format_vendor("VenMsg", node)


def _format_atapi(node: bytes) -> str:
    primary, slave, lun = _unpack(node, "<BBH", 4)
    return f"Ata({primary},{slave},{lun})"


def _format_scsi(node: bytes) -> str:
    target, lun = _unpack(node, "<HH", 4)
    return f"SCSI({target},{lun})"


def _format_fibre(node: bytes) -> str:
    _reserved, wwn, lun = _unpack(node, "<IQQ", 4)
    return f"Fibre({wwn:x},{lun:x})"


def _format_fibre_ex(node: bytes) -> str:
    _reserved, wwn, lun = _unpack(node, "<I8s8s", 4)
    return f"Fibre({int.from_bytes(wwn, 'big'):x},{int.from_bytes(lun, 'big'):x})"


def _format_firewire(node: bytes) -> str:
    _reserved, guid = _unpack(node, "<IQ", 4)
    return f"I1394({guid:#x})"


def _format_usb(node: bytes) -> str:
    parent_port, interface = _unpack(node, "<BB", 4)
    return f"USB({parent_port},{interface})"


def _format_i2o(node: bytes) -> str:
    (target,) = _unpack(node, "<i", 4)
    return f"I2O({target})"


def _format_infiniband(node: bytes) -> str:
    flags, gid0, gid1, ioc, target, device = _unpack(node, "<IQQQQQ", 4)
    return f"Infiniband({flags:08x},{gid1:x}{gid0:x},{ioc:x},{target},{device})"


def _format_mac(node: bytes) -> str:
    mac, if_type = _unpack(node, f"<{_MAC_SIZE}sB", 4)
    shown = mac[:6] if if_type < 2 else mac
    return f"MAC({format_hex(shown)},{if_type})"


def _format_ipv4(node: bytes) -> str:
    local, remote, lport, rport, protocol, static = _unpack(
        node, "<4s4sHHHB", 4
    )
    return (
        f"IPv4({_format_ipv4_addr(local, lport)}"
        f"{_format_ipv4_addr(remote, rport)},{protocol:x},{static:x})"
    )


def _format_ipv6(node: bytes) -> str:
    local, remote, lport, rport, protocol, origin = _unpack(
        node, "<16s16sHHHB", 4
    )
    return (
        f"IPv6({_format_ipv6_addr(local, lport)}<->"
        f"{_format_ipv6_addr(remote, rport)},{protocol:x},{origin:x})"
    )


def _format_uart(node: bytes) -> str:
    _reserved, baud, data_bits, parity, stop_bits = _unpack(node, "<IQBBB", 4)
    text = f"Uart({baud or 115200},{data_bits or 8},"
    text += f"{parity}," if parity > 5 else f"{_PARITY_LABELS[parity]},"
    if stop_bits > 3:
        text += f"{stop_bits})"
    else:
        text += f"{_STOP_BIT_LABELS[stop_bits]})"
    return text


def _format_usb_class(node: bytes) -> str:
    vendor, product, device_class, subclass, protocol = _unpack(
        node, "<HHBBB", 4
    )
    label = _USB_CLASS_LABELS.get(device_class)
    if label is not None:
        return f"{label}({vendor:#x},{product:#x},{subclass},{protocol})"
    if device_class == USB_CLASS_254:
        label = _USB_254_LABELS.get(subclass)
        if label is None:
            return ""
        return f"{label}({vendor:#x},{product:#x},{protocol})"
    return f"UsbClass({vendor:x},{product:x},{subclass},{protocol})"


def _format_usb_wwid(node: bytes) -> str:
    interface, vendor, product = _unpack(node, "<HHH", 4)
    limit = (len(node) - 10) // 2
    serial = format_ucs2(node[10:10 + limit * 2])
    return f"UsbWwid({vendor:x},{product:x},{interface},{serial})"


def _format_lun(node: bytes) -> str:
    (lun,) = _unpack(node, "<B", 4)
    return f"Unit({lun})"


def _format_sata(node: bytes) -> str:
    hba_port, pmp, lun = _unpack(node, "<HhH", 4)
    return f"Sata({hba_port},{pmp},{lun})"


def _format_iscsi(node: bytes) -> str:
    protocol, options, lun_raw, tpgt = _unpack(node, "<HH8sH", 4)
    name_size = min(len(node) - 18, ISCSI_MAX_TARGET_NAME_LEN)
    target_name = _cstr(node[18:18 + name_size])
    lun = int.from_bytes(lun_raw, "big")
    header = (
        "CRC32"
        if (options >> ISCSI_HEADER_DIGEST_SHIFT) & ISCSI_HEADER_CRC32
        else "None"
    )
    data = (
        "CRC32" if (options >> ISCSI_DATA_DIGEST_SHIFT) & ISCSI_DATA_CRC32 else "None"
    )
    if (options >> ISCSI_AUTH_SHIFT) & ISCSI_AUTH_NONE:
        auth = "None"
    elif (options >> ISCSI_CHAP_SHIFT) & ISCSI_CHAP_UNI:
        auth = "CHAP_UNI"
    else:
        auth = "CHAP_BI"
    transport = "TCP" if protocol == 0 else "Unknown"
    return f"iSCSI({target_name},{tpgt},{lun:#x},{header},{data},{auth},{transport})"


def _format_vlan(node: bytes) -> str:
    (vlan_id,) = _unpack(node, "<H", 4)
    return f"Vlan({vlan_id})"


def _format_sas_ex(node: bytes) -> str:
    address, lun, topology, bay, rtp = _unpack(node, "<8s8sBBH", 4)
    return _format_sas(
        int.from_bytes(address, "big"), int.from_bytes(lun, "big"),
        topology, bay, rtp,
    )


def _format_nvme(node: bytes) -> str:
    namespace_id, eui = _unpack(node, "<I8s", 4)
    return f"NVMe({namespace_id:#x},{'-'.join(f'{b:02X}' for b in eui)})"


def _format_uri(node: bytes) -> str:
    return f"Uri({_cstr(node[4:])})"


def _format_ufs(node: bytes) -> str:
    target_id, lun = _unpack(node, "<BB", 4)
    return f"UFS({target_id},0x{lun:02x})"


def _format_sd(node: bytes) -> str:
    (slot,) = _unpack(node, "<B", 4)
    return f"SD({slot})"


def _format_bt(node: bytes) -> str:
    (addr,) = _unpack(node, "6s", 4)
    return f"Bluetooth({format_hex(addr, ':', 1)})"


def _format_wifi(node: bytes) -> str:
    (ssid,) = _unpack(node, "32s", 4)
    return f"Wi-Fi({format_hex(ssid, ':', 1)})"


def _format_emmc(node: bytes) -> str:
    (slot,) = _unpack(node, "<B", 4)
    return f"eMMC({slot})"


def _format_btle(node: bytes) -> str:
    addr, addr_type = _unpack(node, "6sB", 4)
    return f"BluetoothLE({format_hex(addr, ':', 1)},{addr_type})"


def _format_dns(node: bytes) -> str:
    (is_ipv6,) = _unpack(node, "<B", 4)
    count = (len(node) - 5) // _IP_ADDR_SIZE
    render = _format_ipv6_addr if is_ipv6 else _format_ipv4_addr
    addrs = (
        render(node[5 + i * _IP_ADDR_SIZE:5 + (i + 1) * _IP_ADDR_SIZE], None)
        for i in range(count)
    )
    return f"Dns({','.join(addrs)})"


def _format_nvdimm(node: bytes) -> str:
    (guid_raw,) = _unpack(node, "16s", 4)
    return f"NVDIMM({format_guid(guid_raw)})"


_FORMATTERS: dict[int, Callable[[bytes], str]] = {
    ATAPI: _format_atapi,
    SCSI: _format_scsi,
    FIBRECHANNEL: _format_fibre,
    FIBRECHANNELEX: _format_fibre_ex,
    FIREWIRE: _format_firewire,
    USB: _format_usb,
    I2O: _format_i2o,
    INFINIBAND: _format_infiniband,
    MAC_ADDR: _format_mac,
    IPV4: _format_ipv4,
    VENDOR: _format_vendor_node,
    IPV6: _format_ipv6,
    UART: _format_uart,
    USB_CLASS: _format_usb_class,
    USB_WWID: _format_usb_wwid,
    LUN: _format_lun,
    SATA: _format_sata,
    ISCSI: _format_iscsi,
    VLAN: _format_vlan,
    SAS_EX: _format_sas_ex,
    NVME: _format_nvme,
    URI: _format_uri,
    UFS: _format_ufs,
    SD: _format_sd,
    BT: _format_bt,
    WIFI: _format_wifi,
    EMMC: _format_emmc,
    BTLE: _format_btle,
    DNS: _format_dns,
    NVDIMM: _format_nvdimm,
}


def format_message_node(data) -> str:
    """Render a messaging node as text."""
    node = bytes(data)[:node_size(data)]
    subtype = node[1]
    formatter = _FORMATTERS.get(subtype)
    if formatter is None:
        return f"Msg({subtype},{format_hex(node[4:])})"
    return formatter(node)


def make_mac_addr(if_type: int, mac_addr) -> bytes:
    """Build a MAC address node; the address is cut to 32 bytes."""
    raw = bytes(mac_addr)[:_MAC_SIZE].ljust(_MAC_SIZE, b"\0")
    return make_generic(NodeType.MESSAGE, MAC_ADDR, _pack(f"<{_MAC_SIZE}sB", raw, if_type))


def make_ipv4(local: int, remote: int, gateway: int, netmask: int,
              local_port: int, remote_port: int, protocol: int,
              is_static) -> bytes:
    """Build an IPv4 node; addresses and ports are stored in network order."""
    payload = (
        _pack(">II", local, remote)
        + _pack(">HHH", local_port, remote_port, protocol)
        + bytes([1 if is_static else 0])
        + _pack(">II", gateway, netmask)
    )
    return make_generic(NodeType.MESSAGE, IPV4, payload)


def make_scsi(target: int, lun: int) -> bytes:
    """Build a SCSI node."""
    return make_generic(NodeType.MESSAGE, SCSI, _pack("<HH", target, lun))


def make_nvme(namespace_id: int, ieee_eui_64=None) -> bytes:
    """Build an NVMe namespace node; a missing EUI-64 is all zeros."""
    eui = bytes(ieee_eui_64)[:8].ljust(8, b"\0") if ieee_eui_64 is not None else bytes(8)
    return make_generic(NodeType.MESSAGE, NVME, _pack("<I8s", namespace_id, eui))


def make_sata(hba_port: int, port_multiplier_port: int, lun: int) -> bytes:
    """Build a SATA node."""
    return make_generic(
        NodeType.MESSAGE, SATA, _pack("<HhH", hba_port, port_multiplier_port, lun)
    )


def make_atapi(primary: int, slave: int, lun: int) -> bytes:
    """Build an ATAPI node."""
    return make_generic(NodeType.MESSAGE, ATAPI, _pack("<BBH", primary, slave, lun))


def make_sas(sas_address: int) -> bytes:
    """Build a SAS vendor node with no topology information."""
    return make_vendor(
        NodeType.MESSAGE, VENDOR, SAS_GUID,
        _pack("<IQQBBH", 0, sas_address, 0, 0, 0, 0),
    )


def _guid_bytes(guid) -> bytes:
    if isinstance(guid, UUID):
        return guid.bytes_le
    raw = bytes(guid)
    if len(raw) != _GUID_SIZE:
        raise DevicePathError(f"a GUID is {_GUID_SIZE} bytes, got {len(raw)}")
    return raw


def make_nvdimm(uuid) -> bytes:
    """Build an NVDIMM namespace node from a UUID or its 16 raw bytes."""
    return make_generic(NodeType.MESSAGE, NVDIMM, _guid_bytes(uuid))


def make_emmc(slot_id: int) -> bytes:
    """Build an eMMC node."""
    return make_generic(NodeType.MESSAGE, EMMC, _pack("<B", slot_id))