# efipath

`efipath` builds UEFI device paths, joins them and renders them in the
usual text form, for example
`PciRoot(0x0)/Pci(0x1f,0x2)/Sata(0,-1,0)/File(\EFI\BOOT\BOOTX64.EFI)`.
Device paths are plain `bytes` throughout.

## Installing

```
pip install efipath
```

To run the test suite, install the `test` extra and run `pytest`.

## Building nodes

Each `make_*` function returns the bytes of a single device path node.

```python
from efipath.acpi import make_acpi_hid
from efipath.hardware import make_pci
from efipath.message import make_sata
from efipath.media import make_file
from efipath.node import append_node, make_end_entire

dp = make_end_entire()
dp = append_node(dp, make_acpi_hid(0x0A0341D0, 0))
dp = append_node(dp, make_pci(0x1F, 2))
dp = append_node(dp, make_sata(0, -1, 0))
dp = append_node(dp, make_file("\\EFI\\BOOT\\BOOTX64.EFI"))
```

The node builders are:

- `efipath.node`: `make_generic`, `make_vendor`, `make_end_entire`
- `efipath.hardware`: `make_pci`, `make_edd10`
- `efipath.acpi`: `make_acpi_hid`, `make_acpi_hid_ex`
- `efipath.media`: `make_file`, `make_hd`
- `efipath.message`: `make_mac_addr`, `make_ipv4`, `make_scsi`,
  `make_nvme`, `make_sata`, `make_atapi`, `make_sas`, `make_nvdimm`,
  `make_emmc`

## Combining paths

`efipath.node` works on whole paths:

- `append_node(dp, dn)` puts node `dn` in front of the End Entire node of `dp`.
- `append_path(dp0, dp1)` joins two paths, dropping the first one's End Entire.
- `append_instance(dp, dpi)` turns the End Entire of `dp` into an End
  Instance node and adds the path `dpi` after it.
- `set_node_data(node, data)` returns a copy of a node with its payload
  overwritten from the start.
- `iter_nodes`, `path_size`, `node_type`, `node_subtype` and `node_size`
  inspect existing paths. `NodeType` names the node types.

All of these return new `bytes`; nothing is changed in place.

## Formatting

```python
from efipath.path import format_device_path

print(format_device_path(dp))
```

The `limit` argument defaults to `-1`, meaning "read to the end of the
path". A non-negative limit caps how many bytes are read. Each kind of
node can also be formatted on its own with `format_hardware_node`,
`format_acpi_node`, `format_message_node` and `format_media_node`.

Malformed input raises `efipath.node.DevicePathError`, a subclass of
`ValueError`.

## Helpers

- `efipath.crc32.efi_crc32(data)` computes the CRC32 used in EFI
  structures such as GPT headers; `crc32(data, seed)` is the raw seeded
  form underneath it.
- `efipath.x509.get_asn1_seq_size(data)` returns the size of a DER
  certificate sequence at the start of `data`, or raises `ValueError`.
- `efipath.fmt` holds the low-level text helpers: `format_hex`,
  `format_guid`, `format_ucs2` and `format_vendor`.

## What it does not do

`efipath` only works on bytes you give it. It does not read or write
firmware variables, does not look at disks, partition tables or mounted
file systems to work out a device path for a file, and does not parse
the text form back into bytes. It has no command-line tool.