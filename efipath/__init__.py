"""Build, combine and format UEFI device paths, with EFI CRC32 and DER size helpers."""

__version__ = "0.1.0"