"""CRC-32 as used by EFI (reflected polynomial 0xEDB88320)."""

_POLYNOMIAL = 0xEDB88320
_MASK = 0xFFFFFFFF


def _build_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        value = byte
        for _ in range(8):
            value = (value >> 1) ^ _POLYNOMIAL if value & 1 else value >> 1
        table.append(value)
    return tuple(table)


_TABLE = _build_table()


def crc32(data, seed: int) -> int:
    """Return the raw CRC-32 of ``data`` starting from ``seed``.

    No pre- or post-inversion is applied, so results can be chained by
    feeding one call's result as the next call's seed.
    """
    value = seed & _MASK
    for byte in bytes(data):
        value = _TABLE[(value ^ byte) & 0xFF] ^ (value >> 8)
    return value


def efi_crc32(data) -> int:
    """Return the EFI-style CRC-32: seeded with ~0 and inverted at the end."""
    return crc32(data, _MASK) ^ _MASK