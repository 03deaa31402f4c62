"""Size probing for DER-encoded certificates."""

_SMALLEST_POSSIBLE_DER_SEQ = 3


def get_asn1_seq_size(location) -> int:
    """Return the size of the DER SEQUENCE at the start of ``location``.

    The result is the encoded content length plus four header bytes.
    Raises ValueError if the data cannot be a certificate.
    """
    data = bytes(location)
    size = len(data)

    if size < _SMALLEST_POSSIBLE_DER_SEQ:
        raise ValueError("data too short for a DER sequence")

    if data[0] != 0x30:
        raise ValueError(f"tag 0x{data[0]:02x} is not a constructed SEQUENCE")

    if not data[1] & 0x80:
        raise ValueError("short-form length is too small to hold a certificate")

    octets = data[1] & 0x7

    if octets > 4 or (octets == 4 and data[2] & 0x8):
        raise ValueError("encoded length is unreasonably large")

    if size - 2 < octets:
        raise ValueError("length octets run past the end of the data")

    der_len = int.from_bytes(data[2:2 + octets], "big")

    if size - 2 - octets < der_len:
        raise ValueError(
            f"encoded length {der_len} exceeds the {size - 2 - octets} bytes left"
        )

    return der_len + 4