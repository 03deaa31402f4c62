import pytest
from hypothesis import given, strategies as st

from efipath.x509 import get_asn1_seq_size


def test_two_octet_length():
    data = b"\x30\x82\x01\x00" + bytes(256)
    assert get_asn1_seq_size(data) == 260


def test_extra_trailing_data_is_allowed():
    data = b"\x30\x82\x01\x00" + bytes(300)
    assert get_asn1_seq_size(data) == get_asn1_seq_size(data[:260])


def test_four_octet_length():
    data = b"\x30\x84\x00\x00\x00\x10" + bytes(16)
    assert get_asn1_seq_size(data) == 20


@given(st.integers(min_value=0, max_value=0xFFFF))
def test_result_is_length_plus_four(der_len):
    data = b"\x30\x82" + der_len.to_bytes(2, "big") + bytes(der_len)
    assert get_asn1_seq_size(data) - 4 == der_len


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"\x30\x82",
        b"\x31\x82\x00\x00",
        b"\x30\x05\x00\x00\x00\x00\x00",
        b"\x30\x82\x01\x00" + bytes(255),
        b"\x30\x84\x08\x00\x00\x00" + bytes(8),
        b"\x30\x85\x00\x00\x00\x00\x01" + bytes(8),
        b"\x30\x83\x00",
    ],
)
def test_rejects_invalid(data):
    with pytest.raises(ValueError):
        get_asn1_seq_size(data)