"""
Byte and text encodings shared by the JWK and header code paths.
"""
import base64
from typing import Union


def int_to_bytes(value: int) -> bytes:
    """Minimal unsigned big-endian encoding; zero is a single 0x00 byte."""
    if value < 0:
        raise ValueError("Only non-negative integers can be encoded")
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), 'big')


def bytes_to_int(data: Union[bytes, bytearray]) -> int:
    return int.from_bytes(data, 'big')


def base64url_encode(data: Union[bytes, bytearray]) -> str:
    """Base64url with the '-'/'_' alphabet and no '=' padding."""
    return base64.urlsafe_b64encode(bytes(data)).decode('ascii').rstrip('=')


def base64url_decode(text: str) -> bytes:
    padding = '=' * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


def der_integer_content(value: int) -> bytes:
    """
    Content octets of a DER INTEGER: minimal two's complement, big-endian.

    A positive value whose high bit is set gets a leading 0x00, exactly as it
    is stored in the certificate.
    """
    if value >= 0:
        length = value.bit_length() // 8 + 1
    else:
        length = (-value - 1).bit_length() // 8 + 1
    return value.to_bytes(length, 'big', signed=True)
