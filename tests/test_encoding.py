"""
Tests for the byte and base64url encoding helpers.
"""
import unittest

from pfx_jwk.security.encoding import (
    base64url_decode, base64url_encode, bytes_to_int, der_integer_content, int_to_bytes
)


class TestIntegerEncoding(unittest.TestCase):
    """Test cases for minimal big-endian integer encoding."""

    def test_int_to_bytes_is_minimal(self):
        """Test that no leading zero bytes are emitted."""
        self.assertEqual(int_to_bytes(1), b'\x01')
        self.assertEqual(int_to_bytes(255), b'\xff')
        self.assertEqual(int_to_bytes(256), b'\x01\x00')
        self.assertEqual(int_to_bytes(65537), b'\x01\x00\x01')

    def test_int_to_bytes_zero(self):
        """Test that zero encodes as a single zero byte."""
        self.assertEqual(int_to_bytes(0), b'\x00')

    def test_int_to_bytes_has_no_sign_byte(self):
        """Test that values with the high bit set get no 0x00 prefix."""
        self.assertEqual(int_to_bytes(0x80), b'\x80')
        self.assertEqual(int_to_bytes(0xFFFF), b'\xff\xff')

    def test_int_to_bytes_rejects_negative(self):
        with self.assertRaises(ValueError):
            int_to_bytes(-1)

    def test_bytes_to_int(self):
        self.assertEqual(bytes_to_int(b'\x01\x00\x01'), 65537)
        self.assertEqual(bytes_to_int(bytearray(b'\x00\xff')), 255)

    def test_large_integer(self):
        """Test a 2048-bit value keeps its full length."""
        value = (1 << 2047) | 12345
        data = int_to_bytes(value)
        self.assertEqual(len(data), 256)
        self.assertEqual(bytes_to_int(data), value)


class TestBase64Url(unittest.TestCase):
    """Test cases for base64url without padding."""

    def test_uses_url_safe_alphabet(self):
        """Test that '+' and '/' are replaced by '-' and '_'."""
        self.assertEqual(base64url_encode(b'\xfb\xff'), '-_8')

    def test_strips_padding(self):
        """Test that '=' padding is removed."""
        self.assertEqual(base64url_encode(b'a'), 'YQ')
        self.assertEqual(base64url_encode(b'ab'), 'YWI')
        self.assertEqual(base64url_encode(b'abc'), 'YWJj')

    def test_output_never_contains_reserved_characters(self):
        """Test every output over a spread of inputs."""
        for length in range(1, 40):
            data = bytes((index * 37 + length * 11 + 250) % 256 for index in range(length))
            encoded = base64url_encode(data)
            self.assertNotIn('+', encoded)
            self.assertNotIn('/', encoded)
            self.assertNotIn('=', encoded)

    def test_decode_restores_padding(self):
        self.assertEqual(base64url_decode('YQ'), b'a')
        self.assertEqual(base64url_decode('-_8'), b'\xfb\xff')

    def test_accepts_bytearray(self):
        self.assertEqual(base64url_encode(bytearray(b'abc')), 'YWJj')


class TestDerIntegerContent(unittest.TestCase):
    """Test cases for DER INTEGER content octets (serial numbers)."""

    def test_small_positive(self):
        self.assertEqual(der_integer_content(0x7F), b'\x7f')
        self.assertEqual(der_integer_content(1), b'\x01')

    def test_zero(self):
        self.assertEqual(der_integer_content(0), b'\x00')

    def test_high_bit_gets_sign_byte(self):
        """Test that a positive value with the high bit set keeps its 0x00 prefix."""
        self.assertEqual(der_integer_content(0x80), b'\x00\x80')
        self.assertEqual(der_integer_content(0xABCDEF), b'\x00\xab\xcd\xef')

    def test_negative_values(self):
        self.assertEqual(der_integer_content(-1), b'\xff')
        self.assertEqual(der_integer_content(-128), b'\x80')
        self.assertEqual(der_integer_content(-129), b'\xff\x7f')


if __name__ == '__main__':
    unittest.main()
