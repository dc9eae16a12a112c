"""
Tests for JWK encoding of RSA key material.
"""
import base64
import hashlib
import unittest

from pfx_jwk.models.certificate import JWK_FIELDS, CertificateMetadata, RsaKeyMaterial
from pfx_jwk.models.errors import KeyTypeError
from pfx_jwk.security.encoding import base64url_decode, bytes_to_int, int_to_bytes
from pfx_jwk.security.jwk_encoder import JwkEncoder
from tests.certificate_fixtures import generate_rsa_key


class TestJwkEncoder(unittest.TestCase):
    """Test cases for JwkEncoder, without any certificate loading."""

    def setUp(self):
        """Set up test fixtures."""
        self.numbers = generate_rsa_key().private_numbers()
        public_numbers = self.numbers.public_numbers
        self.key_material = RsaKeyMaterial(
            n=int_to_bytes(public_numbers.n),
            e=int_to_bytes(public_numbers.e),
            d=bytearray(int_to_bytes(self.numbers.d)),
            p=bytearray(int_to_bytes(self.numbers.p)),
            q=bytearray(int_to_bytes(self.numbers.q)),
            dp=bytearray(int_to_bytes(self.numbers.dmp1)),
            dq=bytearray(int_to_bytes(self.numbers.dmq1)),
            qi=bytearray(int_to_bytes(self.numbers.iqmp))
        )
        self.der_bytes = b'\x30\x82\x01\x0a' + bytes(range(256))
        self.metadata = CertificateMetadata(
            thumbprint="ignored",
            thumbprint_algorithm="SHA-1",
            serial_number="01",
            not_after="2030-01-01T00:00:00Z",
            der_bytes=self.der_bytes
        )
        self.encoder = JwkEncoder()

    def _decode_int(self, value):
        return bytes_to_int(base64url_decode(value))

    def test_round_trip_of_key_integers(self):
        """Test that every integer member decodes to the original key value."""
        jwk = self.encoder.encode(self.key_material, self.metadata)

        self.assertEqual(self._decode_int(jwk['n']), self.numbers.public_numbers.n)
        self.assertEqual(self._decode_int(jwk['e']), 65537)
        self.assertEqual(self._decode_int(jwk['d']), self.numbers.d)
        self.assertEqual(self._decode_int(jwk['p']), self.numbers.p)
        self.assertEqual(self._decode_int(jwk['q']), self.numbers.q)
        self.assertEqual(self._decode_int(jwk['dp']), self.numbers.dmp1)
        self.assertEqual(self._decode_int(jwk['dq']), self.numbers.dmq1)
        self.assertEqual(self._decode_int(jwk['qi']), self.numbers.iqmp)

    def test_constant_members_and_order(self):
        jwk = self.encoder.encode(self.key_material, self.metadata)

        self.assertEqual(tuple(jwk), JWK_FIELDS)
        self.assertEqual(jwk['kty'], "RSA")
        self.assertEqual(jwk['use'], "sig")
        self.assertEqual(jwk['e'], "AQAB")

    def test_members_are_base64url_without_padding(self):
        jwk = self.encoder.encode(self.key_material, self.metadata)

        for name, value in jwk.items():
            self.assertNotIn('+', value, name)
            self.assertNotIn('/', value, name)
            self.assertNotIn('=', value, name)

    def test_x5t_s256_is_sha256_of_der_regardless_of_thumbprint_algorithm(self):
        """Test that x5t#S256 ignores the header thumbprint algorithm."""
        jwk = self.encoder.encode(self.key_material, self.metadata)

        expected = base64.urlsafe_b64encode(hashlib.sha256(self.der_bytes).digest()).decode().rstrip('=')
        self.assertEqual(jwk['x5t#S256'], expected)
        self.assertNotEqual(jwk['x5t#S256'], self.metadata.thumbprint)

    def test_encode_is_deterministic(self):
        self.assertEqual(
            self.encoder.encode(self.key_material, self.metadata),
            self.encoder.encode(self.key_material, self.metadata)
        )

    def test_public_only_material_is_rejected(self):
        """Test that a public-only JWK is never produced."""
        public_only = RsaKeyMaterial(n=self.key_material.n, e=self.key_material.e)

        with self.assertRaises(KeyTypeError):
            self.encoder.encode(public_only, self.metadata)

    def test_released_material_is_rejected(self):
        self.key_material.release()

        with self.assertRaises(KeyTypeError):
            self.encoder.encode(self.key_material, self.metadata)

    def test_modulus_without_sign_byte(self):
        """Test that the 2048-bit modulus encodes to 256 bytes."""
        jwk = self.encoder.encode(self.key_material, self.metadata)

        self.assertEqual(len(base64url_decode(jwk['n'])), 256)
        self.assertEqual(len(jwk['n']), 342)


if __name__ == '__main__':
    unittest.main()
