"""
Encoding of RSA key material as a JSON Web Key.
"""
from ..models.certificate import CertificateMetadata, Jwk, RsaKeyMaterial
from ..models.errors import KeyTypeError
from .encoding import base64url_encode
from .metadata_extractor import digest


class JwkEncoder:
    """Turns RSA key material into the canonical private JWK."""

    key_type = "RSA"
    key_use = "sig"

    def encode(self, key_material: RsaKeyMaterial, metadata: CertificateMetadata) -> Jwk:
        """
        Build the JWK for the key pair.

        The x5t#S256 member is always SHA-256 over the DER certificate,
        whatever algorithm the header thumbprint uses.

        Raises:
            KeyTypeError: If the key material has no private components
        """
        if not key_material.has_private_key:
            raise KeyTypeError("RSA private key components are not available")

        return {
            'kty': self.key_type,
            'use': self.key_use,
            'e': base64url_encode(key_material.e),
            'n': base64url_encode(key_material.n),
            'd': base64url_encode(key_material.d),
            'p': base64url_encode(key_material.p),
            'q': base64url_encode(key_material.q),
            'dp': base64url_encode(key_material.dp),
            'dq': base64url_encode(key_material.dq),
            'qi': base64url_encode(key_material.qi),
            'x5t#S256': base64url_encode(digest(metadata.der_bytes, "SHA-256"))
        }
