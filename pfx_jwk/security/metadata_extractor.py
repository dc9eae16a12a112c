"""
Identity metadata (thumbprint, serial number, expiration) of a certificate.
"""
from datetime import timezone

from cryptography.hazmat.primitives import hashes

from ..models.certificate import CertificateBundle, CertificateMetadata
from ..models.config import SUPPORTED_THUMBPRINT_ALGORITHMS
from .encoding import base64url_encode, der_integer_content


NOT_AFTER_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_HASH_ALGORITHMS = {
    "SHA-256": hashes.SHA256,
    "SHA-1": hashes.SHA1,
}


def digest(data: bytes, algorithm: str = "SHA-256") -> bytes:
    """Hash data with the named algorithm."""
    hasher = hashes.Hash(_HASH_ALGORITHMS[algorithm]())
    hasher.update(data)
    return hasher.finalize()


class CertificateMetadataExtractor:
    """Derives the identity fields published in the X-Certificate-* headers."""

    def __init__(self, thumbprint_algorithm: str = "SHA-256"):
        if thumbprint_algorithm not in SUPPORTED_THUMBPRINT_ALGORITHMS:
            raise ValueError(f"Unsupported thumbprint algorithm: {thumbprint_algorithm}")
        self.thumbprint_algorithm = thumbprint_algorithm

    def describe(self, bundle: CertificateBundle) -> CertificateMetadata:
        """Describe the bundle's certificate. Pure function of the DER bytes."""
        der_bytes = bundle.der_bytes

        return CertificateMetadata(
            thumbprint=base64url_encode(digest(der_bytes, self.thumbprint_algorithm)),
            thumbprint_algorithm=self.thumbprint_algorithm,
            serial_number=der_integer_content(bundle.certificate.serial_number).hex().upper(),
            not_after=bundle.not_after.astimezone(timezone.utc).strftime(NOT_AFTER_FORMAT),
            der_bytes=der_bytes
        )
