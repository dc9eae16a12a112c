"""
Data models for certificate bundles, RSA key material and JWK output.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Any

from cryptography import x509

from .errors import CertificateServiceError, ErrorKind


# Field order of the emitted JWK
JWK_FIELDS = ('kty', 'use', 'e', 'n', 'd', 'p', 'q', 'dp', 'dq', 'qi', 'x5t#S256')

PRIVATE_FIELDS = ('d', 'p', 'q', 'dp', 'dq', 'qi')

Jwk = Dict[str, str]


@dataclass
class CertificateBundle:
    """A loaded PKCS#12 certificate and its (optional) private key."""
    certificate: x509.Certificate
    der_bytes: bytes
    public_key: Any
    private_key: Optional[Any]
    not_after: datetime
    source_path: str = ""

    @property
    def has_private_key(self) -> bool:
        return self.private_key is not None

    def release(self) -> None:
        """Drop the reference to the private key."""
        self.private_key = None

    def __enter__(self) -> 'CertificateBundle':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()


@dataclass
class RsaKeyMaterial:
    """
    RSA key components as minimal big-endian byte sequences.

    Private components live in mutable buffers so that release() can
    overwrite them once the response has been encoded.
    """
    n: bytes
    e: bytes
    d: Optional[bytearray] = field(default=None, repr=False)
    p: Optional[bytearray] = field(default=None, repr=False)
    q: Optional[bytearray] = field(default=None, repr=False)
    dp: Optional[bytearray] = field(default=None, repr=False)
    dq: Optional[bytearray] = field(default=None, repr=False)
    qi: Optional[bytearray] = field(default=None, repr=False)

    @property
    def has_private_key(self) -> bool:
        return all(getattr(self, name) is not None for name in PRIVATE_FIELDS)

    def release(self) -> None:
        """Zero and drop every private component."""
        for name in PRIVATE_FIELDS:
            buffer = getattr(self, name)
            if buffer is not None:
                for index in range(len(buffer)):
                    buffer[index] = 0
                setattr(self, name, None)

    def __enter__(self) -> 'RsaKeyMaterial':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()


@dataclass
class CertificateMetadata:
    """Identity metadata derived from a certificate's DER encoding."""
    thumbprint: str
    thumbprint_algorithm: str
    serial_number: str
    not_after: str
    der_bytes: bytes = field(default=b"", repr=False)

    def to_dict(self) -> Dict[str, str]:
        return {
            'thumbprint': self.thumbprint,
            'thumbprint_algorithm': self.thumbprint_algorithm,
            'serial_number': self.serial_number,
            'not_after': self.not_after
        }


@dataclass
class CertificateResult:
    """Outcome of one pass through the certificate pipeline."""
    success: bool
    metadata: Optional[CertificateMetadata] = None
    certificate_der: Optional[bytes] = None
    jwk: Optional[Jwk] = None
    error: Optional[CertificateServiceError] = None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None

    @property
    def status_code(self) -> int:
        return self.error.status_code if self.error else 200

    @classmethod
    def failure(cls, error: CertificateServiceError) -> 'CertificateResult':
        return cls(success=False, error=error)
