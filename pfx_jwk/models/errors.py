"""
Error taxonomy for the certificate pipeline.
"""
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Kinds of failure the certificate pipeline can report."""
    CONFIGURATION = "configuration"
    CERTIFICATE_LOAD = "certificate_load"
    KEY_TYPE = "key_type"
    UNEXPECTED = "unexpected"


class CertificateServiceError(Exception):
    """Base class for all pipeline errors."""

    kind = ErrorKind.UNEXPECTED
    status_code = 500
    title = "Internal server error"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict:
        """Safe JSON body for an HTTP error response."""
        return {
            'error': self.title,
            'message': self.message
        }


class ConfigurationError(CertificateServiceError):
    """Certificate path or passphrase is not configured."""

    kind = ErrorKind.CONFIGURATION
    status_code = 400
    title = "Certificate not configured"


class CertificateLoadError(CertificateServiceError):
    """The PKCS#12 bundle could not be read or decrypted."""

    kind = ErrorKind.CERTIFICATE_LOAD
    status_code = 500
    title = "Certificate load failed"


class KeyTypeError(CertificateServiceError):
    """The bundle does not carry a usable RSA private key."""

    kind = ErrorKind.KEY_TYPE
    status_code = 500
    title = "Unsupported key"


class UnexpectedError(CertificateServiceError):
    """Any failure that is not classified by the other kinds."""

    kind = ErrorKind.UNEXPECTED
    status_code = 500
    title = "Internal server error"

