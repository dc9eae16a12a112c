"""
Models package for the PFX JWK application.
"""

from .certificate import CertificateBundle, RsaKeyMaterial, CertificateMetadata, CertificateResult, Jwk
from .config import Config
from .errors import (
    ErrorKind, CertificateServiceError, ConfigurationError,
    CertificateLoadError, KeyTypeError, UnexpectedError
)

__all__ = [
    'CertificateBundle',
    'RsaKeyMaterial',
    'CertificateMetadata',
    'CertificateResult',
    'Jwk',
    'Config',
    'ErrorKind',
    'CertificateServiceError',
    'ConfigurationError',
    'CertificateLoadError',
    'KeyTypeError',
    'UnexpectedError'
]
