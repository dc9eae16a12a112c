"""
Services package for the PFX JWK application.
"""

from .config_service import ConfigService
from .certificate_service import CertificateService

__all__ = [
    'ConfigService',
    'CertificateService'
]
