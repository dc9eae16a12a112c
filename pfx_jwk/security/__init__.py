"""
Security package: the PKCS#12 certificate to JWK pipeline.
"""
from .certificate_loader import CertificateLoader
from .key_extractor import RSAKeyExtractor, complete_crt_parameters
from .metadata_extractor import CertificateMetadataExtractor
from .jwk_encoder import JwkEncoder
from .certificate_cache import CertificateCache

__all__ = [
    'CertificateLoader',
    'RSAKeyExtractor',
    'complete_crt_parameters',
    'CertificateMetadataExtractor',
    'JwkEncoder',
    'CertificateCache'
]
