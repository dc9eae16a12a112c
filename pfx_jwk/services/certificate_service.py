"""
Certificate pipeline service: load -> extract/describe -> encode.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from ..models.certificate import CertificateBundle, CertificateMetadata, CertificateResult
from ..models.config import Config
from ..models.errors import CertificateServiceError, UnexpectedError
from ..security.certificate_cache import CertificateCache
from ..security.certificate_loader import CertificateLoader
from ..security.jwk_encoder import JwkEncoder
from ..security.key_extractor import RSAKeyExtractor
from ..security.metadata_extractor import CertificateMetadataExtractor


class CertificateService:
    """Runs the certificate pipeline and reports the outcome as a CertificateResult."""

    def __init__(self, config: Config,
                 loader: Optional[CertificateLoader] = None,
                 key_extractor: Optional[RSAKeyExtractor] = None,
                 metadata_extractor: Optional[CertificateMetadataExtractor] = None,
                 encoder: Optional[JwkEncoder] = None,
                 cache: Optional[CertificateCache] = None):
        """
        Initialize the certificate service.

        Args:
            config: Application configuration (bundle path and passphrase)
            loader: PKCS#12 loader
            key_extractor: RSA key extractor
            metadata_extractor: Thumbprint/serial/expiration extractor
            encoder: JWK encoder
            cache: Shared bundle cache; built from config when not given
        """
        self.config = config
        self.loader = loader or CertificateLoader()
        self.key_extractor = key_extractor or RSAKeyExtractor()
        self.metadata_extractor = metadata_extractor or CertificateMetadataExtractor(
            config.thumbprint_algorithm
        )
        self.encoder = encoder or JwkEncoder()

        if cache is None and config.cache_enabled:
            cache = self._build_cache(config)
        self.cache = cache
        self.logger = logging.getLogger(__name__)

    def _build_cache(self, config: Config) -> CertificateCache:
        return CertificateCache(
            loader=self.loader,
            metadata_extractor=self.metadata_extractor,
            ttl_seconds=config.cache_ttl_seconds
        )

    def get_certificate(self) -> CertificateResult:
        """Load the configured bundle and return its DER bytes with metadata."""
        return self._run(include_jwk=False)

    def get_jwk(self) -> CertificateResult:
        """Load the configured bundle and return its private JWK with metadata."""
        return self._run(include_jwk=True)

    def _run(self, include_jwk: bool) -> CertificateResult:
        try:
            with self._open_bundle() as (bundle, metadata):
                result = CertificateResult(
                    success=True,
                    metadata=metadata,
                    certificate_der=bundle.der_bytes
                )

                if include_jwk:
                    with self.key_extractor.extract(bundle) as key_material:
                        result.jwk = self.encoder.encode(key_material, metadata)

                return result

        except CertificateServiceError as e:
            self.logger.debug(f"Certificate pipeline failed ({e.kind.value}): {e.message}")
            return CertificateResult.failure(e)
        except Exception as e:
            self.logger.debug(f"Certificate pipeline failed unexpectedly: {type(e).__name__}")
            return CertificateResult.failure(
                UnexpectedError("Unexpected error while processing the certificate", cause=e)
            )

    @contextmanager
    def _open_bundle(self) -> Iterator[Tuple[CertificateBundle, CertificateMetadata]]:
        """Yield a bundle and its metadata, from the cache when it is enabled."""
        path = self.config.cert_pfx_path
        passphrase = self.config.cert_pfx_password

        if self.cache is not None:
            with self.cache.lease(path, passphrase) as entry:
                yield entry.bundle, entry.metadata
        else:
            with self.loader.load(path, passphrase) as bundle:
                yield bundle, self.metadata_extractor.describe(bundle)

    def update_config(self, config: Config) -> None:
        """Swap in a reloaded configuration and drop cached bundles."""
        self.config = config
        if config.thumbprint_algorithm != self.metadata_extractor.thumbprint_algorithm:
            self.metadata_extractor = CertificateMetadataExtractor(config.thumbprint_algorithm)
            if self.cache is not None:
                self.cache.metadata_extractor = self.metadata_extractor
        if self.cache is not None:
            self.cache.clear()
            if config.cache_enabled:
                self.cache.ttl_seconds = config.cache_ttl_seconds
            else:
                self.cache = None
                self.logger.info("Certificate cache disabled")
        elif config.cache_enabled:
            self.cache = self._build_cache(config)
            self.logger.info("Certificate cache enabled")

    def shutdown(self) -> None:
        """Release every cached private key."""
        if self.cache is not None:
            self.cache.clear()

    def get_status(self) -> dict:
        status = {
            'configured': self.config.certificate_configured,
            'thumbprint_algorithm': self.metadata_extractor.thumbprint_algorithm,
            'cache_enabled': self.cache is not None
        }
        if self.cache is not None:
            status['cache'] = self.cache.get_stats()
        return status
