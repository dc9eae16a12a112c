"""
Loading of PKCS#12 (PFX) certificate bundles from local disk.
"""
import logging
import os
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import Encoding, pkcs12

from ..models.certificate import CertificateBundle
from ..models.errors import ConfigurationError, CertificateLoadError


class CertificateLoader:
    """Opens a password-protected PKCS#12 bundle and returns its certificate and key."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def load(self, path: Optional[str], passphrase: Optional[str]) -> CertificateBundle:
        """
        Load a certificate bundle.

        Args:
            path: Path to the .pfx/.p12 file
            passphrase: Passphrase protecting the bundle

        Returns:
            CertificateBundle with the certificate, its DER bytes and private key

        Raises:
            ConfigurationError: If path or passphrase is empty
            CertificateLoadError: If the file is missing, corrupt or the passphrase is wrong
        """
        if not path or not passphrase:
            raise ConfigurationError("Certificate PFX path or passphrase is not configured")

        data = self._read_bundle_file(path)

        try:
            private_key, certificate, additional_certificates = pkcs12.load_key_and_certificates(
                data, passphrase.encode('utf-8')
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            # The passphrase never reaches the message; the cause is kept for logs.
            raise CertificateLoadError(
                f"Failed to load PKCS#12 bundle {path}: invalid container or wrong passphrase",
                cause=e
            ) from e

        # A bundle without a key lists its certificate among the additional ones
        if certificate is None and additional_certificates:
            certificate = additional_certificates[0]

        if certificate is None:
            raise CertificateLoadError(f"PKCS#12 bundle {path} does not contain a certificate")

        bundle = CertificateBundle(
            certificate=certificate,
            der_bytes=certificate.public_bytes(Encoding.DER),
            public_key=certificate.public_key(),
            private_key=private_key,
            not_after=certificate.not_valid_after_utc,
            source_path=path
        )

        self.logger.debug(f"Loaded certificate bundle from {path}")
        return bundle

    def _read_bundle_file(self, path: str) -> bytes:
        """Read the raw bundle bytes."""
        if not os.path.isfile(path):
            raise CertificateLoadError(f"Certificate file not found: {path}")

        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise CertificateLoadError(f"Failed to read certificate file {path}: {e.strerror}", cause=e) from e

        if not data:
            raise CertificateLoadError(f"Certificate file is empty: {path}")

        return data
