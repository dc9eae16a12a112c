"""
Extraction of RSA key components from a loaded certificate bundle.
"""
import logging
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from ..models.certificate import CertificateBundle, RsaKeyMaterial
from ..models.errors import KeyTypeError
from .encoding import int_to_bytes


class RSAKeyExtractor:
    """Reads the RSA key pair of a bundle in Chinese-Remainder-Theorem form."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def extract(self, bundle: CertificateBundle) -> RsaKeyMaterial:
        """
        Extract all nine RSA components from the bundle.

        Raises:
            KeyTypeError: If the key is not RSA, no private key is attached,
                or the CRT parameters cannot be derived
        """
        public_key = bundle.public_key
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise KeyTypeError(
                f"Certificate key algorithm is not RSA ({type(public_key).__name__})"
            )

        private_key = bundle.private_key
        if private_key is None:
            raise KeyTypeError("Certificate has no private key attached")

        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise KeyTypeError(
                f"Private key algorithm is not RSA ({type(private_key).__name__})"
            )

        private_numbers = private_key.private_numbers()
        public_numbers = public_key.public_numbers()

        if private_numbers.public_numbers != public_numbers:
            raise KeyTypeError("Private key does not match the certificate public key")

        p, q, dp, dq, qi = complete_crt_parameters(
            public_numbers.n,
            public_numbers.e,
            private_numbers.d,
            p=private_numbers.p,
            q=private_numbers.q,
            dp=private_numbers.dmp1,
            dq=private_numbers.dmq1,
            qi=private_numbers.iqmp
        )

        return RsaKeyMaterial(
            n=int_to_bytes(public_numbers.n),
            e=int_to_bytes(public_numbers.e),
            d=bytearray(int_to_bytes(private_numbers.d)),
            p=bytearray(int_to_bytes(p)),
            q=bytearray(int_to_bytes(q)),
            dp=bytearray(int_to_bytes(dp)),
            dq=bytearray(int_to_bytes(dq)),
            qi=bytearray(int_to_bytes(qi))
        )


def complete_crt_parameters(n: int, e: int, d: int,
                            p: Optional[int] = None, q: Optional[int] = None,
                            dp: Optional[int] = None, dq: Optional[int] = None,
                            qi: Optional[int] = None) -> tuple:
    """
    Fill in any missing CRT parameters from (n, e, d).

    Returns:
        Tuple of (p, q, dp, dq, qi)

    Raises:
        KeyTypeError: If the primes cannot be recovered
    """
    if not p or not q:
        try:
            p, q = rsa.rsa_recover_prime_factors(n, e, d)
        except ValueError as exc:
            raise KeyTypeError("Unable to derive RSA CRT parameters", cause=exc) from exc

    if p * q != n:
        raise KeyTypeError("RSA prime factors do not match the modulus")

    if not dp:
        dp = rsa.rsa_crt_dmp1(d, p)
    if not dq:
        dq = rsa.rsa_crt_dmq1(d, q)
    if not qi:
        qi = rsa.rsa_crt_iqmp(p, q)

    return p, q, dp, dq, qi
