"""
PFX JWK service: publishes a PKCS#12 certificate and its RSA key pair as a JWK.
"""

__version__ = "1.0.0"
