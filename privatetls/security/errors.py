"""
Exceptions raised while synthesizing a self-signed TLS credential.
"""


class CredentialError(Exception):
    """Base class for every credential synthesis failure."""


class KeyGenerationError(CredentialError):
    """The key pair could not be generated (random source failure or rejected key size)."""


class SerialNumberGenerationError(CredentialError):
    """Randomness could not be sourced while drawing the certificate serial number."""


class CertificateCreationError(CredentialError):
    """The signer rejected the template, or the signed certificate failed to parse back."""


class CredentialAssemblyError(CredentialError):
    """The PEM certificate and key could not be combined into a loadable credential."""
