"""
Security package for self-signed TLS credential synthesis.
"""
from .errors import (
    CredentialError,
    KeyGenerationError,
    SerialNumberGenerationError,
    CertificateCreationError,
    CredentialAssemblyError,
)
from .models import CredentialOptions, CertificateTemplate, TLSCredential, CertificateInfo
from .credential_factory import SelfSignedCredentialFactory, generate_self_signed_credential
from .security_service import SecurityService

__all__ = [
    'CredentialError',
    'KeyGenerationError',
    'SerialNumberGenerationError',
    'CertificateCreationError',
    'CredentialAssemblyError',
    'CredentialOptions',
    'CertificateTemplate',
    'TLSCredential',
    'CertificateInfo',
    'SelfSignedCredentialFactory',
    'generate_self_signed_credential',
    'SecurityService'
]
