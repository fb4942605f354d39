"""
In-memory self-signed TLS credentials for private HTTPS listeners.
"""
from .security import (
    CredentialError,
    KeyGenerationError,
    SerialNumberGenerationError,
    CertificateCreationError,
    CredentialAssemblyError,
    CredentialOptions,
    TLSCredential,
    SelfSignedCredentialFactory,
    generate_self_signed_credential,
)
from .security.models import (
    RSA_KEY_LENGTH,
    SERIAL_NUMBER_BITS,
    VALIDITY_DURATION,
    DEFAULT_ORGANIZATION,
    LOOPBACK_ADDRESS,
)
from .models.config import DEFAULT_ADDRESS
from .app import PrivateTLSServer, start_https_listener, parse_address

__version__ = "0.1.0"

__all__ = [
    'CredentialError',
    'KeyGenerationError',
    'SerialNumberGenerationError',
    'CertificateCreationError',
    'CredentialAssemblyError',
    'CredentialOptions',
    'TLSCredential',
    'SelfSignedCredentialFactory',
    'generate_self_signed_credential',
    'RSA_KEY_LENGTH',
    'SERIAL_NUMBER_BITS',
    'VALIDITY_DURATION',
    'DEFAULT_ORGANIZATION',
    'LOOPBACK_ADDRESS',
    'DEFAULT_ADDRESS',
    'PrivateTLSServer',
    'start_https_listener',
    'parse_address'
]
