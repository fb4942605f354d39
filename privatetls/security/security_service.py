"""
Security service for loading in-memory credentials into TLS contexts and
inspecting certificates.
"""
import ssl
import os
import logging
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .errors import CredentialAssemblyError
from .models import TLSCredential, CertificateInfo


# Linux only. Elsewhere the chain is staged in a private temporary directory.
HAS_MEMFD = hasattr(os, 'memfd_create')


class SecurityService:
    """Service for turning credentials into SSL contexts and checking certificates."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def create_server_context(self, credential: TLSCredential) -> ssl.SSLContext:
        """
        Create an SSL context that serves the given credential.

        Args:
            credential: Certificate and key to present to clients

        Returns:
            Server-side SSLContext

        Raises:
            CredentialAssemblyError: If OpenSSL refuses the certificate/key pair
        """
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.minimum_version = ssl.TLSVersion.TLSv1_2

        try:
            with self._in_memory_chain(credential) as chain_path:
                context.load_cert_chain(certfile=chain_path)
        except ssl.SSLError as e:
            raise CredentialAssemblyError(f"TLS stack rejected the credential: {e}") from e

        self.logger.info("SSL context configured with in-memory self-signed credential")
        return context

    def create_client_context(self, credential: TLSCredential) -> ssl.SSLContext:
        """Create a client SSL context that trusts exactly this credential's certificate."""
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        context.load_verify_locations(cadata=credential.certificate_pem.decode('ascii'))
        return context

    @contextmanager
    def _in_memory_chain(self, credential: TLSCredential) -> Iterator[str]:
        """Expose the PEM chain as a path OpenSSL can read, without durable storage."""
        if HAS_MEMFD:
            fd = os.memfd_create('privatetls-chain', os.MFD_CLOEXEC)
            try:
                os.write(fd, credential.chain_pem)
                yield f"/proc/self/fd/{fd}"
            finally:
                os.close(fd)
            return

        self.logger.warning(
            "Anonymous memory files are not available on this platform, "
            "staging the credential in a private temporary directory"
        )
        with tempfile.TemporaryDirectory(prefix='privatetls-') as temp_dir:
            chain_path = os.path.join(temp_dir, 'chain.pem')
            fd = os.open(chain_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            try:
                os.write(fd, credential.chain_pem)
            finally:
                os.close(fd)
            yield chain_path

    def verify_self_signature(self, cert: x509.Certificate) -> bool:
        """Check that the certificate is self-issued and signed by its own key."""
        if cert.issuer != cert.subject:
            return False

        public_key = cert.public_key()
        if not isinstance(public_key, rsa.RSAPublicKey):
            return False

        try:
            public_key.verify(
                cert.signature,
                cert.tbs_certificate_bytes,
                padding.PKCS1v15(),
                cert.signature_hash_algorithm
            )
        except InvalidSignature:
            self.logger.debug(f"Signature verification failed for serial {cert.serial_number:x}")
            return False
        return True

    def keys_match(self, cert: x509.Certificate, private_key: rsa.RSAPrivateKey) -> bool:
        """Check that the certificate carries the public half of the private key."""
        return cert.public_key().public_numbers() == private_key.public_key().public_numbers()

    def _get_certificate_info(self, cert: x509.Certificate) -> CertificateInfo:
        """Extract information from a certificate."""
        now = datetime.now(timezone.utc)

        not_before = cert.not_valid_before_utc
        not_after = cert.not_valid_after_utc

        try:
            is_ca = cert.extensions.get_extension_for_class(x509.BasicConstraints).value.ca
        except x509.ExtensionNotFound:
            is_ca = False

        try:
            san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
            ip_addresses = [str(ip) for ip in san.get_values_for_type(x509.IPAddress)]
            dns_names = san.get_values_for_type(x509.DNSName)
        except x509.ExtensionNotFound:
            ip_addresses, dns_names = [], []

        return CertificateInfo(
            subject=cert.subject.rfc4514_string(),
            issuer=cert.issuer.rfc4514_string(),
            serial_number=str(cert.serial_number),
            not_before=not_before,
            not_after=not_after,
            is_valid=not_before <= now <= not_after,
            fingerprint=cert.fingerprint(hashes.SHA256()).hex(),
            is_ca=is_ca,
            ip_addresses=ip_addresses,
            dns_names=dns_names
        )

    def get_certificate_info(self, cert_pem: str) -> CertificateInfo:
        """Get detailed information about a certificate."""
        cert = x509.load_pem_x509_certificate(cert_pem.encode())
        return self._get_certificate_info(cert)

    def is_certificate_valid(self, cert_pem: str) -> bool:
        """Check if a certificate is currently valid (not expired)."""
        try:
            cert_info = self.get_certificate_info(cert_pem)
            return cert_info.is_valid
        except ValueError:
            return False
