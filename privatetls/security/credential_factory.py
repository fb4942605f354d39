"""
Self-signed TLS credential synthesis.

Every call generates a new RSA key and a certificate that signs itself. Nothing
is cached and nothing is written to disk; the returned credential lives only in
the memory of the calling process.
"""
import os
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from .errors import (
    KeyGenerationError,
    SerialNumberGenerationError,
    CertificateCreationError,
    CredentialAssemblyError,
)
from .models import CredentialOptions, CertificateTemplate, TLSCredential, SERIAL_NUMBER_BITS


PUBLIC_EXPONENT = 65537


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SelfSignedCredentialFactory:
    """Builds fresh (private key, self-signed certificate) pairs."""

    def __init__(self, options: Optional[CredentialOptions] = None,
                 clock: Callable[[], datetime] = _utc_now):
        """
        Initialize the factory.

        Args:
            options: Credential parameters; defaults apply when omitted
            clock: Source of the issuance time, must return timezone-aware datetimes
        """
        self.options = options or CredentialOptions()
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def create_credential(self) -> TLSCredential:
        """
        Generate a key, build the template, self-sign and assemble the credential.

        Returns:
            TLSCredential ready to be loaded by a TLS server

        Raises:
            KeyGenerationError: If the key pair could not be generated
            SerialNumberGenerationError: If no randomness was available for the serial
            CertificateCreationError: If the template could not be built or signed, or the post-sign parse failed
            CredentialAssemblyError: If certificate and key do not form a loadable pair
        """
        key = self.generate_key(self.options.key_bits)
        template = self.build_template(self.clock(), self.options)
        certificate = self.sign(template, key)
        credential = self.assemble(certificate, key)

        self.logger.info(
            f"Generated self-signed certificate serial={certificate.serial_number:x} "
            f"fingerprint={certificate.fingerprint(hashes.SHA256()).hex()} "
            f"valid until {template.not_after.isoformat()}"
        )
        return credential

    def generate_key(self, key_bits: int) -> rsa.RSAPrivateKey:
        """Generate an RSA key pair of the requested size."""
        try:
            key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_bits)
        except (ValueError, TypeError, OSError, UnsupportedAlgorithm) as e:
            raise KeyGenerationError(f"Failed to generate {key_bits}-bit RSA key: {e}") from e

        self.logger.debug(f"Generated {key_bits}-bit RSA key")
        return key

    def build_template(self, now: datetime, options: CredentialOptions) -> CertificateTemplate:
        """
        Describe the certificate to issue at the given time.

        Args:
            now: Issuance time (timezone-aware)
            options: Credential parameters

        Returns:
            CertificateTemplate with a fresh random serial number

        Raises:
            CertificateCreationError: If the validity period ends past the representable range
        """
        if now.tzinfo is None:
            raise ValueError("Issuance time must be timezone-aware")

        # X.509 times have one-second resolution.
        not_before = now.astimezone(timezone.utc).replace(microsecond=0)
        ip_addresses, dns_names = options.split_subject_alt_names()

        try:
            not_after = not_before + options.validity
        except OverflowError as e:
            raise CertificateCreationError(
                f"Validity of {options.validity} from {not_before.isoformat()} is out of range: {e}"
            ) from e

        return CertificateTemplate(
            serial_number=self.generate_serial_number(),
            organization=options.organization,
            not_before=not_before,
            not_after=not_after,
            ip_addresses=tuple(ip_addresses),
            dns_names=tuple(dns_names),
        )

    def generate_serial_number(self) -> int:
        """Draw a serial number uniformly from the 128-bit space, excluding zero."""
        serial_number = 0
        # X.509 serial numbers must be positive.
        while serial_number == 0:
            try:
                random_bytes = os.urandom(SERIAL_NUMBER_BITS // 8)
            except (OSError, NotImplementedError) as e:
                raise SerialNumberGenerationError(f"Failed to read random serial number: {e}") from e
            serial_number = int.from_bytes(random_bytes, "big")
        return serial_number

    def sign(self, template: CertificateTemplate, key: rsa.RSAPrivateKey) -> x509.Certificate:
        """
        Sign the template with its own key and parse the result back.

        The parse is an invariant check on the signer output; a failure there is
        reported, never retried.
        """
        public_key = key.public_key()

        try:
            name = x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, template.organization)])
            san_entries = [x509.IPAddress(ip) for ip in template.ip_addresses]
            san_entries.extend(x509.DNSName(dns_name) for dns_name in template.dns_names)

            builder = x509.CertificateBuilder().subject_name(
                name
            ).issuer_name(
                name
            ).public_key(
                public_key
            ).serial_number(
                template.serial_number
            ).not_valid_before(
                template.not_before
            ).not_valid_after(
                template.not_after
            ).add_extension(
                x509.BasicConstraints(ca=template.is_ca, path_length=None),
                critical=True,
            ).add_extension(
                x509.KeyUsage(
                    digital_signature=template.digital_signature,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=template.key_cert_sign,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            ).add_extension(
                x509.ExtendedKeyUsage(list(template.extended_key_usage)),
                critical=False,
            ).add_extension(
                x509.SubjectAlternativeName(san_entries),
                critical=False,
            ).add_extension(
                x509.SubjectKeyIdentifier.from_public_key(public_key),
                critical=False,
            ).add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(public_key),
                critical=False,
            )
            certificate = builder.sign(private_key=key, algorithm=hashes.SHA256())
        except (ValueError, TypeError) as e:
            raise CertificateCreationError(f"Failed to sign certificate: {e}") from e

        der = certificate.public_bytes(serialization.Encoding.DER)
        try:
            return x509.load_der_x509_certificate(der)
        except ValueError as e:
            raise CertificateCreationError(f"Signed certificate failed to parse back: {e}") from e

    def assemble(self, certificate: x509.Certificate, key: rsa.RSAPrivateKey) -> TLSCredential:
        """PEM encode certificate and key and check that they belong together."""
        try:
            certificate_pem = certificate.public_bytes(serialization.Encoding.PEM)
            private_key_pem = key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption(),
            )

            loaded_certificate = x509.load_pem_x509_certificate(certificate_pem)
            loaded_key = serialization.load_pem_private_key(private_key_pem, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise CredentialAssemblyError(f"Failed to encode credential: {e}") from e

        if not isinstance(loaded_key, rsa.RSAPrivateKey):
            raise CredentialAssemblyError(f"Unexpected private key type: {type(loaded_key).__name__}")

        if loaded_certificate.public_key().public_numbers() != loaded_key.public_key().public_numbers():
            raise CredentialAssemblyError("Private key does not match the certificate public key")

        return TLSCredential(
            certificate=loaded_certificate,
            private_key=loaded_key,
            certificate_pem=certificate_pem,
            private_key_pem=private_key_pem,
        )


def generate_self_signed_credential(options: Optional[CredentialOptions] = None) -> TLSCredential:
    """
    Generate a new self-signed TLS credential.

    The certificate is valid for 127.0.0.1 plus any subject alternative names in
    the options. Callers binding to other interfaces or serving hostnames must
    list them explicitly.
    """
    return SelfSignedCredentialFactory(options).create_credential()
