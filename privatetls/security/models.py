"""
Security models for self-signed credential synthesis.
"""
import ipaddress
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID


RSA_KEY_LENGTH = 2048
SERIAL_NUMBER_BITS = 128
VALIDITY_DURATION = timedelta(days=365)
DEFAULT_ORGANIZATION = "PrivateTLS"
LOOPBACK_ADDRESS = "127.0.0.1"

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
SubjectAltName = Union[str, IPAddress]


@dataclass(frozen=True)
class CredentialOptions:
    """Parameters for a self-signed credential. Omitted fields keep the defaults."""
    key_bits: int = RSA_KEY_LENGTH
    validity: timedelta = VALIDITY_DURATION
    organization: str = DEFAULT_ORGANIZATION
    subject_alt_names: Tuple[SubjectAltName, ...] = (LOOPBACK_ADDRESS,)

    def __post_init__(self):
        """Validate option types after initialization."""
        if isinstance(self.key_bits, bool) or not isinstance(self.key_bits, int) or self.key_bits <= 0:
            raise ValueError("key_bits must be a positive integer")

        if not isinstance(self.validity, timedelta) or self.validity <= timedelta(0):
            raise ValueError("validity must be a positive timedelta")

        if not isinstance(self.organization, str) or not self.organization.strip():
            raise ValueError("organization must be a non-empty string")

        # Lists are accepted for convenience; store an immutable copy.
        object.__setattr__(self, 'subject_alt_names', tuple(self.subject_alt_names))
        for name in self.subject_alt_names:
            if isinstance(name, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
                continue
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Invalid subject alternative name: {name!r}")
            if not name.isascii():
                raise ValueError(f"DNS names must be given as ASCII A-labels: {name!r}")

    def split_subject_alt_names(self) -> Tuple[List[IPAddress], List[str]]:
        """Split SAN entries into IP addresses and DNS names, loopback first, without duplicates."""
        ip_addresses: List[IPAddress] = [ipaddress.ip_address(LOOPBACK_ADDRESS)]
        dns_names: List[str] = []

        for name in self.subject_alt_names:
            if isinstance(name, str):
                try:
                    name = ipaddress.ip_address(name.strip())
                except ValueError:
                    dns_name = name.strip().lower()
                    if dns_name not in dns_names:
                        dns_names.append(dns_name)
                    continue
            if name not in ip_addresses:
                ip_addresses.append(name)

        return ip_addresses, dns_names


@dataclass(frozen=True)
class CertificateTemplate:
    """Declarative description of the certificate to be issued."""
    serial_number: int
    organization: str
    not_before: datetime
    not_after: datetime
    ip_addresses: Tuple[IPAddress, ...]
    dns_names: Tuple[str, ...] = ()
    is_ca: bool = True
    key_cert_sign: bool = True
    digital_signature: bool = True
    extended_key_usage: Tuple[x509.ObjectIdentifier, ...] = (
        ExtendedKeyUsageOID.SERVER_AUTH,
        ExtendedKeyUsageOID.CLIENT_AUTH,
    )

    @property
    def validity(self) -> timedelta:
        return self.not_after - self.not_before


@dataclass(frozen=True)
class TLSCredential:
    """In-memory TLS server identity: a certificate and its private key, PEM encoded."""
    certificate: x509.Certificate
    private_key: rsa.RSAPrivateKey = field(repr=False)
    certificate_pem: bytes = field(repr=False)
    private_key_pem: bytes = field(repr=False)

    @property
    def certificate_der(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.DER)

    @property
    def chain_pem(self) -> bytes:
        """Certificate followed by the key, the layout OpenSSL expects in a single chain file."""
        return self.certificate_pem + self.private_key_pem

    @property
    def serial_number(self) -> int:
        return self.certificate.serial_number


@dataclass
class CertificateInfo:
    """Information about a certificate."""
    subject: str
    issuer: str
    serial_number: str
    not_before: datetime
    not_after: datetime
    is_valid: bool
    fingerprint: str
    is_ca: bool = False
    ip_addresses: List[str] = field(default_factory=list)
    dns_names: List[str] = field(default_factory=list)
