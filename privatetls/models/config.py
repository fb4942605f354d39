"""
Configuration data models for the privatetls listener.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

from ..security.models import (
    CredentialOptions,
    RSA_KEY_LENGTH,
    VALIDITY_DURATION,
    DEFAULT_ORGANIZATION,
    LOOPBACK_ADDRESS,
)


DEFAULT_ADDRESS = ":https"


@dataclass
class Config:
    """Main configuration class containing all application settings."""

    # Credential settings
    key_bits: int = RSA_KEY_LENGTH
    validity_days: int = VALIDITY_DURATION.days
    organization: str = DEFAULT_ORGANIZATION
    subject_alt_names: List[str] = field(default_factory=lambda: [LOOPBACK_ADDRESS])

    # Server settings
    address: str = DEFAULT_ADDRESS

    # Application settings
    log_level: str = "INFO"
    log_file_path: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_types()

    def _validate_types(self):
        """Ensure all configuration values have correct types."""
        if not isinstance(self.key_bits, int) or self.key_bits <= 0:
            raise ValueError("key_bits must be a positive integer")

        if not isinstance(self.validity_days, int) or self.validity_days <= 0:
            raise ValueError("validity_days must be a positive integer")

        if not isinstance(self.subject_alt_names, list):
            raise ValueError("subject_alt_names must be a list")

        if not isinstance(self.address, str):
            raise ValueError("address must be a string")

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")

    def to_credential_options(self) -> CredentialOptions:
        """Build the credential options described by this configuration."""
        return CredentialOptions(
            key_bits=self.key_bits,
            validity=timedelta(days=self.validity_days),
            organization=self.organization,
            subject_alt_names=tuple(self.subject_alt_names)
        )


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    severity: str = "error"  # error, warning

    def __str__(self):
        return f"{self.severity.upper()}: {self.field} - {self.message}"


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: list[ConfigValidationError]
    warnings: list[ConfigValidationError]

    def __post_init__(self):
        """Separate errors and warnings."""
        all_issues = self.errors + self.warnings
        self.errors = [e for e in all_issues if e.severity == "error"]
        self.warnings = [e for e in all_issues if e.severity == "warning"]

    def has_errors(self) -> bool:
        """Check if there are any validation errors."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if there are any validation warnings."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> str:
        """Get a formatted summary of all errors and warnings."""
        lines = []

        if self.errors:
            lines.append("Configuration Errors:")
            for error in self.errors:
                lines.append(f"  - {error}")

        if self.warnings:
            lines.append("Configuration Warnings:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines) if lines else "Configuration is valid"
