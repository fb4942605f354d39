"""
Configuration service for loading and validating application settings.
"""
import os
import configparser
import ipaddress
from typing import Optional, Dict, Any
import logging

from ..models.config import Config, ConfigValidationError, ConfigValidationResult


# Shortest RSA key OpenSSL 3 loads into a server context at its default security level.
MIN_KEY_BITS = 2048
# Longest validity accepted by mainstream TLS clients for server certificates.
MAX_RECOMMENDED_VALIDITY_DAYS = 825


class ConfigService:
    """Service for loading and validating application configuration."""

    def __init__(self, config_path: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self._config = None
        if config_path:
            self._config = self.load_config(config_path)

    def get_config(self) -> Config:
        """
        Get the loaded configuration, or the defaults when nothing was loaded.

        Returns:
            Config object
        """
        if self._config is None:
            self._config = Config()
        return self._config

    def load_config(self, config_path: str) -> Config:
        """
        Load configuration from a property file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid or has validation errors
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        config_data = self._load_config_file(config_path)
        config = self._create_config_from_data(config_data)

        validation_result = self.validate_config(config)

        if validation_result.has_errors():
            error_summary = validation_result.get_error_summary()
            raise ValueError(f"Configuration validation failed:\n{error_summary}")

        if validation_result.has_warnings():
            warning_summary = validation_result.get_error_summary()
            self.logger.warning(f"Configuration warnings:\n{warning_summary}")

        self._config = config
        return config

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Load configuration data from file."""
        config_parser = configparser.ConfigParser()

        try:
            config_parser.read(config_path)
        except configparser.Error as e:
            raise ValueError(f"Failed to parse configuration file: {e}")

        # Flatten to section.key names
        config_data = {}
        for section in config_parser.sections():
            for key, value in config_parser.items(section):
                config_data[f"{section}.{key}"] = value

        for key, value in config_parser.defaults().items():
            if key not in config_data:
                config_data[key] = value

        return config_data

    def _create_config_from_data(self, config_data: Dict[str, Any]) -> Config:
        """Create Config object from configuration data."""
        config_mapping = {
            # Credential settings
            "credential.key_bits": ("key_bits", int),
            "key_bits": ("key_bits", int),
            "credential.validity_days": ("validity_days", int),
            "validity_days": ("validity_days", int),
            "credential.organization": ("organization", str),
            "organization": ("organization", str),
            "credential.subject_alt_names": ("subject_alt_names", list),
            "subject_alt_names": ("subject_alt_names", list),

            # Server settings
            "server.address": ("address", str),
            "address": ("address", str),

            # Application settings
            "app.log_level": ("log_level", str),
            "log_level": ("log_level", str),
            "app.log_file_path": ("log_file_path", str),
            "log_file_path": ("log_file_path", str),
        }

        config_kwargs = {}

        for config_key, raw_value in config_data.items():
            if config_key in config_mapping:
                field_name, field_type = config_mapping[config_key]
                try:
                    if field_type == int:
                        value = int(raw_value)
                    elif field_type == list:
                        value = self._parse_list(raw_value)
                    elif field_name == "log_file_path":
                        value = raw_value.strip() or None
                    elif field_name == "log_level":
                        value = raw_value.strip().upper()
                    else:
                        value = str(raw_value).strip()

                    config_kwargs[field_name] = value
                except (ValueError, TypeError) as e:
                    raise ValueError(f"Invalid value for {config_key}: {raw_value} ({e})")

        return Config(**config_kwargs)

    def _parse_list(self, value: str) -> list:
        """Parse a comma separated list, dropping empty items."""
        return [item.strip() for item in value.split(",") if item.strip()]

    def validate_config(self, config: Config) -> ConfigValidationResult:
        """
        Validate configuration settings.

        Args:
            config: Configuration object to validate

        Returns:
            ConfigValidationResult with validation results
        """
        errors = []
        warnings = []

        if config.key_bits < MIN_KEY_BITS:
            errors.append(ConfigValidationError(
                "key_bits",
                f"RSA keys shorter than {MIN_KEY_BITS} bits are not supported"
            ))

        if config.validity_days > MAX_RECOMMENDED_VALIDITY_DAYS:
            warnings.append(ConfigValidationError(
                "validity_days",
                f"Validity over {MAX_RECOMMENDED_VALIDITY_DAYS} days may be rejected by some clients",
                "warning"
            ))

        if not config.organization:
            errors.append(ConfigValidationError(
                "organization",
                "Organization is required for the certificate subject"
            ))

        for name in config.subject_alt_names:
            if not self._is_valid_subject_alt_name(name):
                errors.append(ConfigValidationError(
                    "subject_alt_names",
                    f"Not an IP address or DNS name: {name}"
                ))

        if config.log_file_path:
            log_dir = os.path.dirname(config.log_file_path)
            if log_dir and not os.path.exists(log_dir):
                warnings.append(ConfigValidationError(
                    "log_file_path",
                    f"Log directory does not exist: {log_dir}",
                    "warning"
                ))

        all_issues = errors + warnings
        return ConfigValidationResult(
            is_valid=len(errors) == 0,
            errors=all_issues,
            warnings=[]
        )

    def _is_valid_subject_alt_name(self, name: str) -> bool:
        """Accept IP addresses and (optionally wildcard) DNS names."""
        try:
            ipaddress.ip_address(name)
            return True
        except ValueError:
            pass

        labels = name.split(".")
        if labels[0] == "*":
            labels = labels[1:]
        if not labels or len(name) > 253:
            return False
        return all(
            0 < len(label) <= 63
            and label.replace("-", "").isalnum()
            and label.isascii()
            and not label.startswith("-")
            and not label.endswith("-")
            for label in labels
        )

    def create_default_config_file(self, config_path: str) -> None:
        """
        Create a default configuration file with example settings.

        Args:
            config_path: Path where to create the config file
        """
        config_content = """# privatetls configuration file

[credential]
key_bits = 2048
validity_days = 365
organization = PrivateTLS
# Comma separated IP addresses and DNS names. 127.0.0.1 is always included.
subject_alt_names = 127.0.0.1

[server]
address = :https

[app]
log_level = INFO
log_file_path =
"""

        config_dir = os.path.dirname(config_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_path, 'w') as f:
            f.write(config_content)

        self.logger.info(f"Created default configuration file: {config_path}")
