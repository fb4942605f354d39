"""
Command line entry point for privatetls.
Loads configuration, sets up logging and serves HTTPS with a self-signed certificate.
"""

import os
import sys
import logging
from typing import Optional

from .app import PrivateTLSServer
from .models.config import Config
from .security import CredentialError, SecurityService, generate_self_signed_credential
from .services.config_service import ConfigService
from .services.logging_service import LoggingService


DEFAULT_CONFIG_PATHS = [
    "privatetls.properties",
    "config/privatetls.properties",
    os.path.expanduser("~/.privatetls/config.properties"),
]


class PrivateTLSApplication:
    """Wires configuration, logging and the HTTPS listener together."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.config_service = ConfigService()
        self.config: Optional[Config] = None
        self.logging_service: Optional[LoggingService] = None
        self.logger = logging.getLogger(__name__)

    def _find_config_path(self) -> Optional[str]:
        """Return the explicit config path, or the first default location that exists."""
        if self.config_path:
            return self.config_path

        for path in DEFAULT_CONFIG_PATHS:
            if os.path.exists(path):
                return path
        return None

    def initialize(self) -> Config:
        """
        Load configuration and set up logging.

        Raises:
            FileNotFoundError: If an explicit config path does not exist
            ValueError: If the configuration is invalid
        """
        config_path = self._find_config_path()
        if config_path:
            self.config = self.config_service.load_config(config_path)
        else:
            self.config = self.config_service.get_config()

        self.logging_service = LoggingService(self.config)
        if config_path:
            self.logger.info(f"Configuration loaded from: {config_path}")
        else:
            self.logger.info("No configuration file found, using defaults")
        return self.config

    def run(self, address: Optional[str] = None) -> None:
        """Serve HTTPS until interrupted."""
        server = PrivateTLSServer(
            options=self.config.to_credential_options(),
            logging_service=self.logging_service
        )
        server.serve(self.config.address if address is None else address)

    def print_certificate(self) -> None:
        """Generate a credential and print its certificate (never the key)."""
        with self.logging_service.measure_performance('generate_credential'):
            credential = generate_self_signed_credential(self.config.to_credential_options())
        info = SecurityService().get_certificate_info(credential.certificate_pem.decode())
        self.logger.info(f"Certificate fingerprint (SHA-256): {info.fingerprint}")
        sys.stdout.write(credential.certificate_pem.decode())

    def log_performance_summary(self) -> None:
        """Log timing statistics for the operations measured during this run."""
        for operation, stats in sorted(self.logging_service.get_performance_stats().items()):
            self.logging_service.log_with_context('info', f"Performance summary: {operation}", **stats)


def main(argv=None):
    """Main entry point for the application."""
    import argparse

    parser = argparse.ArgumentParser(description='Serve HTTPS with an in-memory self-signed certificate')
    parser.add_argument('--config', '-c', help='Configuration file path')
    parser.add_argument('--address', '-a', help='Listen address, host:port (default: :https)')
    parser.add_argument('--check-config', action='store_true', help='Check configuration and exit')
    parser.add_argument('--print-cert', action='store_true',
                        help='Generate a certificate, print it as PEM and exit')
    parser.add_argument('--write-default-config', metavar='PATH',
                        help='Write a default configuration file and exit')

    args = parser.parse_args(argv)

    app = PrivateTLSApplication(config_path=args.config)

    if args.write_default_config:
        app.config_service.create_default_config_file(args.write_default_config)
        print(f"Default configuration written to {args.write_default_config}")
        return 0

    try:
        config = app.initialize()
    except (FileNotFoundError, ValueError) as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    try:
        if args.check_config:
            print("Configuration check passed")
            print(f"Address: {args.address or config.address}")
            print(f"Key size: {config.key_bits} bits")
            print(f"Validity: {config.validity_days} days")
            print(f"Subject alternative names: {', '.join(config.subject_alt_names)}")
        elif args.print_cert:
            app.print_certificate()
        else:
            app.run(address=args.address)
    except CredentialError as e:
        app.logger.error(f"Failed to create TLS credential: {e}")
        return 1
    except ValueError as e:
        app.logger.error(f"Invalid setting: {e}")
        return 1
    except KeyboardInterrupt:
        app.logger.info("Shutdown requested by user")
    finally:
        if app.logging_service:
            app.log_performance_summary()
            app.logging_service.close()

    return 0


if __name__ == '__main__':
    sys.exit(main())
