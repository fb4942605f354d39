"""
HTTPS listener backed by a freshly generated self-signed credential.
"""
from flask import Flask, jsonify
import logging
import socket
import ssl
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Optional, Tuple

from werkzeug.serving import BaseWSGIServer, make_server

from .models.config import DEFAULT_ADDRESS
from .security import SecurityService, CredentialOptions, TLSCredential, generate_self_signed_credential
from .services.logging_service import LoggingService


ALL_INTERFACES = '0.0.0.0'
KNOWN_SERVICES = {'http': 80, 'https': 443}


def parse_address(address: str) -> Tuple[str, int]:
    """
    Split a listen address into host and port.

    Accepts ``host:port``, ``[ipv6]:port`` and ``:port``; the port may be a
    service name such as ``https``. An empty address means ``:https``, and an
    empty host means every interface.

    Raises:
        ValueError: If the address cannot be parsed
    """
    address = address or DEFAULT_ADDRESS

    if address.startswith('['):
        host, sep, port = address[1:].partition(']:')
        if not sep:
            raise ValueError(f"Malformed IPv6 listen address: {address}")
    else:
        host, sep, port = address.rpartition(':')
        if not sep:
            raise ValueError(f"Missing port in listen address: {address}")
        if ':' in host:
            raise ValueError(f"IPv6 hosts must be enclosed in brackets: {address}")

    return host or ALL_INTERFACES, _resolve_port(port)


def _resolve_port(port: str) -> int:
    """Resolve a numeric port or a TCP service name."""
    if port.isdigit():
        value = int(port)
        if value > 65535:
            raise ValueError(f"Port out of range: {port}")
        return value

    if port in KNOWN_SERVICES:
        return KNOWN_SERVICES[port]

    try:
        return socket.getservbyname(port, 'tcp')
    except OSError as e:
        raise ValueError(f"Unknown port or service name: {port!r}") from e


class PrivateTLSServer:
    """Serves a WSGI application over HTTPS with a self-signed in-memory credential."""

    def __init__(self, app: Optional[Flask] = None, options: Optional[CredentialOptions] = None,
                 logging_service: Optional[LoggingService] = None):
        """Initialize the server. Without an app, a minimal health-check app is served."""
        self.options = options or CredentialOptions()
        self.security_service = SecurityService()
        self.logging_service = logging_service
        self.logger = logging.getLogger(__name__)
        self.credential: Optional[TLSCredential] = None
        self.app = app if app is not None else self._create_default_app()

    def _create_default_app(self) -> Flask:
        """Create the Flask app served when the caller supplies none."""
        app = Flask(__name__)

        @app.route('/health', methods=['GET'])
        def health_check():
            """Report listener status and the certificate in use."""
            health_status = {
                'status': 'healthy',
                'service': 'privatetls',
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
            if self.credential is not None:
                info = self.security_service.get_certificate_info(
                    self.credential.certificate_pem.decode()
                )
                health_status['certificate'] = {
                    'serial_number': info.serial_number,
                    'fingerprint': info.fingerprint,
                    'not_after': info.not_after.isoformat()
                }
            return jsonify(health_status)

        @app.errorhandler(404)
        def not_found(error):
            return jsonify({
                'error': 'Not found',
                'message': 'The requested endpoint does not exist'
            }), 404

        @app.after_request
        def add_security_headers(response):
            """Add security headers to all responses."""
            response.headers['Strict-Transport-Security'] = 'max-age=31536000'
            response.headers['X-Content-Type-Options'] = 'nosniff'
            response.headers['X-Frame-Options'] = 'DENY'
            response.headers.pop('Server', None)
            return response

        return app

    def create_ssl_context(self) -> ssl.SSLContext:
        """Generate a new credential and load it into a server SSL context."""
        if self.logging_service:
            measure = self.logging_service.measure_performance('generate_credential')
        else:
            measure = nullcontext()

        with measure:
            credential = generate_self_signed_credential(self.options)

        context = self.security_service.create_server_context(credential)
        self.credential = credential
        return context

    def make_server(self, address: str = "") -> BaseWSGIServer:
        """
        Bind an HTTPS server without starting to serve.

        Args:
            address: Listen address, ``:https`` when empty

        Returns:
            Werkzeug server; call ``serve_forever()`` to start and ``shutdown()`` to stop
        """
        host, port = parse_address(address)
        ssl_context = self.create_ssl_context()
        return make_server(host, port, self.app, threaded=True, ssl_context=ssl_context)

    def serve(self, address: str = "") -> None:
        """Serve HTTPS on the address until the server stops."""
        server = self.make_server(address)
        self.logger.info(f"Serving HTTPS on https://{server.host}:{server.port}")
        try:
            server.serve_forever()
        finally:
            server.server_close()


def start_https_listener(address: str = "", app: Optional[Flask] = None,
                         options: Optional[CredentialOptions] = None) -> None:
    """
    Serve HTTPS on the address with a new self-signed certificate.

    Blocks until the server stops. Credential errors propagate unchanged.
    """
    PrivateTLSServer(app=app, options=options).serve(address)
