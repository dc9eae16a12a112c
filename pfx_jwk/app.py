"""
Flask application exposing the configured certificate and its private JWK.
"""
from flask import Flask, Response, request, jsonify
import logging
import time
from typing import Optional
from datetime import datetime, timezone

from .models.certificate import CertificateMetadata, CertificateResult
from .models.errors import UnexpectedError
from .services.certificate_service import CertificateService
from .services.config_service import ConfigService
from .services.logging_service import LoggingService, log_request_error
from .services.telemetry_service import MetricsRecorder, PrometheusMetricsRecorder, get_tracer


CERTIFICATE_CONTENT_TYPE = 'application/pkix-cert'


def certificate_headers(metadata: CertificateMetadata) -> dict:
    """X-Certificate-* response headers for a described certificate."""
    return {
        'X-Certificate-Expiration': metadata.not_after,
        'X-Certificate-Thumbprint': metadata.thumbprint,
        'X-Certificate-Thumbprint-Algorithm': metadata.thumbprint_algorithm,
        'X-Certificate-Serial-Number': metadata.serial_number
    }


class CertificateFlaskApp:
    """Flask application serving the certificate and JWK endpoints."""

    def __init__(self, config_service: ConfigService,
                 logging_service: Optional[LoggingService] = None,
                 metrics_recorder: Optional[MetricsRecorder] = None,
                 certificate_service: Optional[CertificateService] = None):
        """Initialize the Flask application and its collaborators."""
        self.app = Flask(__name__)
        self.app.json.sort_keys = False
        self.config_service = config_service
        self.config = config_service.get_config()
        self.logging_service = logging_service
        self.metrics_recorder = metrics_recorder or PrometheusMetricsRecorder()
        self.certificate_service = certificate_service or CertificateService(self.config)
        self.tracer = get_tracer()
        self.logger = logging.getLogger(__name__)

        self._setup_routes()
        self._setup_error_handlers()
        self._setup_security_headers()

    def _setup_routes(self):
        """Set up API routes."""

        @self.app.route('/api/certificate', methods=['GET'])
        def get_certificate():
            """Raw DER certificate with identity headers."""
            return self._handle('CertificateController.Get', self.certificate_service.get_certificate,
                                self._certificate_response)

        @self.app.route('/api/jwk', methods=['GET'])
        def get_jwk():
            """Private JWK of the certificate key pair with identity headers."""
            return self._handle('JwkApiController.Get', self.certificate_service.get_jwk,
                                self._jwk_response)

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Service status, without touching the certificate file."""
            return jsonify({
                'status': 'healthy',
                'service': self.config.service_name,
                'certificate': self.certificate_service.get_status(),
                'timestamp': datetime.now(timezone.utc).isoformat()
            })

        @self.app.route('/metrics', methods=['GET'])
        def metrics():
            """Request metrics exposition."""
            return Response(self.metrics_recorder.render(),
                            content_type=self.metrics_recorder.content_type)

    def _handle(self, span_name: str, operation, build_response) -> Response:
        """Run one pipeline call inside a span, then time, count and log it."""
        start = time.perf_counter()
        endpoint = request.path

        with self.tracer.start_as_current_span(span_name) as span:
            span.set_attribute('http.method', request.method)
            span.set_attribute('http.url', request.path)

            try:
                result = operation()
            except Exception as e:
                result = CertificateResult.failure(
                    UnexpectedError("Unexpected error while processing the request", cause=e)
                )

            if result.success:
                response = build_response(result)
                response.headers.update(certificate_headers(result.metadata))
                span.set_attribute('x.certificate.thumbprint', result.metadata.thumbprint)
                span.set_attribute('x.certificate.serial.number', result.metadata.serial_number)
                span.set_attribute('x.certificate.expiration', result.metadata.not_after)
            else:
                response = jsonify(result.error.to_dict())
                response.status_code = result.status_code
                span.set_attribute('error', True)
                span.set_attribute('error.kind', result.error_kind.value)
                span.set_attribute('error.message', result.error_message)

            span.set_attribute('http.status_code', response.status_code)
            duration_ms = (time.perf_counter() - start) * 1000

            if not result.success:
                log_request_error(self.logger, result.error, request.path, request.method,
                                  request.remote_addr, duration_ms)

        self.metrics_recorder.record_request(endpoint, response.status_code, duration_ms)
        message = f"{request.method} {endpoint} -> {response.status_code} in {duration_ms:.1f} ms"
        if self.logging_service is not None:
            self.logging_service.log_with_context(
                'info', message,
                endpoint=endpoint, method=request.method,
                status=response.status_code, duration_ms=round(duration_ms, 3)
            )
        else:
            self.logger.info(message)
        return response

    def _certificate_response(self, result: CertificateResult) -> Response:
        return Response(result.certificate_der, status=200, content_type=CERTIFICATE_CONTENT_TYPE)

    def _jwk_response(self, result: CertificateResult) -> Response:
        return jsonify(result.jwk)

    def _setup_error_handlers(self):
        """Set up error handlers."""

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({
                'error': 'Not found',
                'message': 'The requested endpoint does not exist'
            }), 404

        @self.app.errorhandler(405)
        def method_not_allowed(error):
            return jsonify({
                'error': 'Method not allowed',
                'message': 'The requested method is not allowed for this endpoint'
            }), 405

        @self.app.errorhandler(500)
        def internal_error(error):
            self.logger.error(f"Internal server error: {error}")
            return jsonify({
                'error': 'Internal server error',
                'message': 'An unexpected error occurred'
            }), 500

    def _setup_security_headers(self):
        """Set up security headers for all responses."""

        @self.app.after_request
        def add_security_headers(response):
            """Add security headers to all responses."""
            # Key material must never be stored by intermediaries
            response.headers['Cache-Control'] = 'no-store'
            response.headers['X-Content-Type-Options'] = 'nosniff'
            response.headers['X-Frame-Options'] = 'DENY'
            response.headers['Referrer-Policy'] = 'no-referrer'

            # Remove server information
            response.headers.pop('Server', None)

            return response

    def update_config(self, config) -> None:
        """Apply a reloaded configuration."""
        self.config = config
        self.certificate_service.update_config(config)

    def run(self, host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
        """Run the Flask development server; TLS is terminated in front of it."""
        host = host or self.config.api_host
        if port is None:
            port = self.config.api_port

        self.logger.info(f"Starting PFX JWK service on http://{host}:{port}")
        self.app.run(host=host, port=port, debug=debug)

    def get_app(self) -> Flask:
        """Get the Flask application instance."""
        return self.app
