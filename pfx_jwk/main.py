"""
Main application entry point for the PFX JWK service.
Handles application initialization, service dependency injection, and graceful shutdown.
"""

import os
import sys
import signal
import logging
from typing import Optional
from datetime import datetime, timezone

from .services.config_service import ConfigService
from .services.certificate_service import CertificateService
from .services.logging_service import LoggingService
from .services.telemetry_service import PrometheusMetricsRecorder, init_tracer_provider
from .app import CertificateFlaskApp


class PfxJwkApplication:
    """Main application class for the PFX JWK service."""

    def __init__(self, config_path: Optional[str] = None, install_signal_handlers: bool = True):
        """
        Initialize the PFX JWK application.

        Args:
            config_path: Path to configuration file (optional)
            install_signal_handlers: Register SIGINT/SIGTERM/SIGHUP handlers
        """
        self.config_path = config_path or self._get_default_config_path()
        self.logger = logging.getLogger(__name__)
        self.config_service = None
        self.config = None
        self.logging_service = None
        self.metrics_recorder = None
        self.certificate_service = None
        self.flask_app = None
        self.started_at = None

        self._is_running = False

        if install_signal_handlers:
            self._setup_signal_handlers()

    def _get_default_config_path(self) -> Optional[str]:
        """Get the default configuration file path, if one exists."""
        possible_paths = [
            os.environ.get("PFX_JWK_CONFIG", ""),
            "config/default.properties",
            "config.properties",
            "/etc/pfx_jwk/config.properties"
        ]

        for path in possible_paths:
            if path and os.path.exists(path):
                return path

        # Environment-only configuration
        return None

    def _setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            self.logger.info(f"Received {signal_name} signal, initiating graceful shutdown...")
            self.shutdown()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        # Configuration reload (Unix only)
        if hasattr(signal, 'SIGHUP'):
            def reload_handler(signum, frame):
                self.logger.info("Received SIGHUP signal, reloading configuration...")
                self._reload_configuration()

            signal.signal(signal.SIGHUP, reload_handler)

    def initialize(self) -> bool:
        """
        Initialize all application components.

        Returns:
            True if initialization successful, False otherwise
        """
        try:
            if not self._load_configuration():
                return False

            self.logging_service = LoggingService(self.config)
            self.logger.info("Starting PFX JWK service initialization...")
            self.logger.info(f"Configuration: {self.config!r}")

            if self.config.enable_tracing:
                init_tracer_provider(self.config.service_name)

            self.metrics_recorder = PrometheusMetricsRecorder()
            self.certificate_service = CertificateService(self.config)

            self.flask_app = CertificateFlaskApp(
                self.config_service,
                logging_service=self.logging_service,
                metrics_recorder=self.metrics_recorder,
                certificate_service=self.certificate_service
            )

            self.logger.info("PFX JWK service initialized successfully")
            self.started_at = datetime.now(timezone.utc)
            self._is_running = True
            return True

        except Exception as e:
            self.logger.error(f"Failed to initialize application: {str(e)}")
            return False

    def _load_configuration(self) -> bool:
        """Load application configuration."""
        try:
            self.config_service = ConfigService()
            self.config = self.config_service.load_config(self.config_path)
            return True

        except (FileNotFoundError, ValueError) as e:
            self.logger.error(f"Failed to load configuration: {str(e)}")
            return False

    def run(self, host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
        """
        Run the application.

        Args:
            host: Host to bind to (uses config if not specified)
            port: Port to bind to (uses config if not specified)
            debug: Enable debug mode
        """
        if not self._is_running:
            self.logger.error("Application not initialized. Call initialize() first.")
            return

        try:
            self.flask_app.run(host=host, port=port, debug=debug)
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt")
        finally:
            self.shutdown()

    def shutdown(self):
        """Perform graceful shutdown of the application."""
        if not self._is_running:
            return

        self.logger.info("Initiating graceful shutdown...")
        self._is_running = False

        if self.certificate_service:
            self.certificate_service.shutdown()
            self.logger.info("Cached key material released")

        self.logger.info("Graceful shutdown completed")

    def _reload_configuration(self):
        """Reload configuration without restarting the application."""
        try:
            new_config = self.config_service.load_config(self.config_path)

            if new_config.log_level != self.config.log_level and self.logging_service:
                self.logging_service.set_level(new_config.log_level)
                self.logger.info(f"Log level updated to: {new_config.log_level}")

            self.config = new_config
            if self.flask_app:
                self.flask_app.update_config(new_config)

            self.logger.info("Configuration reloaded successfully")

        except (FileNotFoundError, ValueError) as e:
            self.logger.error(f"Failed to reload configuration: {str(e)}")

    def is_running(self) -> bool:
        """Check if the application is running."""
        return self._is_running

    def get_status(self) -> dict:
        """Get application status information."""
        status = {
            'running': self._is_running,
            'config_path': self.config_path,
            'certificate_path': self.config.cert_pfx_path if self.config else None,
            'tracing_enabled': self.config.enable_tracing if self.config else False,
            'startup_time': self.started_at.isoformat() if self.started_at else None
        }

        if self.certificate_service:
            status['certificate'] = self.certificate_service.get_status()

        return status


def main():
    """Main entry point for the application."""
    import argparse

    parser = argparse.ArgumentParser(description='PFX JWK Service')
    parser.add_argument('--config', '-c', help='Configuration file path')
    parser.add_argument('--host', help='Host to bind to (uses config if not specified)')
    parser.add_argument('--port', type=int, help='Port to bind to (uses config if not specified)')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    parser.add_argument('--check-config', action='store_true', help='Check configuration and exit')

    args = parser.parse_args()

    if not args.check_config:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    app = PfxJwkApplication(config_path=args.config)

    if args.check_config:
        if not app._load_configuration():
            print("Configuration check failed")
            sys.exit(1)
        print("Configuration check passed")
        print(f"Config path: {app.config_path}")
        print(f"Certificate path: {app.config.cert_pfx_path or '(not set)'}")
        print(f"Passphrase set: {bool(app.config.cert_pfx_password)}")
        print(f"Thumbprint algorithm: {app.config.thumbprint_algorithm}")
        print(f"Cache enabled: {app.config.cache_enabled}")
        sys.exit(0)

    if not app.initialize():
        print("Failed to initialize application")
        sys.exit(1)

    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
