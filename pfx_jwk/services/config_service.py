"""
Configuration service for loading and validating application settings.
"""
import os
import configparser
from typing import Optional, Dict, Any, Mapping
import logging

from ..models.config import Config, ConfigValidationError, ConfigValidationResult


# Configuration keys (section.key and bare key) -> (Config field, type)
CONFIG_MAPPING = {
    # Certificate settings
    "certificate.pfx_path": ("cert_pfx_path", str),
    "cert_pfx_path": ("cert_pfx_path", str),
    "certificate.pfx_password": ("cert_pfx_password", str),
    "cert_pfx_password": ("cert_pfx_password", str),
    "certificate.thumbprint_algorithm": ("thumbprint_algorithm", str),
    "thumbprint_algorithm": ("thumbprint_algorithm", str),

    # Cache settings
    "cache.enabled": ("cache_enabled", bool),
    "cache_enabled": ("cache_enabled", bool),
    "cache.ttl_seconds": ("cache_ttl_seconds", int),
    "cache_ttl_seconds": ("cache_ttl_seconds", int),

    # Server settings
    "server.host": ("api_host", str),
    "api_host": ("api_host", str),
    "server.port": ("api_port", int),
    "api_port": ("api_port", int),

    # Telemetry settings
    "telemetry.enable_tracing": ("enable_tracing", bool),
    "enable_tracing": ("enable_tracing", bool),
    "telemetry.service_name": ("service_name", str),
    "service_name": ("service_name", str),

    # Application settings
    "app.log_level": ("log_level", str),
    "log_level": ("log_level", str),
    "app.log_file_path": ("log_file_path", str),
    "log_file_path": ("log_file_path", str),
}

# Environment variable -> configuration key
ENVIRONMENT_MAPPING = {
    "CERT_PFX_PATH": "cert_pfx_path",
    "CERT_PFX_PASSWORD": "cert_pfx_password",
    "CERT_THUMBPRINT_ALGORITHM": "thumbprint_algorithm",
    "CERT_CACHE_ENABLED": "cache_enabled",
    "CERT_CACHE_TTL_SECONDS": "cache_ttl_seconds",
    "API_HOST": "api_host",
    "API_PORT": "api_port",
    "ENABLE_TRACING": "enable_tracing",
    "SERVICE_NAME": "service_name",
    "LOG_LEVEL": "log_level",
    "LOG_FILE_PATH": "log_file_path",
}

SECRET_FIELDS = {"cert_pfx_password"}


class ConfigService:
    """Service for loading and validating application configuration."""

    def __init__(self, config_path: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None):
        self.logger = logging.getLogger(__name__)
        self._environ = os.environ if environ is None else environ
        self._config = None
        if config_path:
            self._config = self.load_config(config_path)

    def get_config(self) -> Config:
        """
        Get the loaded configuration.

        Returns:
            Config object

        Raises:
            ValueError: If no configuration has been loaded
        """
        if self._config is None:
            raise ValueError("No configuration loaded. Call load_config() first.")
        return self._config

    def load_config(self, config_path: Optional[str] = None) -> Config:
        """
        Load configuration from a property file and the environment.

        Environment variables override file values. Without a file, the
        defaults and the environment are used.

        Args:
            config_path: Path to the configuration file (optional)

        Returns:
            Config object with loaded settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid or has validation errors
        """
        config_data: Dict[str, Any] = {}

        if config_path:
            if not os.path.exists(config_path):
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            config_data.update(self._load_config_file(config_path))

        config_data.update(self._load_environment())

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
        config_parser = configparser.ConfigParser(interpolation=None)

        try:
            config_parser.read(config_path)
        except configparser.Error as e:
            raise ValueError(f"Failed to parse configuration file: {e}")

        # Use section.key format for namespacing
        config_data = {}
        for section in config_parser.sections():
            for key, value in config_parser.items(section):
                config_data[f"{section}.{key}"] = value

        for key, value in config_parser.defaults().items():
            if key not in config_data:
                config_data[key] = value

        return config_data

    def _load_environment(self) -> Dict[str, str]:
        """Collect configuration values set in the environment."""
        return {
            config_key: self._environ[env_name]
            for env_name, config_key in ENVIRONMENT_MAPPING.items()
            if env_name in self._environ
        }

    def _create_config_from_data(self, config_data: Dict[str, Any]) -> Config:
        """Create Config object from configuration data."""
        config_kwargs = {}

        for config_key, raw_value in config_data.items():
            if config_key not in CONFIG_MAPPING:
                continue

            field_name, field_type = CONFIG_MAPPING[config_key]
            try:
                if field_type == bool:
                    value = self._parse_bool(raw_value)
                elif field_type == int:
                    value = int(raw_value)
                else:
                    value = str(raw_value).strip() if raw_value is not None else ""

                config_kwargs[field_name] = value
            except (ValueError, TypeError) as e:
                shown = "***" if field_name in SECRET_FIELDS else raw_value
                raise ValueError(f"Invalid value for {config_key}: {shown} ({e})")

        if 'thumbprint_algorithm' in config_kwargs:
            config_kwargs['thumbprint_algorithm'] = self._normalize_algorithm(
                config_kwargs['thumbprint_algorithm']
            )
        if 'log_level' in config_kwargs:
            config_kwargs['log_level'] = config_kwargs['log_level'].upper()

        return Config(**config_kwargs)

    def _parse_bool(self, value: Any) -> bool:
        """Parse boolean value from string."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "yes", "1", "on", "enabled")
        return bool(value)

    def _normalize_algorithm(self, value: str) -> str:
        """Accept SHA256 / sha-256 / sha1 spellings."""
        compact = value.upper().replace("-", "").replace("_", "")
        return {"SHA256": "SHA-256", "SHA1": "SHA-1"}.get(compact, value)

    def validate_config(self, config: Config) -> ConfigValidationResult:
        """
        Validate configuration settings.

        A missing bundle path or passphrase is only a warning: the service
        starts and answers certificate requests with a configuration error.

        Args:
            config: Configuration object to validate

        Returns:
            ConfigValidationResult with validation results
        """
        errors = []
        warnings = []

        if not config.cert_pfx_path:
            warnings.append(ConfigValidationError(
                "cert_pfx_path",
                "Certificate PFX path is not configured",
                "warning"
            ))
        elif not os.path.exists(config.cert_pfx_path):
            warnings.append(ConfigValidationError(
                "cert_pfx_path",
                f"Certificate file not found: {config.cert_pfx_path}",
                "warning"
            ))

        if not config.cert_pfx_password:
            warnings.append(ConfigValidationError(
                "cert_pfx_password",
                "Certificate PFX passphrase is not configured",
                "warning"
            ))

        if config.thumbprint_algorithm == "SHA-1":
            warnings.append(ConfigValidationError(
                "thumbprint_algorithm",
                "SHA-1 thumbprints are kept for legacy clients only",
                "warning"
            ))

        if config.cache_enabled and config.cache_ttl_seconds == 0:
            warnings.append(ConfigValidationError(
                "cache_ttl_seconds",
                "Cache TTL of 0 keeps bundles until the file changes",
                "warning"
            ))

        if not config.service_name:
            errors.append(ConfigValidationError(
                "service_name",
                "Service name is required for telemetry"
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

    def create_default_config_file(self, config_path: str) -> None:
        """
        Create a default configuration file with example settings.

        Args:
            config_path: Path where to create the config file
        """
        config_content = """# PFX JWK Service Configuration File
# CERT_PFX_PATH / CERT_PFX_PASSWORD in the environment override the values below.

[certificate]
pfx_path = certs/certificate.pfx
pfx_password =
# SHA-256 (default) or SHA-1 for legacy clients
thumbprint_algorithm = SHA-256

[cache]
enabled = true
ttl_seconds = 300

[server]
host = 0.0.0.0
port = 5000

[telemetry]
enable_tracing = true
service_name = pfx-jwk

[app]
log_level = INFO
log_file_path = logs/pfx_jwk.log
"""

        config_dir = os.path.dirname(config_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_path, 'w') as f:
            f.write(config_content)

        self.logger.info(f"Created default configuration file: {config_path}")
