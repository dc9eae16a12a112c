"""
Configuration data models for the PFX JWK service.
"""
from dataclasses import dataclass


SUPPORTED_THUMBPRINT_ALGORITHMS = ("SHA-256", "SHA-1")


@dataclass
class Config:
    """Main configuration class containing all application settings."""

    # Certificate settings
    cert_pfx_path: str = ""
    cert_pfx_password: str = ""
    thumbprint_algorithm: str = "SHA-256"

    # Cache settings
    cache_enabled: bool = True
    cache_ttl_seconds: int = 300

    # Server settings
    api_host: str = "0.0.0.0"
    api_port: int = 5000

    # Telemetry settings
    enable_tracing: bool = True
    service_name: str = "pfx-jwk"

    # Application settings
    log_level: str = "INFO"
    log_file_path: str = "logs/pfx_jwk.log"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_types()

    def _validate_types(self):
        """Ensure all configuration values have correct types."""
        if self.thumbprint_algorithm not in SUPPORTED_THUMBPRINT_ALGORITHMS:
            raise ValueError(
                f"thumbprint_algorithm must be one of: {', '.join(SUPPORTED_THUMBPRINT_ALGORITHMS)}"
            )

        if not isinstance(self.cache_ttl_seconds, int) or self.cache_ttl_seconds < 0:
            raise ValueError("cache_ttl_seconds must be a non-negative integer")

        if not isinstance(self.api_port, int) or not (1 <= self.api_port <= 65535):
            raise ValueError("api_port must be an integer between 1 and 65535")

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")

    @property
    def certificate_configured(self) -> bool:
        """Whether both the bundle path and its passphrase are set."""
        return bool(self.cert_pfx_path) and bool(self.cert_pfx_password)

    def __repr__(self):
        password = "***" if self.cert_pfx_password else ""
        return (
            f"Config(cert_pfx_path={self.cert_pfx_path!r}, cert_pfx_password={password!r}, "
            f"thumbprint_algorithm={self.thumbprint_algorithm!r}, cache_enabled={self.cache_enabled!r}, "
            f"cache_ttl_seconds={self.cache_ttl_seconds!r}, api_host={self.api_host!r}, "
            f"api_port={self.api_port!r}, enable_tracing={self.enable_tracing!r}, "
            f"service_name={self.service_name!r}, log_level={self.log_level!r}, "
            f"log_file_path={self.log_file_path!r})"
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
