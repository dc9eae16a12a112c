"""
Structured logging for the PFX JWK service.
"""
import json
import logging
import logging.handlers
import sys
import traceback
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional

from ..models.errors import CertificateServiceError
from .telemetry_service import current_trace_ids


@dataclass
class LogEntry:
    """Structured log entry for JSON logging."""
    timestamp: str
    level: str
    logger_name: str
    message: str
    module: str
    function: str
    line_number: int
    thread_id: int
    process_id: int
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    extra_data: Optional[Dict[str, Any]] = None
    exception_info: Optional[Dict[str, Any]] = None


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        ids = current_trace_ids()

        log_entry = LogEntry(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname,
            logger_name=record.name,
            message=record.getMessage(),
            module=record.module,
            function=record.funcName,
            line_number=record.lineno,
            thread_id=record.thread,
            process_id=record.process,
            trace_id=ids['trace_id'],
            span_id=ids['span_id'],
            extra_data=getattr(record, 'extra_data', None)
        )

        if record.exc_info:
            log_entry.exception_info = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': traceback.format_exception(*record.exc_info)
            }

        return json.dumps(asdict(log_entry), default=str)


def exception_details(error: BaseException) -> Dict[str, Any]:
    """Loggable description of an error and its underlying cause."""
    details = {
        'type': type(error).__name__,
        'message': getattr(error, 'message', str(error))
    }

    cause = getattr(error, 'cause', None) or error.__cause__
    if cause is not None:
        details['cause_type'] = type(cause).__name__
        details['cause_message'] = str(cause)

    if isinstance(error, CertificateServiceError):
        details['kind'] = error.kind.value

    return details


class LoggingService:
    """Configures root logging and writes structured request records."""

    def __init__(self, config):
        """Initialize logging service with configuration."""
        self.config = config
        self._setup_logging()
        self.logger = logging.getLogger(__name__)
        self.logger.info("Logging service initialized")

    def _setup_logging(self):
        """Setup JSON file, console and error-only handlers; console only without a log path."""
        # Clear existing handlers
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        root_logger.setLevel(log_level)

        console_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(console_formatter)
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)

        if not self.config.log_file_path:
            return

        log_dir = Path(self.config.log_file_path).parent
        log_dir.mkdir(parents=True, exist_ok=True)

        json_formatter = JSONFormatter()

        file_handler = logging.handlers.RotatingFileHandler(
            filename=self.config.log_file_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(json_formatter)
        file_handler.setLevel(log_level)

        error_log_path = str(Path(self.config.log_file_path).with_suffix('.errors.log'))
        error_handler = logging.handlers.RotatingFileHandler(
            filename=error_log_path,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setFormatter(json_formatter)
        error_handler.setLevel(logging.ERROR)

        root_logger.addHandler(file_handler)
        root_logger.addHandler(error_handler)

    def set_level(self, level: str) -> None:
        log_level = getattr(logging, level.upper(), logging.INFO)
        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        for handler in root_logger.handlers:
            if handler.level != logging.ERROR:
                handler.setLevel(log_level)

    def log_with_context(self, level: str, message: str, **context):
        """Log message with additional context data."""
        logger = logging.getLogger('app')
        log_method = getattr(logger, level.lower(), logger.info)
        log_method(message, extra={'extra_data': context})


def log_request_error(logger: logging.Logger, error: BaseException, path: str, method: str,
                      client_ip: Optional[str], duration_ms: float) -> Dict[str, Any]:
    """
    Write the structured record for a failed request.

    The record names the request, its timing, the error and the active
    trace; it never includes configuration secrets or key bytes.

    Returns:
        The logged record
    """
    record = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'request_path': path,
        'request_method': method,
        'client_ip': client_ip,
        'duration_ms': round(duration_ms, 3),
        'exception': exception_details(error),
        **current_trace_ids()
    }

    unexpected = not isinstance(error, CertificateServiceError) or error.status_code >= 500
    log_method = logger.error if unexpected else logger.warning
    log_method(
        f"Request failed: {method} {path}",
        extra={'extra_data': record}
    )
    return record
