"""
Request telemetry: an injectable metrics recorder and OpenTelemetry tracing.
"""
import logging
from typing import Dict, List, Optional, Tuple

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor, SpanExporter
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest


TRACER_NAME = "pfx_jwk"

# Milliseconds
DURATION_BUCKETS = (1, 2.5, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)

_tracer_ready = False


class MetricsRecorder:
    """Interface for request metrics; the boundary calls it once per request."""

    content_type = "text/plain; charset=utf-8"

    def record_request(self, endpoint: str, status_code: int, duration_ms: float) -> None:
        raise NotImplementedError

    def render(self) -> bytes:
        """Exposition of the recorded metrics."""
        return b""


class NullMetricsRecorder(MetricsRecorder):
    """Recorder that keeps the calls in memory only."""

    def __init__(self):
        self.requests: List[Tuple[str, int, float]] = []

    def record_request(self, endpoint: str, status_code: int, duration_ms: float) -> None:
        self.requests.append((endpoint, status_code, duration_ms))


class PrometheusMetricsRecorder(MetricsRecorder):
    """Prometheus counter and latency histogram on a registry owned by the recorder."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = ""):
        self.registry = registry or CollectorRegistry()
        self.request_counter = Counter(
            "certificate_requests_total",
            "Certificate and JWK requests served",
            ["endpoint", "status"],
            namespace=namespace,
            registry=self.registry
        )
        self.request_duration = Histogram(
            "certificate_request_duration_ms",
            "Certificate and JWK request latency in milliseconds",
            ["endpoint"],
            namespace=namespace,
            buckets=DURATION_BUCKETS,
            registry=self.registry
        )

    def record_request(self, endpoint: str, status_code: int, duration_ms: float) -> None:
        self.request_counter.labels(endpoint=endpoint, status=str(status_code)).inc()
        self.request_duration.labels(endpoint=endpoint).observe(duration_ms)

    def render(self) -> bytes:
        return generate_latest(self.registry)


def init_tracer_provider(service_name: str, exporter: Optional[SpanExporter] = None) -> None:
    """Install a TracerProvider that prints finished spans as JSON. Runs once."""
    global _tracer_ready
    if _tracer_ready:
        return

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(SimpleSpanProcessor(exporter or ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    _tracer_ready = True
    logging.getLogger(__name__).info(f"Tracing initialized for service {service_name}")


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    return trace.get_tracer(name)


def current_trace_ids() -> Dict[str, Optional[str]]:
    """Hex trace and span ids of the active span, or None outside a span."""
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return {'trace_id': None, 'span_id': None}
    return {
        'trace_id': format(context.trace_id, '032x'),
        'span_id': format(context.span_id, '016x')
    }
