"""OpenTelemetry + Prometheus fallback wiring for reflinks."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from reflinks import config

logger = logging.getLogger("reflinks.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_reference_counter: Any | None = None
_document_latency_hist: Any | None = None

_prom_enabled = False
_prom_reference_counter: Any | None = None
_prom_document_latency_hist: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _prom_labels(*, project_id: Any, **extra: str) -> dict[str, str]:
    labels = {"project": str(project_id or "unknown")}
    for key, value in extra.items():
        labels[key] = (value or "").strip() or "unknown"
    return labels


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _reference_counter, _document_latency_hist
    global _prom_enabled, _prom_reference_counter, _prom_document_latency_hist

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (REFLINKS_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "reflinks"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "reflinks",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_endpoint or None)))
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("reflinks")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("reflinks")

    _reference_counter = meter.create_counter(
        "reflinks_references_total",
        unit="1",
        description="Reference tokens seen, by kind and resolution result",
    )
    _document_latency_hist = meter.create_histogram(
        "reflinks_document_latency_ms",
        unit="ms",
        description="Time spent resolving the references of one document",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, Histogram, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_enabled = True
            _prom_reference_counter = Counter(
                "reflinks_references_total",
                "Reference tokens seen, by kind and resolution result",
                ["kind", "result", "project"],
            )
            _prom_document_latency_hist = Histogram(
                "reflinks_document_latency_ms",
                "Time spent resolving the references of one document",
                ["kind", "project"],
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to uninstrument app: %s", exc)
    for provider in (_meter_provider, _trace_provider):
        try:
            if provider is not None:
                provider.shutdown()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Telemetry provider shutdown failed: %s", exc)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_reference(kind: str, result: str, *, project_id: Any) -> None:
    labels = {
        "kind": kind or "unknown",
        "result": result or "unknown",
        "project_id": str(project_id or "unknown"),
    }
    if _enabled and _reference_counter is not None:
        _reference_counter.add(1, labels)
    if _prom_enabled and _prom_reference_counter is not None:
        _prom_reference_counter.labels(**_prom_labels(project_id=project_id, kind=kind, result=result)).inc()


def record_document(kind: str, duration_ms: float, *, project_id: Any) -> None:
    labels = {"kind": kind or "unknown", "project_id": str(project_id or "unknown")}
    if _enabled and _document_latency_hist is not None:
        _document_latency_hist.record(max(0.0, float(duration_ms)), labels)
    if _prom_enabled and _prom_document_latency_hist is not None:
        prom = _prom_labels(project_id=project_id, kind=kind)
        _prom_document_latency_hist.labels(**prom).observe(max(0.0, float(duration_ms)))
