"""Observability helpers."""

from reflinks.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_document,
    record_reference,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_document",
    "record_reference",
]
