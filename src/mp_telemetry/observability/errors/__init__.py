"""Observability – error taxonomy, classification and observation."""
from mp_telemetry.observability.errors.taxonomy import ClassifiedError, ErrorKind, OriginContext
from mp_telemetry.observability.errors.classifier import ErrorClassifier, classify, sanitize_db_message
from mp_telemetry.observability.errors.observer import ErrorObserver

__all__ = [
    "ClassifiedError",
    "ErrorClassifier",
    "ErrorKind",
    "ErrorObserver",
    "OriginContext",
    "classify",
    "sanitize_db_message",
]
