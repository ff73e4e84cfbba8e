"""Observability – structural error classification.

:func:`classify` maps any raised value onto :class:`ErrorKind` by looking at
its shape rather than its type, so it works for ``httpx``, ``requests`` and
SQLAlchemy errors without importing any of them.  Rules are tried in order
and the first match wins:

1. HTTP client error: exposes a ``response`` carrying a status, or a
   ``request`` carrying both ``method`` and ``url``
2. known DB constraint error: DB-API wrapper (``statement`` + ``orig``)
   whose driver error resolves to a code
3. unknown DB error: the same wrapper without a resolvable code
4. DB validation error: any other ``SQLAlchemyError``
5. generic: everything else
"""
from __future__ import annotations

import json
import logging
import re
import traceback
from typing import Any, Iterable

from mp_telemetry.kernel.security.pii import DEFAULT_SENSITIVE_FIELDS
from mp_telemetry.observability.errors.taxonomy import ClassifiedError, ErrorKind
from mp_telemetry.observability.redaction import SensitiveDataMasker, truncate_body

logger = logging.getLogger(__name__)

_MISSING = object()

_BACKTICK_RE = re.compile(r"`[^`]+`")
_LONG_QUOTED_RE = re.compile(r'"[^"]{50,}"')
_PARAMETERS_RE = re.compile(r"\[parameters: .*?\](?=\n|$)", re.DOTALL)
_KEY_VALUE_RE = re.compile(r"\)=\((.*?)\)")


def _safe_attr(obj: Any, name: str, default: Any = None) -> Any:
    """``getattr`` that treats a raising property (httpx) as absent."""
    if obj is None:
        return default
    try:
        return getattr(obj, name, default)
    except Exception:  # noqa: BLE001
        return default


def _response_status(response: Any) -> Any:
    status = _safe_attr(response, "status_code")
    if status is None:
        status = _safe_attr(response, "status")
    return status


def _is_http_error(error: Any) -> bool:
    response = _safe_attr(error, "response")
    if response is not None and _response_status(response) is not None:
        return True
    request = _safe_attr(error, "request")
    return (
        request is not None
        and _safe_attr(request, "method") is not None
        and _safe_attr(request, "url") is not None
    )


def _is_dbapi_error(error: Any) -> bool:
    return (
        _safe_attr(error, "statement", _MISSING) is not _MISSING
        and _safe_attr(error, "orig") is not None
    )


def _driver_errors(error: Any) -> list[Any]:
    orig = _safe_attr(error, "orig")
    candidates = [orig]
    cause = _safe_attr(orig, "__cause__")
    if cause is not None:
        candidates.append(cause)
    return [c for c in candidates if c is not None]


def _driver_code(error: Any) -> str | None:
    for driver_error in _driver_errors(error):
        for attr in ("pgcode", "sqlstate", "sqlite_errorname", "errno"):
            code = _safe_attr(driver_error, attr)
            if code:
                return str(code)
        args = _safe_attr(driver_error, "args") or ()
        if args and isinstance(args[0], int):
            return str(args[0])
    return None


def _has_class_named(error: Any, name: str) -> bool:
    return any(cls.__name__ == name for cls in type(error).__mro__)


def classify(error: Any) -> ErrorKind:
    if _is_http_error(error):
        return ErrorKind.HTTP_CLIENT_ERROR
    if _is_dbapi_error(error):
        if _driver_code(error) is not None:
            return ErrorKind.DB_KNOWN_CONSTRAINT_ERROR
        return ErrorKind.DB_UNKNOWN_ERROR
    if _has_class_named(error, "SQLAlchemyError"):
        return ErrorKind.DB_VALIDATION_ERROR
    return ErrorKind.GENERIC


def sanitize_db_message(message: str) -> str:
    """Replace literal values a driver may embed in its message."""
    message = _BACKTICK_RE.sub("`[VALUE]`", message)
    message = _LONG_QUOTED_RE.sub('"[LONG_VALUE]"', message)
    message = _KEY_VALUE_RE.sub(")=([VALUE])", message)
    return _PARAMETERS_RE.sub("[parameters: [REDACTED]]", message)


def _message_of(error: Any) -> str:
    try:
        return str(error)
    except Exception:  # noqa: BLE001
        return repr(error)


def _parse_body(body: Any) -> Any:
    if isinstance(body, (bytes, bytearray)):
        body = bytes(body).decode("utf-8", errors="replace")
    if isinstance(body, str) and body[:1] in ("{", "["):
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


def _headers_of(obj: Any) -> dict[str, Any] | None:
    headers = _safe_attr(obj, "headers")
    if headers is None:
        return None
    try:
        return dict(headers.items())
    except Exception:  # noqa: BLE001
        return None


class ErrorClassifier:
    """Turn any raised value into a :class:`ClassifiedError`."""

    def __init__(
        self,
        sensitive_fields: Iterable[str] | None = None,
        max_body_size: int = 10_000,
    ) -> None:
        self._masker = SensitiveDataMasker(
            DEFAULT_SENSITIVE_FIELDS if sensitive_fields is None else sensitive_fields
        )
        self._max_body_size = max_body_size

    @property
    def max_body_size(self) -> int:
        return self._max_body_size

    def classify(self, error: Any) -> ErrorKind:
        return classify(error)

    def extract(self, error: Any) -> ClassifiedError:
        kind = classify(error)
        try:
            if kind is ErrorKind.HTTP_CLIENT_ERROR:
                return self._extract_http(error)
            if kind is ErrorKind.DB_KNOWN_CONSTRAINT_ERROR:
                return self._extract_db_known(error)
            if kind.is_database:
                return ClassifiedError(
                    kind=kind,
                    message=sanitize_db_message(_message_of(error)),
                    is_redacted=True,
                )
        except Exception as exc:  # noqa: BLE001
            logger.debug("error_classifier.extract_failed kind=%s error=%s", kind.value, exc)
        return self._extract_generic(error)

    def _extract_http(self, error: Any) -> ClassifiedError:
        response = _safe_attr(error, "response")
        request = _safe_attr(error, "request") or _safe_attr(response, "request")
        status = _response_status(response)
        method = _safe_attr(request, "method")

        http: dict[str, Any] = {
            "method": str(method).upper() if method is not None else None,
            "url": str(_safe_attr(request, "url")) if request is not None else None,
            "status_code": status,
            "status_text": _safe_attr(response, "reason_phrase") or _safe_attr(response, "reason"),
        }
        detail: dict[str, Any] = {"http": http}
        if request is not None:
            body = _safe_attr(request, "content")
            if body is None:
                body = _safe_attr(request, "body")
            detail["request"] = {
                "headers": self._masker.mask_headers(_headers_of(request)),
                "body": truncate_body(self._masker.mask(_parse_body(body)), self._max_body_size),
            }
        if response is not None:
            detail["response"] = {
                "headers": self._masker.mask_headers(_headers_of(response)),
                "body": truncate_body(
                    self._masker.mask(_parse_body(_safe_attr(response, "text"))),
                    self._max_body_size,
                ),
            }

        code = status if status is not None else _safe_attr(error, "code")
        return ClassifiedError(
            kind=ErrorKind.HTTP_CLIENT_ERROR,
            message=_message_of(error),
            detail=detail,
            is_redacted=True,
            code=str(code) if code is not None else None,
        )

    def _extract_db_known(self, error: Any) -> ClassifiedError:
        model = field = constraint = None
        for driver_error in _driver_errors(error):
            for source in (_safe_attr(driver_error, "diag"), driver_error):
                model = model or _safe_attr(source, "table_name")
                field = field or _safe_attr(source, "column_name")
                constraint = constraint or _safe_attr(source, "constraint_name")
        code = _driver_code(error)
        return ClassifiedError(
            kind=ErrorKind.DB_KNOWN_CONSTRAINT_ERROR,
            message=sanitize_db_message(_message_of(error)),
            detail={"db": {"code": code, "model": model, "field": field, "constraint": constraint}},
            is_redacted=True,
            code=code,
        )

    def _extract_generic(self, error: Any) -> ClassifiedError:
        if isinstance(error, BaseException):
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
            return ClassifiedError(
                kind=ErrorKind.GENERIC,
                message=_message_of(error),
                detail={"error_name": type(error).__name__, "stack_trace": stack},
                code=_coerce_code(_safe_attr(error, "code")),
            )
        return ClassifiedError(kind=ErrorKind.GENERIC, message=_message_of(error))


def _coerce_code(code: Any) -> str | None:
    if isinstance(code, (str, int)) and not isinstance(code, bool):
        return str(code)
    return None


__all__ = ["ErrorClassifier", "classify", "sanitize_db_message"]
