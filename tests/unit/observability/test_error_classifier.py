"""Unit tests for structural error classification and extraction."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from mp_telemetry.kernel.security import REDACTED
from mp_telemetry.observability.errors import (
    ClassifiedError,
    ErrorClassifier,
    ErrorKind,
    classify,
    sanitize_db_message,
)


# ---------------------------------------------------------------------------
# Duck-typed HTTP client error (the shape httpx / requests expose)
# ---------------------------------------------------------------------------


class FakeRequest:
    method = "post"
    url = "https://payments.example.com/v1/charges"
    headers = {"Authorization": "Bearer sk_live_123", "Content-Type": "application/json"}
    content = b'{"amount": 500, "password": "hunter2"}'


class FakeResponse:
    status_code = 402
    reason_phrase = "Payment Required"
    headers = {"X-Request-Id": "r-1"}
    text = '{"error": "card_declined", "token": "tok_abc"}'


class FakeHTTPError(Exception):
    def __init__(self) -> None:
        super().__init__("Client error '402 Payment Required'")
        self.request = FakeRequest()
        self.response = FakeResponse()


class FakeDriverError(Exception):
    def __init__(self, message: str, pgcode: str | None = None) -> None:
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = SimpleNamespace(
            table_name="users",
            column_name="email",
            constraint_name="users_email_key",
        )


class FakeDBAPIWrapper(Exception):
    """Same shape as SQLAlchemy's DBAPIError: ``statement`` and ``orig``."""

    def __init__(self, orig: Exception) -> None:
        super().__init__(str(orig))
        self.statement = "INSERT INTO users (email) VALUES (%(email)s)"
        self.orig = orig


# ---------------------------------------------------------------------------
# classify()
# ---------------------------------------------------------------------------


class TestClassify:
    def test_http_error_with_response(self) -> None:
        assert classify(FakeHTTPError()) is ErrorKind.HTTP_CLIENT_ERROR

    def test_http_error_with_request_only(self) -> None:
        error = Exception("connect failed")
        error.request = FakeRequest()  # type: ignore[attr-defined]
        assert classify(error) is ErrorKind.HTTP_CLIENT_ERROR

    def test_request_without_url_is_not_http(self) -> None:
        error = Exception("x")
        error.request = SimpleNamespace(method="GET")  # type: ignore[attr-defined]
        assert classify(error) is ErrorKind.GENERIC

    def test_known_db_error(self) -> None:
        error = FakeDBAPIWrapper(FakeDriverError("duplicate key", pgcode="23505"))
        assert classify(error) is ErrorKind.DB_KNOWN_CONSTRAINT_ERROR

    def test_numeric_driver_code(self) -> None:
        error = FakeDBAPIWrapper(Exception(1062, "Duplicate entry"))
        assert classify(error) is ErrorKind.DB_KNOWN_CONSTRAINT_ERROR

    def test_unknown_db_error(self) -> None:
        error = FakeDBAPIWrapper(Exception("something odd"))
        assert classify(error) is ErrorKind.DB_UNKNOWN_ERROR

    def test_validation_error_by_class_name(self) -> None:
        class SQLAlchemyError(Exception):
            pass

        class InvalidRequestError(SQLAlchemyError):
            pass

        assert classify(InvalidRequestError("bad column")) is ErrorKind.DB_VALIDATION_ERROR

    def test_http_shape_takes_precedence_over_db_shape(self) -> None:
        error = FakeDBAPIWrapper(FakeDriverError("x", pgcode="23505"))
        error.response = FakeResponse()  # type: ignore[attr-defined]
        assert classify(error) is ErrorKind.HTTP_CLIENT_ERROR

    def test_raising_property_is_treated_as_absent(self) -> None:
        class Lazy(Exception):
            @property
            def response(self):
                raise RuntimeError("not set")

        assert classify(Lazy("boom")) is ErrorKind.GENERIC

    def test_non_exception_values(self) -> None:
        assert classify("just a string") is ErrorKind.GENERIC
        assert classify(None) is ErrorKind.GENERIC

    def test_kind_is_database(self) -> None:
        assert ErrorKind.DB_UNKNOWN_ERROR.is_database
        assert not ErrorKind.HTTP_CLIENT_ERROR.is_database


# ---------------------------------------------------------------------------
# ErrorClassifier.extract()
# ---------------------------------------------------------------------------


class TestExtractHttp:
    def setup_method(self) -> None:
        self.result = ErrorClassifier().extract(FakeHTTPError())

    def test_kind_code_and_flags(self) -> None:
        assert self.result.kind is ErrorKind.HTTP_CLIENT_ERROR
        assert self.result.code == "402"
        assert self.result.is_redacted is True

    def test_http_summary(self) -> None:
        assert self.result.detail["http"] == {
            "method": "POST",
            "url": "https://payments.example.com/v1/charges",
            "status_code": 402,
            "status_text": "Payment Required",
        }

    def test_request_headers_and_body_masked(self) -> None:
        request = self.result.detail["request"]
        assert request["headers"]["Authorization"] == REDACTED
        assert request["headers"]["Content-Type"] == "application/json"
        assert request["body"] == {"amount": 500, "password": REDACTED}

    def test_response_body_masked(self) -> None:
        assert self.result.detail["response"]["body"] == {"error": "card_declined", "token": REDACTED}

    def test_large_body_truncated(self) -> None:
        error = FakeHTTPError()
        error.response.text = "x" * 100  # type: ignore[misc]
        result = ErrorClassifier(max_body_size=10).extract(error)
        assert result.detail["response"]["body"].endswith("[TRUNCATED - total: 100 bytes]")

    def test_log_fields(self) -> None:
        fields = self.result.to_log_fields()
        assert fields["error_type"] == "HTTP_CLIENT_ERROR"
        assert fields["error_code"] == "402"
        assert "http" in fields


class TestExtractHttpx:
    def test_real_httpx_status_error(self) -> None:
        httpx = pytest.importorskip("httpx")
        request = httpx.Request("GET", "https://api.example.com/items/1")
        response = httpx.Response(404, request=request, text="not here")
        error = httpx.HTTPStatusError("404 Not Found", request=request, response=response)

        result = ErrorClassifier().extract(error)

        assert result.kind is ErrorKind.HTTP_CLIENT_ERROR
        assert result.code == "404"
        assert result.detail["http"]["method"] == "GET"
        assert result.detail["http"]["url"] == "https://api.example.com/items/1"
        assert result.detail["response"]["body"] == "not here"


class TestExtractDatabase:
    def test_known_constraint_detail(self) -> None:
        driver = FakeDriverError(
            'duplicate key value violates unique constraint "users_email_key"\n'
            "DETAIL:  Key (email)=(ana@example.com) already exists.",
            pgcode="23505",
        )
        result = ErrorClassifier().extract(FakeDBAPIWrapper(driver))

        assert result.kind is ErrorKind.DB_KNOWN_CONSTRAINT_ERROR
        assert result.code == "23505"
        assert result.is_redacted is True
        assert result.detail["db"] == {
            "code": "23505",
            "model": "users",
            "field": "email",
            "constraint": "users_email_key",
        }
        assert "ana@example.com" not in result.message
        assert "(email)=([VALUE])" in result.message

    def test_unknown_db_error_is_sanitized(self) -> None:
        result = ErrorClassifier().extract(FakeDBAPIWrapper(Exception("bad value `secret-thing`")))
        assert result.kind is ErrorKind.DB_UNKNOWN_ERROR
        assert result.message == "bad value `[VALUE]`"
        assert result.is_redacted is True

    def test_sqlalchemy_integrity_error(self) -> None:
        exc = pytest.importorskip("sqlalchemy.exc")
        driver = FakeDriverError("Key (email)=(ana@example.com) already exists.", pgcode="23505")
        error = exc.IntegrityError("INSERT INTO users", {"email": "ana@example.com"}, driver)

        result = ErrorClassifier().extract(error)

        assert result.kind is ErrorKind.DB_KNOWN_CONSTRAINT_ERROR
        assert "ana@example.com" not in result.message
        assert "[parameters: [REDACTED]]" in result.message

    def test_sqlalchemy_validation_error(self) -> None:
        exc = pytest.importorskip("sqlalchemy.exc")
        result = ErrorClassifier().extract(exc.InvalidRequestError("Entity has no property 'nme'"))
        assert result.kind is ErrorKind.DB_VALIDATION_ERROR


class TestExtractGeneric:
    def test_exception(self) -> None:
        try:
            raise ValueError("boom")
        except ValueError as err:
            result = ErrorClassifier().extract(err)
        assert result.kind is ErrorKind.GENERIC
        assert result.message == "boom"
        assert result.detail["error_name"] == "ValueError"
        assert "Traceback" in result.detail["stack_trace"]
        assert result.is_redacted is False

    def test_string_code_kept(self) -> None:
        error = RuntimeError("quota")
        error.code = "QUOTA_EXCEEDED"  # type: ignore[attr-defined]
        assert ErrorClassifier().extract(error).code == "QUOTA_EXCEEDED"

    def test_non_exception_value(self) -> None:
        result = ErrorClassifier().extract({"weird": True})
        assert isinstance(result, ClassifiedError)
        assert result.kind is ErrorKind.GENERIC
        assert result.detail == {}


# ---------------------------------------------------------------------------
# sanitize_db_message()
# ---------------------------------------------------------------------------


class TestSanitizeDbMessage:
    def test_backticks(self) -> None:
        assert sanitize_db_message("Unknown column `ssn_value`") == "Unknown column `[VALUE]`"

    def test_long_quoted_value(self) -> None:
        long_value = "a" * 60
        assert sanitize_db_message(f'value "{long_value}" too long') == 'value "[LONG_VALUE]" too long'

    def test_short_quoted_value_kept(self) -> None:
        assert sanitize_db_message('constraint "users_pkey"') == 'constraint "users_pkey"'

    def test_parameters_block(self) -> None:
        message = "failed\n[SQL: SELECT 1]\n[parameters: {'email': 'a@b.c'}]\n(Background on this error)"
        sanitized = sanitize_db_message(message)
        assert "a@b.c" not in sanitized
        assert "[parameters: [REDACTED]]" in sanitized
        assert sanitized.endswith("(Background on this error)")
