"""Tests for the error taxonomy and its JSON handlers."""

import json
from unittest.mock import MagicMock, patch

import pytest
from litestar.exceptions import NotAuthorizedException, ValidationException

from galleria.lib import observability
from galleria.lib.exceptions import (
    EmailExists,
    FileTooLarge,
    GalleriaError,
    InternalError,
    InvalidCredentials,
    NotFound,
    UploadFailed,
    galleria_error_handler,
    http_exception_handler,
    internal_server_error_handler,
)


@pytest.fixture
def fake_request():
    request = MagicMock()
    request.method = "GET"
    request.url.path = "/test"
    return request


def _body(response):
    content = response.content
    if isinstance(content, (bytes, str)):
        return json.loads(content)
    return content


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        "exc_class,status,code",
        [
            (NotFound, 404, "not_found"),
            (EmailExists, 409, "email_exists"),
            (InvalidCredentials, 401, "invalid_credentials"),
            (FileTooLarge, 413, "file_too_large"),
            (UploadFailed, 502, "upload_failed"),
            (InternalError, 500, "internal_error"),
        ],
    )
    def test_status_and_code(self, exc_class, status, code):
        exc = exc_class()
        assert isinstance(exc, GalleriaError)
        assert exc.status_code == status
        assert exc.code == code
        assert exc.detail == exc_class.default_detail

    def test_custom_detail(self):
        assert NotFound("Image not found").detail == "Image not found"


class TestGalleriaErrorHandler:
    def test_renders_body(self, fake_request):
        response = galleria_error_handler(fake_request, NotFound("Image not found"))
        assert response.status_code == 404
        assert _body(response) == {
            "status_code": 404,
            "code": "not_found",
            "detail": "Image not found",
        }

    def test_server_errors_are_reported(self, fake_request):
        with patch.object(observability, "error") as mock_error:
            response = galleria_error_handler(fake_request, UploadFailed())
        assert response.status_code == 502
        mock_error.assert_called_once()

    def test_client_errors_are_not_reported(self, fake_request):
        with patch.object(observability, "error") as mock_error:
            galleria_error_handler(fake_request, NotFound())
        mock_error.assert_not_called()


class TestHttpExceptionHandler:
    def test_validation_errors_carry_extra(self, fake_request):
        exc = ValidationException(detail="Validation failed", extra=[{"key": "email"}])
        response = http_exception_handler(fake_request, exc)
        body = _body(response)
        assert response.status_code == 400
        assert body["code"] == "http_error"
        assert body["extra"] == [{"key": "email"}]

    def test_plain_http_exception(self, fake_request):
        response = http_exception_handler(fake_request, NotAuthorizedException())
        assert response.status_code == 401
        assert "extra" not in _body(response)


class TestInternalServerErrorHandler:
    def test_calls_observability_when_available(self, fake_request):
        with patch.object(observability, "exception", return_value=True) as mock_exc:
            response = internal_server_error_handler(fake_request, RuntimeError("boom"))

        mock_exc.assert_called_once_with(
            "Unhandled exception on {method} {path}",
            method="GET",
            path="/test",
        )
        assert response.status_code == 500

    def test_falls_back_to_stdlib_when_unavailable(self, fake_request):
        with patch.object(observability, "exception", return_value=False), \
             patch("galleria.lib.exceptions.logger") as mock_logger:
            response = internal_server_error_handler(fake_request, RuntimeError("boom"))

        mock_logger.exception.assert_called_once()
        assert response.status_code == 500

    def test_hides_exception_details(self, fake_request):
        with patch.object(observability, "exception", return_value=True):
            response = internal_server_error_handler(fake_request, RuntimeError("db password"))
        assert _body(response)["detail"] == "Internal Server Error"


class TestObservabilityException:
    def test_returns_false_when_unavailable(self):
        with patch.object(observability, "_logfire", None), \
             patch.object(observability, "_configured", False):
            assert observability.exception("test error") is False

    def test_returns_true_when_available(self):
        with patch.object(observability, "_logfire", MagicMock()) as mock_lf, \
             patch.object(observability, "_configured", True):
            assert observability.exception("test error") is True
            mock_lf.exception.assert_called_once_with("test error")

    def test_warning_forwards_when_available(self):
        with patch.object(observability, "_logfire", MagicMock()) as mock_lf, \
             patch.object(observability, "_configured", True):
            observability.warning("Remote delete failed {reference}", reference="a/b.png")
            mock_lf.warn.assert_called_once_with(
                "Remote delete failed {reference}", reference="a/b.png"
            )
