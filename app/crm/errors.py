"""
Error taxonomy for the CRM API.

Every failure the API reports on purpose is a `CrmError`; the app-level
handlers in `register_error_handlers` turn it into a JSON body and
the matching status code. Anything else is an unexpected 500.
"""

from __future__ import annotations

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException


class CrmError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(CrmError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, fields: dict[str, str] | None = None, message: str | None = None):
        super().__init__(message)
        self.fields = dict(fields or {})

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body


class DuplicateEmailError(CrmError):
    status_code = 409
    message = "Customer with this email already exists"


class NotFoundError(CrmError):
    status_code = 404
    message = "Customer not found"


class StorageError(CrmError):
    status_code = 500
    message = "Internal server error"


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(CrmError)
    def _crm_error(e: CrmError):  # type: ignore[no-redef]
        rid = getattr(g, "request_id", None)
        if isinstance(e, StorageError):
            # Do not leak driver/SQL detail to clients.
            app.logger.error("Storage failure (request_id=%s): %s", rid, e.__cause__ or e)
            return jsonify({"error": StorageError.message}), e.status_code
        app.logger.info("%s (request_id=%s): %s", type(e).__name__, rid, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):  # type: ignore[no-redef]
        return jsonify({"error": e.description or e.name}), e.code or 500

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal server error"}), 500
