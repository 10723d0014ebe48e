from __future__ import annotations

from typing import Any


class VoucherServiceError(RuntimeError):
    """Base for every failure the voucher engine reports to callers.

    ``code`` is the stable machine-readable identifier, ``message`` the
    human-readable text, and ``status_code`` the HTTP status the API maps it to.
    """

    status_code = 500

    def __init__(self, code: str, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return error


class ValidationError(VoucherServiceError):
    status_code = 400


class NotFoundError(VoucherServiceError):
    status_code = 404


class ConflictError(VoucherServiceError):
    status_code = 409


class StateError(VoucherServiceError):
    status_code = 400


class AuthError(VoucherServiceError):
    status_code = 401


class GenerationError(VoucherServiceError):
    status_code = 500


class StorageError(VoucherServiceError):
    status_code = 500
