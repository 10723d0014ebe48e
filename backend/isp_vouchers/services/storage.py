from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from isp_vouchers.errors import ConflictError, StorageError, VoucherServiceError

logger = structlog.get_logger(__name__)

# Fragments of constraint names (PostgreSQL) or column references (SQLite)
# that identify which unique constraint a write violated.
_CONFLICTS: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("uq_voucher_batches_name_active", "voucher_batches.name"), "NAME_EXISTS", "Batch name already exists."),
    (("uq_radius_users_username_active", "radius_users.username"), "USERNAME_EXISTS", "Username already exists."),
    (("uq_vouchers_code", "vouchers.code"), "CODE_EXISTS", "Voucher code already exists."),
)


def translate_integrity_error(exc: IntegrityError) -> VoucherServiceError:
    message = str(exc.orig)
    for fragments, code, text in _CONFLICTS:
        if any(fragment in message for fragment in fragments):
            return ConflictError(code, text)
    return StorageError("STORAGE_ERROR", "Storage constraint violated.")


@contextmanager
def storage_guard() -> Iterator[None]:
    """Surface store failures as ``VoucherServiceError`` subclasses."""
    try:
        yield
    except IntegrityError as exc:
        raise translate_integrity_error(exc) from exc
    except SQLAlchemyError as exc:
        logger.error("storage_operation_failed", error=str(exc))
        raise StorageError("STORAGE_ERROR", "Storage operation failed.") from exc
