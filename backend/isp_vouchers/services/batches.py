from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from isp_vouchers.db import unit_of_work
from isp_vouchers.errors import ConflictError, NotFoundError, ValidationError
from isp_vouchers.models import BillingProfile, Voucher, VoucherBatch, VoucherBatchStatus, VoucherStatus
from isp_vouchers.services.codes import MAX_CODE_LENGTH, MIN_CODE_LENGTH, generate_unique_codes
from isp_vouchers.services.lifecycle import as_utc
from isp_vouchers.services.storage import storage_guard
from isp_vouchers.settings import settings

logger = structlog.get_logger(__name__)

MAX_TOTAL_COUNT = 10000
MAX_VALID_DAYS = 3650
MAX_PREFIX_LENGTH = 10
MAX_NAME_LENGTH = 100
MAX_REMARK_LENGTH = 500


def issue_batch(
    db: Session,
    *,
    name: str,
    profile_id: uuid.UUID,
    total_count: int,
    expire_time: datetime | None = None,
    valid_days: int = 0,
    prefix: str = "",
    code_length: int | None = None,
    status: VoucherBatchStatus | None = None,
    remark: str = "",
    node_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> VoucherBatch:
    """Create a batch and all of its vouchers as one atomic unit.

    Vouchers are staged in chunks of ``VOUCHER_INSERT_CHUNK_SIZE`` inside the
    same transaction; any failure leaves neither the batch nor its vouchers.
    """
    cleaned_name = _clean_name(name)
    _validate_total_count(total_count)
    _validate_valid_days(valid_days)
    _validate_remark(remark)
    cleaned_prefix = _clean_prefix(prefix)
    length = _resolve_code_length(code_length)
    now = now or datetime.now(timezone.utc)
    deadline = as_utc(expire_time) or now + timedelta(days=settings.DEFAULT_BATCH_EXPIRE_DAYS)

    with storage_guard():
        _ensure_profile(db, profile_id)
        _ensure_name_available(db, cleaned_name)

        with unit_of_work(db):
            batch = VoucherBatch(
                node_id=node_id,
                profile_id=profile_id,
                name=cleaned_name,
                total_count=total_count,
                used_count=0,
                expire_time=deadline,
                valid_days=valid_days,
                prefix=cleaned_prefix,
                code_length=length,
                status=status or VoucherBatchStatus.ENABLED,
                remark=remark or "",
            )
            db.add(batch)
            db.flush()

            codes = generate_unique_codes(
                total_count,
                length=length,
                prefix=cleaned_prefix,
                reserved=lambda candidates: _stored_codes(db, candidates),
            )
            chunk_size = max(settings.VOUCHER_INSERT_CHUNK_SIZE, 1)
            for start in range(0, len(codes), chunk_size):
                db.add_all(
                    [
                        Voucher(
                            batch_id=batch.id,
                            code=code,
                            profile_id=batch.profile_id,
                            status=VoucherStatus.AVAILABLE,
                            expire_time=deadline,
                        )
                        for code in codes[start : start + chunk_size]
                    ]
                )
                db.flush()
            batch_id = batch.id

    logger.info("voucher_batch_issued", batch_id=str(batch_id), name=cleaned_name, total_count=total_count)
    return batch


def update_batch(
    db: Session,
    batch_id: uuid.UUID,
    *,
    name: str | None = None,
    node_id: uuid.UUID | None = None,
    profile_id: uuid.UUID | None = None,
    expire_time: datetime | None = None,
    valid_days: int | None = None,
    status: VoucherBatchStatus | None = None,
    remark: str | None = None,
) -> VoucherBatch:
    """Apply administrative changes; ``None`` leaves a field untouched.

    A new ``expire_time`` carries over to still-available vouchers that were
    following the old batch deadline.
    """
    cleaned_name = _clean_name(name) if name is not None else None
    if valid_days is not None:
        _validate_valid_days(valid_days)
    if remark is not None:
        _validate_remark(remark)

    with storage_guard(), unit_of_work(db):
        batch = _load_batch(db, batch_id, lock=True)
        if cleaned_name is not None and cleaned_name != batch.name:
            _ensure_name_available(db, cleaned_name, exclude_id=batch.id)
            batch.name = cleaned_name
        if node_id is not None:
            batch.node_id = node_id
        if profile_id is not None and profile_id != batch.profile_id:
            _ensure_profile(db, profile_id)
            batch.profile_id = profile_id
        if valid_days is not None:
            batch.valid_days = valid_days
        if status is not None:
            batch.status = status
        if remark is not None:
            batch.remark = remark
        if expire_time is not None:
            new_deadline = as_utc(expire_time)
            old_deadline = batch.expire_time
            if as_utc(old_deadline) != new_deadline:
                db.execute(
                    update(Voucher)
                    .where(
                        Voucher.batch_id == batch.id,
                        Voucher.status == VoucherStatus.AVAILABLE,
                        Voucher.deleted_at.is_(None),
                        Voucher.expire_time == old_deadline,
                    )
                    .values(expire_time=new_deadline)
                    .execution_options(synchronize_session=False)
                )
                batch.expire_time = new_deadline
        db.flush()

    db.refresh(batch)
    return batch


def delete_batch(db: Session, batch_id: uuid.UUID, *, now: datetime | None = None) -> None:
    """Soft-delete a batch with its vouchers; refused while any voucher is used."""
    now = now or datetime.now(timezone.utc)
    with storage_guard(), unit_of_work(db):
        batch = _load_batch(db, batch_id, lock=True)
        used_count = db.execute(
            select(func.count())
            .select_from(Voucher)
            .where(Voucher.batch_id == batch.id, Voucher.status == VoucherStatus.USED)
        ).scalar_one()
        if used_count:
            raise ConflictError(
                "IN_USE",
                "Cannot delete batch with used vouchers.",
                details={"used_count": used_count},
            )
        db.execute(
            update(Voucher)
            .where(Voucher.batch_id == batch.id, Voucher.deleted_at.is_(None))
            .values(deleted_at=now)
            .execution_options(synchronize_session=False)
        )
        batch.deleted_at = now

    logger.info("voucher_batch_deleted", batch_id=str(batch_id))


def get_batch(db: Session, batch_id: uuid.UUID) -> VoucherBatch:
    with storage_guard():
        return _load_batch(db, batch_id)


def list_batches(
    db: Session,
    *,
    name: str | None = None,
    status: VoucherBatchStatus | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[VoucherBatch], int]:
    conditions = [VoucherBatch.deleted_at.is_(None)]
    if name and name.strip():
        conditions.append(VoucherBatch.name.icontains(name.strip(), autoescape=True))
    if status is not None:
        conditions.append(VoucherBatch.status == status)

    with storage_guard():
        total = db.execute(select(func.count()).select_from(VoucherBatch).where(*conditions)).scalar_one()
        batches = (
            db.execute(
                select(VoucherBatch)
                .where(*conditions)
                .order_by(VoucherBatch.created_at.desc(), VoucherBatch.name)
                .limit(per_page)
                .offset((max(page, 1) - 1) * per_page)
            )
            .scalars()
            .all()
        )
    return list(batches), total


def _load_batch(db: Session, batch_id: uuid.UUID, *, lock: bool = False) -> VoucherBatch:
    stmt = select(VoucherBatch).where(VoucherBatch.id == batch_id, VoucherBatch.deleted_at.is_(None))
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    batch = db.execute(stmt).scalar_one_or_none()
    if not batch:
        raise NotFoundError("BATCH_NOT_FOUND", "Voucher batch not found.")
    return batch


def _ensure_profile(db: Session, profile_id: uuid.UUID) -> None:
    found = db.execute(select(BillingProfile.id).where(BillingProfile.id == profile_id)).scalar_one_or_none()
    if not found:
        raise NotFoundError("PROFILE_NOT_FOUND", "Associated billing profile not found.")


def _ensure_name_available(db: Session, name: str, *, exclude_id: uuid.UUID | None = None) -> None:
    stmt = select(VoucherBatch.id).where(VoucherBatch.name == name, VoucherBatch.deleted_at.is_(None))
    if exclude_id is not None:
        stmt = stmt.where(VoucherBatch.id != exclude_id)
    if db.execute(stmt).first():
        raise ConflictError("NAME_EXISTS", "Batch name already exists.")


def _stored_codes(db: Session, candidates: list[str]) -> set[str]:
    # Includes soft-deleted vouchers: codes stay unique across the whole store.
    taken: set[str] = set()
    chunk_size = max(settings.VOUCHER_INSERT_CHUNK_SIZE, 1)
    for start in range(0, len(candidates), chunk_size):
        chunk = candidates[start : start + chunk_size]
        taken.update(db.execute(select(Voucher.code).where(Voucher.code.in_(chunk))).scalars())
    return taken


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned or len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationError("INVALID_NAME", f"Batch name must be 1 to {MAX_NAME_LENGTH} characters.")
    return cleaned


def _clean_prefix(prefix: str | None) -> str:
    cleaned = (prefix or "").strip().upper()
    if len(cleaned) > MAX_PREFIX_LENGTH or (cleaned and not cleaned.isalnum()) or not cleaned.isascii():
        raise ValidationError(
            "INVALID_PREFIX",
            f"Prefix must be at most {MAX_PREFIX_LENGTH} letters or digits.",
        )
    return cleaned


def _resolve_code_length(code_length: int | None) -> int:
    if code_length is None or code_length < MIN_CODE_LENGTH:
        return settings.DEFAULT_CODE_LENGTH
    if code_length > MAX_CODE_LENGTH:
        raise ValidationError(
            "INVALID_CODE_LENGTH",
            f"Code length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}.",
        )
    return code_length


def _validate_total_count(total_count: int) -> None:
    if total_count < 1 or total_count > MAX_TOTAL_COUNT:
        raise ValidationError("INVALID_TOTAL_COUNT", f"Total count must be between 1 and {MAX_TOTAL_COUNT}.")


def _validate_valid_days(valid_days: int) -> None:
    if valid_days < 0 or valid_days > MAX_VALID_DAYS:
        raise ValidationError("INVALID_VALID_DAYS", f"Valid days must be between 0 and {MAX_VALID_DAYS}.")


def _validate_remark(remark: str | None) -> None:
    if remark and len(remark) > MAX_REMARK_LENGTH:
        raise ValidationError("INVALID_REMARK", f"Remark must be at most {MAX_REMARK_LENGTH} characters.")
