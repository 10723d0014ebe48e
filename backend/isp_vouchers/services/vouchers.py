from __future__ import annotations

import hmac
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from isp_vouchers.db import unit_of_work
from isp_vouchers.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
    VoucherServiceError,
)
from isp_vouchers.models import (
    AccountStatus,
    BillingProfile,
    RadiusUser,
    Voucher,
    VoucherBatch,
    VoucherBatchStatus,
    VoucherStatus,
)
from isp_vouchers.services.codes import normalize_code
from isp_vouchers.services.lifecycle import effective_deadline, ensure_transition, is_past_deadline
from isp_vouchers.services.storage import storage_guard

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AccountDetails:
    realname: str = ""
    mobile: str = ""
    email: str = ""


@dataclass(frozen=True)
class Redemption:
    user: RadiusUser
    voucher: Voucher


def redeem_voucher(
    db: Session,
    *,
    code: str,
    username: str,
    account_password: str,
    voucher_password: str | None = None,
    details: AccountDetails | None = None,
    mask_auth_errors: bool = False,
    now: datetime | None = None,
) -> Redemption:
    """Exchange a voucher code for a new network access account.

    Runs as one transaction. The voucher row is locked on lookup and the final
    ``available -> used`` write is conditional on the row still being
    available, so concurrent attempts on one code commit at most once.

    An available voucher found past its deadline is moved to ``expired``; that
    transition is committed before ``VOUCHER_EXPIRED`` is raised.

    With ``mask_auth_errors`` a wrong voucher password is reported as
    ``VOUCHER_NOT_FOUND`` so callers cannot probe which codes exist.
    """
    normalized_code = normalize_code(code)
    cleaned_username = username.strip()
    if not cleaned_username:
        raise ValidationError("INVALID_USERNAME", "Username must not be blank.")
    now = now or datetime.now(timezone.utc)
    details = details or AccountDetails()

    expired_deadline: datetime | None = None
    try:
        with storage_guard(), unit_of_work(db):
            voucher, batch = _lock_voucher(db, normalized_code)
            if voucher.status != VoucherStatus.AVAILABLE:
                raise StateError(
                    "VOUCHER_NOT_AVAILABLE",
                    "Voucher is not available for redemption.",
                    details={"status": voucher.status.value},
                )
            if is_past_deadline(voucher, batch, now):
                expired_deadline = effective_deadline(voucher, batch)
                _mark_expired(db, voucher)
            else:
                user = _provision_account(
                    db,
                    voucher,
                    batch,
                    voucher_password=voucher_password,
                    username=cleaned_username,
                    account_password=account_password,
                    details=details,
                    now=now,
                )
    except VoucherServiceError as exc:
        logger.info("voucher_redeem_rejected", code=normalized_code, username=cleaned_username, reason=exc.code)
        if mask_auth_errors and isinstance(exc, AuthError):
            raise NotFoundError("VOUCHER_NOT_FOUND", "Invalid voucher code.") from exc
        raise

    if expired_deadline is not None:
        logger.info("voucher_redeem_rejected", code=normalized_code, username=cleaned_username, reason="VOUCHER_EXPIRED")
        raise StateError(
            "VOUCHER_EXPIRED",
            "Voucher has expired.",
            details={"expire_time": expired_deadline.isoformat()},
        )

    logger.info(
        "voucher_redeemed",
        voucher_id=str(voucher.id),
        batch_id=str(voucher.batch_id),
        user_id=str(user.id),
    )
    return Redemption(user=user, voucher=voucher)


def account_expiration(voucher: Voucher, batch: VoucherBatch, now: datetime) -> datetime | None:
    if batch.valid_days > 0:
        return now + timedelta(days=batch.valid_days)
    return effective_deadline(voucher, batch)


def claim_voucher(db: Session, voucher_id: uuid.UUID, user_id: uuid.UUID, now: datetime) -> bool:
    """Move a voucher to ``used`` only if it is still available; True when it did."""
    result = db.execute(
        update(Voucher)
        .where(
            Voucher.id == voucher_id,
            Voucher.status == VoucherStatus.AVAILABLE,
            Voucher.deleted_at.is_(None),
        )
        .values(status=VoucherStatus.USED, user_id=user_id, redeemed_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def disable_voucher(db: Session, voucher_id: uuid.UUID) -> Voucher:
    """Administratively disable an available or expired voucher.

    Disabling a used voucher raises ``VOUCHER_USED``; an already disabled
    voucher is returned unchanged.
    """
    with storage_guard(), unit_of_work(db):
        voucher = db.execute(
            select(Voucher)
            .where(Voucher.id == voucher_id, Voucher.deleted_at.is_(None))
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not voucher:
            raise NotFoundError("VOUCHER_NOT_FOUND", "Voucher not found.")
        if voucher.status != VoucherStatus.DISABLED:
            ensure_transition(voucher.status, VoucherStatus.DISABLED)
            result = db.execute(
                update(Voucher)
                .where(
                    Voucher.id == voucher.id,
                    Voucher.status.in_([VoucherStatus.AVAILABLE, VoucherStatus.EXPIRED]),
                )
                .values(status=VoucherStatus.DISABLED)
                .execution_options(synchronize_session=False)
            )
            db.refresh(voucher)
            if result.rowcount == 0 and voucher.status != VoucherStatus.DISABLED:
                ensure_transition(voucher.status, VoucherStatus.DISABLED)

    logger.info("voucher_disabled", voucher_id=str(voucher_id))
    return voucher


def expire_vouchers(db: Session, *, now: datetime | None = None) -> int:
    """Sweep available vouchers past their deadline into ``expired``."""
    now = now or datetime.now(timezone.utc)
    expired_batches = select(VoucherBatch.id).where(VoucherBatch.expire_time <= now)
    with storage_guard(), unit_of_work(db):
        result = db.execute(
            update(Voucher)
            .where(
                Voucher.status == VoucherStatus.AVAILABLE,
                Voucher.deleted_at.is_(None),
                or_(
                    and_(Voucher.expire_time.is_not(None), Voucher.expire_time <= now),
                    and_(Voucher.expire_time.is_(None), Voucher.batch_id.in_(expired_batches)),
                ),
            )
            .values(status=VoucherStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        count = result.rowcount
    if count:
        logger.info("vouchers_expired", count=count)
    return count


def get_voucher(db: Session, voucher_id: uuid.UUID) -> Voucher:
    with storage_guard():
        voucher = db.execute(
            select(Voucher).where(Voucher.id == voucher_id, Voucher.deleted_at.is_(None))
        ).scalar_one_or_none()
    if not voucher:
        raise NotFoundError("VOUCHER_NOT_FOUND", "Voucher not found.")
    return voucher


def list_vouchers(
    db: Session,
    *,
    batch_id: uuid.UUID | None = None,
    status: VoucherStatus | None = None,
    code: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Voucher], int]:
    conditions = [Voucher.deleted_at.is_(None)]
    if batch_id is not None:
        conditions.append(Voucher.batch_id == batch_id)
    if status is not None:
        conditions.append(Voucher.status == status)
    if code and code.strip():
        conditions.append(Voucher.code.contains(normalize_code(code), autoescape=True))

    with storage_guard():
        total = db.execute(select(func.count()).select_from(Voucher).where(*conditions)).scalar_one()
        vouchers = (
            db.execute(
                select(Voucher)
                .where(*conditions)
                .order_by(Voucher.created_at.desc(), Voucher.code)
                .limit(per_page)
                .offset((max(page, 1) - 1) * per_page)
            )
            .scalars()
            .all()
        )
    return list(vouchers), total


def _lock_voucher(db: Session, code: str) -> tuple[Voucher, VoucherBatch]:
    stmt = (
        select(Voucher, VoucherBatch)
        .join(VoucherBatch, VoucherBatch.id == Voucher.batch_id)
        .where(
            Voucher.code == code,
            Voucher.deleted_at.is_(None),
            VoucherBatch.deleted_at.is_(None),
        )
        .with_for_update(of=Voucher)
        .execution_options(populate_existing=True)
    )
    result = db.execute(stmt).first()
    if not result:
        raise NotFoundError("VOUCHER_NOT_FOUND", "Invalid voucher code.")
    voucher, batch = result
    return voucher, batch


def _mark_expired(db: Session, voucher: Voucher) -> None:
    ensure_transition(voucher.status, VoucherStatus.EXPIRED)
    db.execute(
        update(Voucher)
        .where(Voucher.id == voucher.id, Voucher.status == VoucherStatus.AVAILABLE)
        .values(status=VoucherStatus.EXPIRED)
        .execution_options(synchronize_session=False)
    )
    db.refresh(voucher)


def _provision_account(
    db: Session,
    voucher: Voucher,
    batch: VoucherBatch,
    *,
    voucher_password: str | None,
    username: str,
    account_password: str,
    details: AccountDetails,
    now: datetime,
) -> RadiusUser:
    if voucher.password and not hmac.compare_digest(
        voucher.password.encode("utf-8"), (voucher_password or "").encode("utf-8")
    ):
        raise AuthError("INVALID_VOUCHER_PASSWORD", "Invalid voucher password.")

    if batch.status != VoucherBatchStatus.ENABLED:
        raise StateError("BATCH_DISABLED", "Voucher batch is disabled.")

    taken = db.execute(
        select(RadiusUser.id).where(RadiusUser.username == username, RadiusUser.deleted_at.is_(None))
    ).first()
    if taken:
        raise ConflictError("USERNAME_EXISTS", "Username already exists.")

    profile = db.get(BillingProfile, voucher.profile_id)
    if not profile:
        raise NotFoundError("PROFILE_NOT_FOUND", "Associated billing profile not found.")

    user = RadiusUser(
        profile_id=voucher.profile_id,
        username=username,
        password=account_password,
        realname=details.realname,
        mobile=details.mobile,
        email=details.email,
        addr_pool=profile.addr_pool,
        active_num=profile.active_num,
        up_rate=profile.up_rate,
        down_rate=profile.down_rate,
        domain=profile.domain,
        bind_mac=profile.bind_mac,
        bind_vlan=profile.bind_vlan,
        status=AccountStatus.ENABLED,
        expire_time=account_expiration(voucher, batch, now),
    )
    db.add(user)
    db.flush()

    if not claim_voucher(db, voucher.id, user.id, now):
        raise StateError("VOUCHER_NOT_AVAILABLE", "Voucher is not available for redemption.")

    db.execute(
        update(VoucherBatch)
        .where(VoucherBatch.id == batch.id)
        .values(used_count=VoucherBatch.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.refresh(voucher)
    db.refresh(batch)
    return user
