"""Voucher lifecycle: legal states, transitions and deadline evaluation.

``available`` is the only state with outgoing transitions besides the
administrative ``expired -> disabled``; ``used`` is terminal.
"""

from __future__ import annotations

from datetime import datetime, timezone

from isp_vouchers.errors import StateError
from isp_vouchers.models import Voucher, VoucherBatch, VoucherStatus

TRANSITIONS: dict[VoucherStatus, frozenset[VoucherStatus]] = {
    VoucherStatus.AVAILABLE: frozenset({VoucherStatus.USED, VoucherStatus.EXPIRED, VoucherStatus.DISABLED}),
    VoucherStatus.EXPIRED: frozenset({VoucherStatus.DISABLED}),
    VoucherStatus.DISABLED: frozenset(),
    VoucherStatus.USED: frozenset(),
}


def can_transition(current: VoucherStatus, target: VoucherStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: VoucherStatus, target: VoucherStatus) -> None:
    if can_transition(current, target):
        return
    if current == VoucherStatus.USED:
        raise StateError(
            "VOUCHER_USED",
            "Voucher has already been used.",
            details={"status": current.value, "target": target.value},
        )
    raise StateError(
        "ILLEGAL_TRANSITION",
        f"Voucher cannot move from {current.value} to {target.value}.",
        details={"status": current.value, "target": target.value},
    )


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def effective_deadline(voucher: Voucher, batch: VoucherBatch) -> datetime | None:
    """The voucher's own deadline, falling back to the batch deadline."""
    return as_utc(voucher.expire_time) or as_utc(batch.expire_time)


def is_past_deadline(voucher: Voucher, batch: VoucherBatch, now: datetime) -> bool:
    deadline = effective_deadline(voucher, batch)
    return deadline is not None and deadline <= now
