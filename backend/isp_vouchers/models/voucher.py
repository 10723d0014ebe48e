from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from isp_vouchers.models.base import Base, SoftDeleteMixin, TimestampMixin
from isp_vouchers.models.enums import VoucherBatchStatus, VoucherStatus, enum_values


class VoucherBatch(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "voucher_batches"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Network nodes live in an external store; only the reference is kept.
    node_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("billing_profiles.id"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    total_count: Mapped[int] = mapped_column(Integer, nullable=False)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    expire_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    prefix: Mapped[str] = mapped_column(String(10), nullable=False, default="", server_default="")
    code_length: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[VoucherBatchStatus] = mapped_column(
        Enum(VoucherBatchStatus, name="voucher_batch_status", values_callable=enum_values),
        nullable=False,
        default=VoucherBatchStatus.ENABLED,
    )
    remark: Mapped[str] = mapped_column(String(500), nullable=False, default="", server_default="")

    profile = relationship("BillingProfile", back_populates="voucher_batches")
    vouchers = relationship("Voucher", back_populates="batch")

    __table_args__ = (
        Index(
            "uq_voucher_batches_name_active",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("ix_voucher_batches_status", "status"),
        Index("ix_voucher_batches_expire_time", "expire_time"),
    )


class Voucher(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "vouchers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    batch_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("voucher_batches.id", ondelete="CASCADE"),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    password: Mapped[str] = mapped_column(String(128), nullable=False, default="", server_default="")
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("billing_profiles.id"),
        nullable=False,
    )
    status: Mapped[VoucherStatus] = mapped_column(
        Enum(VoucherStatus, name="voucher_status", values_callable=enum_values),
        nullable=False,
        default=VoucherStatus.AVAILABLE,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("radius_users.id", ondelete="SET NULL"),
        nullable=True,
    )
    redeemed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expire_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    remark: Mapped[str] = mapped_column(String(500), nullable=False, default="", server_default="")

    batch = relationship("VoucherBatch", back_populates="vouchers")
    user = relationship("RadiusUser", back_populates="vouchers")

    __table_args__ = (
        UniqueConstraint("code", name="uq_vouchers_code"),
        Index("ix_vouchers_batch_status", "batch_id", "status"),
        Index("ix_vouchers_profile", "profile_id"),
    )
