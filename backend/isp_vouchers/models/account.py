from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from isp_vouchers.models.base import Base, SoftDeleteMixin, TimestampMixin
from isp_vouchers.models.enums import AccountStatus, enum_values


class RadiusUser(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "radius_users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("billing_profiles.id"),
        nullable=False,
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    # Stored as given: the access server needs the cleartext secret for CHAP.
    password: Mapped[str] = mapped_column(String(128), nullable=False)
    realname: Mapped[str] = mapped_column(String(128), nullable=False, default="", server_default="")
    mobile: Mapped[str] = mapped_column(String(32), nullable=False, default="", server_default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    addr_pool: Mapped[str] = mapped_column(String(64), nullable=False, default="", server_default="")
    active_num: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    up_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    down_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    domain: Mapped[str] = mapped_column(String(128), nullable=False, default="", server_default="")
    bind_mac: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    bind_vlan: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus, name="account_status", values_callable=enum_values),
        nullable=False,
        default=AccountStatus.ENABLED,
    )
    expire_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    vouchers = relationship("Voucher", back_populates="user")

    __table_args__ = (
        Index(
            "uq_radius_users_username_active",
            "username",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
