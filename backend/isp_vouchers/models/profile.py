from __future__ import annotations

import uuid

from sqlalchemy import Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from isp_vouchers.models.base import Base, TimestampMixin


class BillingProfile(Base, TimestampMixin):
    """Network and billing parameters copied onto accounts created from vouchers.

    Profiles are managed by the billing system; this service only reads them.
    """

    __tablename__ = "billing_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    node_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    addr_pool: Mapped[str] = mapped_column(String(64), nullable=False, default="", server_default="")
    active_num: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    up_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    down_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    domain: Mapped[str] = mapped_column(String(128), nullable=False, default="", server_default="")
    bind_mac: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    bind_vlan: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    voucher_batches = relationship("VoucherBatch", back_populates="profile")
