"""Voucher schema

Revision ID: 0001_voucher_schema
Revises: 
Create Date: 2026-10-18 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "0001_voucher_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Each enum type belongs to a single table and is created along with it.
    operator_level = sa.Enum("super", "admin", "operator", name="operator_level")
    account_status = sa.Enum("enabled", "disabled", name="account_status")
    voucher_batch_status = sa.Enum("enabled", "disabled", name="voucher_batch_status")
    voucher_status = sa.Enum("available", "used", "expired", "disabled", name="voucher_status")

    op.create_table(
        "operators",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("level", operator_level, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_operators_username", "operators", ["username"], unique=True)

    op.create_table(
        "billing_profiles",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("node_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("addr_pool", sa.String(length=64), server_default="", nullable=False),
        sa.Column("active_num", sa.Integer(), server_default="1", nullable=False),
        sa.Column("up_rate", sa.Integer(), server_default="0", nullable=False),
        sa.Column("down_rate", sa.Integer(), server_default="0", nullable=False),
        sa.Column("domain", sa.String(length=128), server_default="", nullable=False),
        sa.Column("bind_mac", sa.Integer(), server_default="0", nullable=False),
        sa.Column("bind_vlan", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "radius_users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("profile_id", sa.Uuid(), sa.ForeignKey("billing_profiles.id"), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("password", sa.String(length=128), nullable=False),
        sa.Column("realname", sa.String(length=128), server_default="", nullable=False),
        sa.Column("mobile", sa.String(length=32), server_default="", nullable=False),
        sa.Column("email", sa.String(length=255), server_default="", nullable=False),
        sa.Column("addr_pool", sa.String(length=64), server_default="", nullable=False),
        sa.Column("active_num", sa.Integer(), server_default="1", nullable=False),
        sa.Column("up_rate", sa.Integer(), server_default="0", nullable=False),
        sa.Column("down_rate", sa.Integer(), server_default="0", nullable=False),
        sa.Column("domain", sa.String(length=128), server_default="", nullable=False),
        sa.Column("bind_mac", sa.Integer(), server_default="0", nullable=False),
        sa.Column("bind_vlan", sa.Integer(), server_default="0", nullable=False),
        sa.Column("status", account_status, nullable=False),
        sa.Column("expire_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_radius_users_username_active",
        "radius_users",
        ["username"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index("ix_radius_users_deleted_at", "radius_users", ["deleted_at"], unique=False)

    op.create_table(
        "voucher_batches",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("node_id", sa.Uuid(), nullable=True),
        sa.Column("profile_id", sa.Uuid(), sa.ForeignKey("billing_profiles.id"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("total_count", sa.Integer(), nullable=False),
        sa.Column("used_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("expire_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_days", sa.Integer(), server_default="0", nullable=False),
        sa.Column("prefix", sa.String(length=10), server_default="", nullable=False),
        sa.Column("code_length", sa.Integer(), nullable=False),
        sa.Column("status", voucher_batch_status, nullable=False),
        sa.Column("remark", sa.String(length=500), server_default="", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_voucher_batches_name_active",
        "voucher_batches",
        ["name"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index("ix_voucher_batches_status", "voucher_batches", ["status"], unique=False)
    op.create_index("ix_voucher_batches_expire_time", "voucher_batches", ["expire_time"], unique=False)
    op.create_index("ix_voucher_batches_deleted_at", "voucher_batches", ["deleted_at"], unique=False)

    op.create_table(
        "vouchers",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "batch_id",
            sa.Uuid(),
            sa.ForeignKey("voucher_batches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("password", sa.String(length=128), server_default="", nullable=False),
        sa.Column("profile_id", sa.Uuid(), sa.ForeignKey("billing_profiles.id"), nullable=False),
        sa.Column("status", voucher_status, nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("radius_users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expire_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("remark", sa.String(length=500), server_default="", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("code", name="uq_vouchers_code"),
    )
    op.create_index("ix_vouchers_batch_status", "vouchers", ["batch_id", "status"], unique=False)
    op.create_index("ix_vouchers_profile", "vouchers", ["profile_id"], unique=False)
    op.create_index("ix_vouchers_deleted_at", "vouchers", ["deleted_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_vouchers_deleted_at", table_name="vouchers")
    op.drop_index("ix_vouchers_profile", table_name="vouchers")
    op.drop_index("ix_vouchers_batch_status", table_name="vouchers")
    op.drop_table("vouchers")

    op.drop_index("ix_voucher_batches_deleted_at", table_name="voucher_batches")
    op.drop_index("ix_voucher_batches_expire_time", table_name="voucher_batches")
    op.drop_index("ix_voucher_batches_status", table_name="voucher_batches")
    op.drop_index("uq_voucher_batches_name_active", table_name="voucher_batches")
    op.drop_table("voucher_batches")

    op.drop_index("ix_radius_users_deleted_at", table_name="radius_users")
    op.drop_index("uq_radius_users_username_active", table_name="radius_users")
    op.drop_table("radius_users")
    op.drop_table("billing_profiles")

    op.drop_index("ix_operators_username", table_name="operators")
    op.drop_table("operators")

    bind = op.get_bind()
    sa.Enum(name="voucher_status").drop(bind, checkfirst=True)
    sa.Enum(name="voucher_batch_status").drop(bind, checkfirst=True)
    sa.Enum(name="account_status").drop(bind, checkfirst=True)
    sa.Enum(name="operator_level").drop(bind, checkfirst=True)
