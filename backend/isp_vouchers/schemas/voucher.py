from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from isp_vouchers.models import VoucherBatchStatus, VoucherStatus
from isp_vouchers.services.lifecycle import as_utc


def _normalize_status(value: Any) -> Any:
    # Transport payloads send the batch status as a flag or a string.
    if isinstance(value, bool):
        return VoucherBatchStatus.ENABLED if value else VoucherBatchStatus.DISABLED
    if isinstance(value, str):
        value = value.strip().lower()
        return value or None
    return value


def _empty_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class VoucherBatchCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    node_id: uuid.UUID | None = None
    profile_id: uuid.UUID
    total_count: int = Field(ge=1, le=10000)
    expire_time: datetime | None = None
    valid_days: int = Field(default=0, ge=0, le=3650)
    prefix: str = Field(default="", max_length=10, pattern=r"^[A-Za-z0-9]*$")
    # Lengths below 6, including negative ones, fall back to the default length.
    code_length: int | None = Field(default=None, le=32)
    status: VoucherBatchStatus | None = None
    remark: str = Field(default="", max_length=500)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _normalize_status(value)

    @field_validator("node_id", "expire_time", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        return _empty_to_none(value)


class VoucherBatchUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    node_id: uuid.UUID | None = None
    profile_id: uuid.UUID | None = None
    expire_time: datetime | None = None
    valid_days: int | None = Field(default=None, ge=0, le=3650)
    status: VoucherBatchStatus | None = None
    remark: str | None = Field(default=None, max_length=500)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _normalize_status(value)

    @field_validator("node_id", "profile_id", "expire_time", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        return _empty_to_none(value)


class VoucherBatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    node_id: uuid.UUID | None
    profile_id: uuid.UUID
    name: str
    total_count: int
    used_count: int
    expire_time: datetime
    valid_days: int
    prefix: str
    code_length: int
    status: VoucherBatchStatus
    remark: str
    created_at: datetime
    updated_at: datetime

    @field_validator("expire_time", "created_at", "updated_at")
    @classmethod
    def in_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class VoucherResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    batch_id: uuid.UUID
    code: str
    profile_id: uuid.UUID
    status: VoucherStatus
    user_id: uuid.UUID | None
    redeemed_at: datetime | None
    expire_time: datetime | None
    remark: str
    created_at: datetime
    updated_at: datetime

    @field_validator("redeemed_at", "expire_time", "created_at", "updated_at")
    @classmethod
    def in_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)
