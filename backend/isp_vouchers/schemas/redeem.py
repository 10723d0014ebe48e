from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from isp_vouchers.models import AccountStatus
from isp_vouchers.services.lifecycle import as_utc


class VoucherRedeemRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    password: str | None = None
    username: str = Field(min_length=3, max_length=50)
    account_password: str = Field(min_length=6, max_length=128)
    realname: str = Field(default="", max_length=128)
    mobile: str = Field(default="", max_length=32)
    email: str = Field(default="", max_length=255)

    @field_validator("code", "username", mode="before")
    @classmethod
    def strip_identifier(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    profile_id: uuid.UUID
    username: str
    realname: str
    mobile: str
    email: str
    addr_pool: str
    active_num: int
    up_rate: int
    down_rate: int
    domain: str
    bind_mac: int
    bind_vlan: int
    status: AccountStatus
    expire_time: datetime

    @field_validator("expire_time")
    @classmethod
    def in_utc(cls, value: datetime) -> datetime:
        return as_utc(value)
