from __future__ import annotations

from enum import Enum


class VoucherStatus(str, Enum):
    AVAILABLE = "available"
    USED = "used"
    EXPIRED = "expired"
    DISABLED = "disabled"


class VoucherBatchStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class AccountStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class OperatorLevel(str, Enum):
    SUPER = "super"
    ADMIN = "admin"
    OPERATOR = "operator"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]
