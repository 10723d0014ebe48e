# Import models here for Alembic autogenerate convenience
from .base import Base  # noqa: F401
from .enums import AccountStatus, OperatorLevel, VoucherBatchStatus, VoucherStatus  # noqa: F401
from .operator import Operator  # noqa: F401
from .profile import BillingProfile  # noqa: F401
from .account import RadiusUser  # noqa: F401
from .voucher import VoucherBatch, Voucher  # noqa: F401
