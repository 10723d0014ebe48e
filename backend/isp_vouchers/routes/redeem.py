from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from isp_vouchers.db import get_db
from isp_vouchers.redis import get_redis_client
from isp_vouchers.schemas.redeem import AccountResponse, VoucherRedeemRequest
from isp_vouchers.schemas.voucher import VoucherResponse
from isp_vouchers.services.ratelimit import enforce_rate_limit, limit_key_code, limit_key_ip
from isp_vouchers.services.vouchers import AccountDetails, redeem_voucher
from isp_vouchers.settings import settings

router = APIRouter()


@router.post("/redeem")
def redeem(
    payload: VoucherRedeemRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> dict:
    redis_client = get_redis_client()
    client_ip = request.client.host if request.client else "unknown"
    enforce_rate_limit(
        redis_client,
        scope_key=limit_key_ip(client_ip, "redeem"),
        limit=settings.REDEEM_RATE_LIMIT_PER_IP,
        window_seconds=settings.REDEEM_RATE_LIMIT_WINDOW_SECONDS,
    )
    enforce_rate_limit(
        redis_client,
        scope_key=limit_key_code(payload.code, "redeem"),
        limit=settings.REDEEM_RATE_LIMIT_PER_CODE,
        window_seconds=settings.REDEEM_RATE_LIMIT_WINDOW_SECONDS,
    )

    redemption = redeem_voucher(
        db,
        code=payload.code,
        username=payload.username,
        account_password=payload.account_password,
        voucher_password=payload.password,
        details=AccountDetails(realname=payload.realname, mobile=payload.mobile, email=payload.email),
        mask_auth_errors=settings.REDEEM_MASK_AUTH_ERRORS,
    )
    return {
        "ok": True,
        "data": {
            "user": AccountResponse.model_validate(redemption.user).model_dump(mode="json"),
            "voucher": VoucherResponse.model_validate(redemption.voucher).model_dump(mode="json"),
        },
    }
