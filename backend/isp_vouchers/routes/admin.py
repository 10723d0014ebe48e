from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from isp_vouchers.db import get_db
from isp_vouchers.deps import OPERATOR_SESSION_COOKIE, get_current_operator, require_admin
from isp_vouchers.models import Operator, VoucherBatchStatus, VoucherStatus
from isp_vouchers.schemas.admin import OperatorLoginRequest
from isp_vouchers.schemas.voucher import (
    VoucherBatchCreateRequest,
    VoucherBatchResponse,
    VoucherBatchUpdateRequest,
    VoucherResponse,
)
from isp_vouchers.security import create_session_token, verify_password
from isp_vouchers.services import batches as batch_service
from isp_vouchers.services import vouchers as voucher_service
from isp_vouchers.settings import settings

router = APIRouter()


@router.post("/login")
def login(payload: OperatorLoginRequest, db: Session = Depends(get_db)) -> JSONResponse:
    stmt = select(Operator).where(Operator.username == payload.username)
    operator = db.execute(stmt).scalar_one_or_none()
    if not operator or not verify_password(payload.password, operator.password_hash):
        raise HTTPException(
            status_code=401,
            detail={"ok": False, "error": {"code": "INVALID_CREDENTIALS", "message": "Invalid login."}},
        )

    token = create_session_token(operator.id)
    response = JSONResponse({"ok": True, "data": {"operator": _operator_payload(operator)}})
    response.set_cookie(
        key=OPERATOR_SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=settings.OPERATOR_SESSION_MAX_AGE_SECONDS,
        secure=settings.OPERATOR_SESSION_COOKIE_SECURE,
    )
    return response


@router.post("/logout")
def logout() -> JSONResponse:
    response = JSONResponse({"ok": True})
    response.delete_cookie(OPERATOR_SESSION_COOKIE)
    return response


@router.get("/me")
def me(current_operator: Operator = Depends(get_current_operator)) -> dict:
    return {"ok": True, "data": {"operator": _operator_payload(current_operator)}}


@router.post("/voucher-batches")
def create_voucher_batch(
    payload: VoucherBatchCreateRequest,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(require_admin),
) -> dict:
    batch = batch_service.issue_batch(
        db,
        name=payload.name,
        node_id=payload.node_id,
        profile_id=payload.profile_id,
        total_count=payload.total_count,
        expire_time=payload.expire_time,
        valid_days=payload.valid_days,
        prefix=payload.prefix,
        code_length=payload.code_length,
        status=payload.status,
        remark=payload.remark,
    )
    return {
        "ok": True,
        "data": {"voucher_batch": VoucherBatchResponse.model_validate(batch).model_dump(mode="json")},
    }


@router.get("/voucher-batches")
def list_voucher_batches(
    name: str | None = None,
    status: VoucherBatchStatus | None = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=200),
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_current_operator),
) -> dict:
    batches, total = batch_service.list_batches(db, name=name, status=status, page=page, per_page=per_page)
    return {
        "ok": True,
        "data": {
            "voucher_batches": [
                VoucherBatchResponse.model_validate(batch).model_dump(mode="json") for batch in batches
            ],
            "total": total,
            "page": page,
            "per_page": per_page,
        },
    }


@router.get("/voucher-batches/{batch_id}")
def get_voucher_batch(
    batch_id: uuid.UUID,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_current_operator),
) -> dict:
    batch = batch_service.get_batch(db, batch_id)
    return {
        "ok": True,
        "data": {"voucher_batch": VoucherBatchResponse.model_validate(batch).model_dump(mode="json")},
    }


@router.put("/voucher-batches/{batch_id}")
def update_voucher_batch(
    batch_id: uuid.UUID,
    payload: VoucherBatchUpdateRequest,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(require_admin),
) -> dict:
    batch = batch_service.update_batch(
        db,
        batch_id,
        name=payload.name,
        node_id=payload.node_id,
        profile_id=payload.profile_id,
        expire_time=payload.expire_time,
        valid_days=payload.valid_days,
        status=payload.status,
        remark=payload.remark,
    )
    return {
        "ok": True,
        "data": {"voucher_batch": VoucherBatchResponse.model_validate(batch).model_dump(mode="json")},
    }


@router.delete("/voucher-batches/{batch_id}")
def delete_voucher_batch(
    batch_id: uuid.UUID,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(require_admin),
) -> dict:
    batch_service.delete_batch(db, batch_id)
    return {"ok": True, "data": {"batch_id": str(batch_id)}}


@router.get("/vouchers")
def list_vouchers(
    batch_id: uuid.UUID | None = None,
    status: VoucherStatus | None = None,
    code: str | None = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=200),
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_current_operator),
) -> dict:
    vouchers, total = voucher_service.list_vouchers(
        db, batch_id=batch_id, status=status, code=code, page=page, per_page=per_page
    )
    return {
        "ok": True,
        "data": {
            "vouchers": [VoucherResponse.model_validate(voucher).model_dump(mode="json") for voucher in vouchers],
            "total": total,
            "page": page,
            "per_page": per_page,
        },
    }


@router.get("/vouchers/{voucher_id}")
def get_voucher(
    voucher_id: uuid.UUID,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_current_operator),
) -> dict:
    voucher = voucher_service.get_voucher(db, voucher_id)
    return {"ok": True, "data": {"voucher": VoucherResponse.model_validate(voucher).model_dump(mode="json")}}


@router.post("/vouchers/{voucher_id}/disable")
def disable_voucher(
    voucher_id: uuid.UUID,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(require_admin),
) -> dict:
    voucher = voucher_service.disable_voucher(db, voucher_id)
    return {"ok": True, "data": {"voucher": VoucherResponse.model_validate(voucher).model_dump(mode="json")}}


def _operator_payload(operator: Operator) -> dict:
    return {"id": str(operator.id), "username": operator.username, "level": operator.level.value}
