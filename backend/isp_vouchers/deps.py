from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, Request
from itsdangerous import BadSignature, SignatureExpired
from sqlalchemy import select
from sqlalchemy.orm import Session

from isp_vouchers.db import get_db
from isp_vouchers.models import Operator, OperatorLevel
from isp_vouchers.security import parse_session_token
from isp_vouchers.settings import settings


OPERATOR_SESSION_COOKIE = "operator_session"


def _unauthenticated(message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"ok": False, "error": {"code": "UNAUTHENTICATED", "message": message}},
    )


def get_current_operator(
    request: Request,
    db: Session = Depends(get_db),
) -> Operator:
    token = request.cookies.get(OPERATOR_SESSION_COOKIE)
    if not token:
        raise _unauthenticated("Login required.")
    try:
        payload = parse_session_token(token, settings.OPERATOR_SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired):
        raise _unauthenticated("Invalid session.")

    try:
        operator_id = uuid.UUID(payload.get("operator_id") or "")
    except ValueError:
        raise _unauthenticated("Invalid session.")

    operator = db.execute(select(Operator).where(Operator.id == operator_id)).scalar_one_or_none()
    if not operator:
        raise _unauthenticated("Invalid session.")
    return operator


def require_admin(
    operator: Operator = Depends(get_current_operator),
) -> Operator:
    if operator.level not in (OperatorLevel.SUPER, OperatorLevel.ADMIN):
        raise HTTPException(
            status_code=403,
            detail={"ok": False, "error": {"code": "FORBIDDEN", "message": "Admin level required."}},
        )
    return operator
