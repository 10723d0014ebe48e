from __future__ import annotations

import os
import uuid

from sqlalchemy import select

from isp_vouchers.db import SessionLocal
from isp_vouchers.models import BillingProfile, Operator, OperatorLevel
from isp_vouchers.security import hash_password


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


def main() -> None:
    operator_username = os.environ.get("OPERATOR_USERNAME")
    operator_password = os.environ.get("OPERATOR_PASSWORD")
    operator_level = os.environ.get("OPERATOR_LEVEL", OperatorLevel.SUPER.value)
    profile_name = os.environ.get("PROFILE_NAME")

    if not operator_username or not operator_password:
        raise SystemExit("OPERATOR_USERNAME and OPERATOR_PASSWORD are required.")
    try:
        level = OperatorLevel(operator_level.lower())
    except ValueError:
        raise SystemExit(f"OPERATOR_LEVEL must be one of: {', '.join(item.value for item in OperatorLevel)}.")

    with SessionLocal() as session:
        operator = session.execute(
            select(Operator).where(Operator.username == operator_username)
        ).scalar_one_or_none()
        if not operator:
            operator = Operator(
                id=uuid.uuid4(),
                username=operator_username,
                password_hash=hash_password(operator_password),
                level=level,
            )
            session.add(operator)
            session.flush()

        if profile_name:
            profile = session.execute(
                select(BillingProfile).where(BillingProfile.name == profile_name)
            ).scalar_one_or_none()
            if not profile:
                session.add(
                    BillingProfile(
                        id=uuid.uuid4(),
                        name=profile_name,
                        addr_pool=os.environ.get("PROFILE_ADDR_POOL", ""),
                        active_num=_int_env("PROFILE_ACTIVE_NUM", 1),
                        up_rate=_int_env("PROFILE_UP_RATE", 0),
                        down_rate=_int_env("PROFILE_DOWN_RATE", 0),
                        domain=os.environ.get("PROFILE_DOMAIN", ""),
                    )
                )

        session.commit()


if __name__ == "__main__":
    main()
