from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from isp_vouchers.models import Operator, OperatorLevel
from isp_vouchers.security import hash_password


class FakeRedis:
    def __init__(self) -> None:
        self.counters: dict[str, int] = {}

    def incr(self, key: str) -> int:
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    def expire(self, key: str, ttl: int) -> None:
        return None


def make_operator(db_session, *, username: str = "admin", level: OperatorLevel = OperatorLevel.ADMIN) -> Operator:
    operator = Operator(
        id=uuid.uuid4(),
        username=username,
        password_hash=hash_password("secret"),
        level=level,
    )
    db_session.add(operator)
    db_session.commit()
    return operator


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def in_days(days: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)
