from __future__ import annotations

import hashlib
import time

from fastapi import HTTPException
from redis import Redis

from isp_vouchers.services.codes import normalize_code


def limit_key_ip(ip: str, route: str) -> str:
    return f"ip:{route}:{ip}"


def limit_key_code(code: str, route: str) -> str:
    # Hashed so raw voucher codes never sit in redis.
    digest = hashlib.sha256(normalize_code(code).encode("utf-8")).hexdigest()
    return f"code:{route}:{digest}"


def enforce_rate_limit(
    redis_client: Redis,
    *,
    scope_key: str,
    limit: int,
    window_seconds: int,
) -> None:
    window = int(time.time() // window_seconds)
    redis_key = f"rl:{scope_key}:{window}"
    count = redis_client.incr(redis_key)
    if count == 1:
        redis_client.expire(redis_key, window_seconds + 1)
    if count > limit:
        raise HTTPException(
            status_code=429,
            detail={"ok": False, "error": {"code": "RATE_LIMITED", "message": "Too many requests."}},
        )
