from __future__ import annotations

import secrets
import string
from typing import Callable, Iterable

from isp_vouchers.errors import GenerationError, ValidationError
from isp_vouchers.settings import settings

CODE_ALPHABET = string.ascii_uppercase + string.digits
MIN_CODE_LENGTH = 6
MAX_CODE_LENGTH = 32

# Given candidate codes, returns the subset already present in storage.
ReservedLookup = Callable[[list[str]], Iterable[str]]


def normalize_code(code: str) -> str:
    return code.strip().upper()


def generate_code(length: int, prefix: str = "") -> str:
    if length < MIN_CODE_LENGTH or length > MAX_CODE_LENGTH:
        raise ValidationError(
            "INVALID_CODE_LENGTH",
            f"Code length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}.",
        )
    core = "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
    return f"{prefix}{core}".upper()


def generate_unique_codes(
    count: int,
    *,
    length: int,
    prefix: str = "",
    reserved: ReservedLookup | None = None,
    max_attempts: int | None = None,
) -> list[str]:
    """Draw ``count`` distinct codes, skipping any that ``reserved`` reports as taken.

    Every draw counts against ``max_attempts`` (default: ``count`` times
    ``CODE_GENERATION_ATTEMPT_FACTOR``); running out raises ``GENERATION_EXHAUSTED``.
    """
    if max_attempts is None:
        max_attempts = count * settings.CODE_GENERATION_ATTEMPT_FACTOR

    codes: list[str] = []
    seen: set[str] = set()
    attempts = 0
    while len(codes) < count:
        candidates: list[str] = []
        while len(codes) + len(candidates) < count:
            if attempts >= max_attempts:
                raise GenerationError(
                    "GENERATION_EXHAUSTED",
                    "Unable to generate enough unique voucher codes.",
                    details={"requested": count, "generated": len(codes), "attempts": attempts},
                )
            attempts += 1
            code = generate_code(length, prefix)
            if code in seen:
                continue
            seen.add(code)
            candidates.append(code)
        if reserved is not None and candidates:
            taken = set(reserved(candidates))
            candidates = [code for code in candidates if code not in taken]
        codes.extend(candidates)
    return codes
