from __future__ import annotations

import pytest

from isp_vouchers.errors import GenerationError, ValidationError
from isp_vouchers.services.codes import CODE_ALPHABET, generate_code, generate_unique_codes, normalize_code


def test_normalize_code_trims_and_uppercases():
    assert normalize_code("  abc123 ") == "ABC123"


def test_generate_code_uses_prefix_and_alphabet():
    code = generate_code(8, "vip")
    assert code.startswith("VIP")
    assert len(code) == 11
    assert all(char in CODE_ALPHABET for char in code)


@pytest.mark.parametrize("length", [5, 33])
def test_generate_code_rejects_out_of_range_length(length):
    with pytest.raises(ValidationError) as excinfo:
        generate_code(length)
    assert excinfo.value.code == "INVALID_CODE_LENGTH"


def test_generate_unique_codes_are_distinct():
    codes = generate_unique_codes(200, length=6)
    assert len(codes) == 200
    assert len(set(codes)) == 200


def test_generate_unique_codes_skips_reserved(monkeypatch):
    drawn = iter(["AAAAAA", "BBBBBB", "CCCCCC"])
    monkeypatch.setattr("isp_vouchers.services.codes.generate_code", lambda length, prefix="": next(drawn))

    codes = generate_unique_codes(2, length=6, reserved=lambda candidates: {"AAAAAA"} & set(candidates))

    assert codes == ["BBBBBB", "CCCCCC"]


def test_generate_unique_codes_exhaustion(monkeypatch):
    monkeypatch.setattr("isp_vouchers.services.codes.generate_code", lambda length, prefix="": "SAMESAME")

    with pytest.raises(GenerationError) as excinfo:
        generate_unique_codes(3, length=8, max_attempts=5)

    assert excinfo.value.code == "GENERATION_EXHAUSTED"
    assert excinfo.value.details["requested"] == 3
    assert excinfo.value.details["generated"] == 0
    assert excinfo.value.details["attempts"] == 5
