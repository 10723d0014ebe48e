from __future__ import annotations

import uuid

from sqlalchemy import select

from isp_vouchers.models import Voucher, VoucherStatus
from isp_vouchers.settings import settings


def _create_batch(admin_client, profile, **overrides):
    payload = {"name": "Lobby", "profile_id": str(profile.id), "total_count": 3}
    payload.update(overrides)
    response = admin_client.post("/api/admin/voucher-batches", json=payload)
    assert response.status_code == 200, response.text
    return response.json()["data"]["voucher_batch"]


def test_create_batch_endpoint(admin_client, profile):
    batch = _create_batch(admin_client, profile, prefix="lb", code_length=8, status=True, valid_days=7)

    assert batch["name"] == "Lobby"
    assert batch["prefix"] == "LB"
    assert batch["code_length"] == 8
    assert batch["status"] == "enabled"
    assert batch["total_count"] == 3
    assert batch["used_count"] == 0

    response = admin_client.get("/api/admin/vouchers", params={"batch_id": batch["id"]})
    data = response.json()["data"]
    assert data["total"] == 3
    for voucher in data["vouchers"]:
        assert voucher["code"].startswith("LB")
        assert voucher["status"] == "available"
        assert "password" not in voucher


def test_short_code_length_uses_default(admin_client, profile):
    batch = _create_batch(admin_client, profile, code_length=-1)

    assert batch["code_length"] == settings.DEFAULT_CODE_LENGTH


def test_create_batch_validation_error(admin_client, profile):
    response = admin_client.post(
        "/api/admin/voucher-batches",
        json={"name": "Big", "profile_id": str(profile.id), "total_count": 10001},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_create_batch_duplicate_name(admin_client, profile):
    _create_batch(admin_client, profile)

    response = admin_client.post(
        "/api/admin/voucher-batches",
        json={"name": "Lobby", "profile_id": str(profile.id), "total_count": 1},
    )

    assert response.status_code == 409
    assert response.json() == {
        "ok": False,
        "error": {"code": "NAME_EXISTS", "message": "Batch name already exists."},
    }


def test_list_get_and_update_batch(admin_client, profile):
    batch = _create_batch(admin_client, profile)

    response = admin_client.get("/api/admin/voucher-batches", params={"name": "lob"})
    assert response.json()["data"]["total"] == 1

    response = admin_client.get(f"/api/admin/voucher-batches/{batch['id']}")
    assert response.json()["data"]["voucher_batch"]["id"] == batch["id"]

    response = admin_client.put(
        f"/api/admin/voucher-batches/{batch['id']}",
        json={"remark": "moved to desk", "status": "disabled"},
    )
    assert response.status_code == 200
    updated = response.json()["data"]["voucher_batch"]
    assert updated["remark"] == "moved to desk"
    assert updated["status"] == "disabled"
    assert updated["name"] == "Lobby"


def test_missing_batch_is_404(admin_client):
    response = admin_client.get(f"/api/admin/voucher-batches/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "BATCH_NOT_FOUND"


def test_delete_batch_endpoint(admin_client, db_session, profile):
    busy = _create_batch(admin_client, profile, name="Busy", total_count=1)
    idle = _create_batch(admin_client, profile, name="Idle", total_count=1)
    voucher = db_session.execute(
        select(Voucher).where(Voucher.batch_id == uuid.UUID(busy["id"]))
    ).scalar_one()
    voucher.status = VoucherStatus.USED
    db_session.commit()

    response = admin_client.delete(f"/api/admin/voucher-batches/{busy['id']}")
    assert response.status_code == 409
    assert response.json()["error"] == {
        "code": "IN_USE",
        "message": "Cannot delete batch with used vouchers.",
        "details": {"used_count": 1},
    }

    response = admin_client.delete(f"/api/admin/voucher-batches/{idle['id']}")
    assert response.status_code == 200
    response = admin_client.get(f"/api/admin/voucher-batches/{idle['id']}")
    assert response.status_code == 404


def test_disable_voucher_endpoint(admin_client, db_session, profile):
    batch = _create_batch(admin_client, profile, total_count=2)
    first, second = db_session.execute(
        select(Voucher).where(Voucher.batch_id == uuid.UUID(batch["id"]))
    ).scalars().all()
    second.status = VoucherStatus.USED
    db_session.commit()

    response = admin_client.post(f"/api/admin/vouchers/{first.id}/disable")
    assert response.status_code == 200
    assert response.json()["data"]["voucher"]["status"] == "disabled"

    response = admin_client.get(f"/api/admin/vouchers/{first.id}")
    assert response.json()["data"]["voucher"]["status"] == "disabled"

    response = admin_client.post(f"/api/admin/vouchers/{second.id}/disable")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VOUCHER_USED"


def test_health_endpoints(client):
    assert client.get("/healthz").json() == {"ok": True}
    assert client.get("/readyz").json() == {"ready": True}
