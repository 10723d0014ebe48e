from __future__ import annotations

import structlog

from isp_vouchers import db as db_module
from isp_vouchers.celery_app import celery_app
from isp_vouchers.services.vouchers import expire_vouchers

logger = structlog.get_logger(__name__)


@celery_app.task(name="expire_stale_vouchers")
def expire_stale_vouchers() -> int:
    with db_module.SessionLocal() as session:
        count = expire_vouchers(session)
    logger.info("voucher_expiry_sweep_finished", count=count)
    return count
