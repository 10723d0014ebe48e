from __future__ import annotations

from celery import Celery

from isp_vouchers.settings import settings


broker_url = settings.CELERY_BROKER_URL or settings.REDIS_URL
result_backend = settings.CELERY_RESULT_BACKEND or settings.REDIS_URL

celery_app = Celery("isp_vouchers", broker=broker_url, backend=result_backend, include=["isp_vouchers.tasks.vouchers"])
celery_app.conf.task_always_eager = False
celery_app.conf.beat_schedule = {
    "expire-stale-vouchers": {
        "task": "expire_stale_vouchers",
        "schedule": float(settings.VOUCHER_EXPIRY_SWEEP_SECONDS),
    },
}
