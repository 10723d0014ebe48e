from __future__ import annotations

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from isp_vouchers.db import get_db
from isp_vouchers.errors import VoucherServiceError
from isp_vouchers.log import configure_logging
from isp_vouchers.routes import admin, redeem
from isp_vouchers.settings import settings

configure_logging()

app = FastAPI(title="ISP Voucher Service API", version="0.1.0")

# Error envelope
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        if exc.detail.get("ok") is False:
            return JSONResponse(status_code=exc.status_code, content=exc.detail)
        if "code" in exc.detail and "message" in exc.detail:
            return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": {"code": "HTTP_ERROR", "message": str(exc.detail)}},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "ok": False,
            "error": {"code": "VALIDATION_ERROR", "message": "Validation failed.", "details": exc.errors()},
        },
    )


@app.exception_handler(VoucherServiceError)
async def voucher_service_exception_handler(request: Request, exc: VoucherServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.to_payload()})

# CORS: allow the operator console in dev; lock down in prod
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(redeem.router, prefix="/api/vouchers", tags=["vouchers"])

@app.get("/healthz")
def healthz() -> dict:
    return {"ok": True}

@app.get("/readyz")
def readyz(db: Session = Depends(get_db)) -> JSONResponse:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return JSONResponse(status_code=503, content={"ready": False})
    return JSONResponse({"ready": True})
