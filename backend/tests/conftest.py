from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from isp_vouchers.db import get_db
from isp_vouchers.deps import get_current_operator
from isp_vouchers.main import app
from isp_vouchers.models.base import Base
from isp_vouchers import models as _models  # noqa: F401
from isp_vouchers.models import BillingProfile

from helpers import FakeRedis, make_operator


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(engine):
    SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def fake_redis(monkeypatch):
    redis_client = FakeRedis()
    monkeypatch.setattr("isp_vouchers.routes.redeem.get_redis_client", lambda: redis_client)
    return redis_client


@pytest.fixture()
def client(db_session, fake_redis):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def profile(db_session) -> BillingProfile:
    profile = BillingProfile(
        id=uuid.uuid4(),
        name="Home 50M",
        addr_pool="pool-a",
        active_num=2,
        up_rate=10240,
        down_rate=51200,
        domain="home",
        bind_mac=1,
        bind_vlan=0,
    )
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture()
def admin_client(client, db_session):
    operator = make_operator(db_session)
    app.dependency_overrides[get_current_operator] = lambda: operator
    yield client
    app.dependency_overrides.pop(get_current_operator, None)
