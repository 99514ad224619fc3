import asyncio
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chat_monitor.core import models  # noqa: F401
from chat_monitor.core.batch_executor import execute_batch
from chat_monitor.core.classifier import error_result
from chat_monitor.core.database import Base
from chat_monitor.core.schemas import CompanyCodeResult


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


def ok(phone: str, code: str, name: str = "") -> CompanyCodeResult:
    return CompanyCodeResult(phone_number=phone, company_code=code, company_name=name, success=True)


def sentinel(phone: str, code: str) -> CompanyCodeResult:
    return CompanyCodeResult(phone_number=phone, company_code=code, success=True)


def failed(phone: str, message: str = "connection refused") -> CompanyCodeResult:
    return error_result(phone, message)


class FakeResolver:
    """Scripted lookup client that records calls and concurrent use"""

    def __init__(self, outcomes: Optional[Dict[str, CompanyCodeResult]] = None, delay: float = 0.0):
        self.outcomes = outcomes or {}
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def resolve(self, phone_number: str) -> CompanyCodeResult:
        self.calls.append(phone_number)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return self.outcomes.get(phone_number) or ok(phone_number, "X001")


class FakeCompanyCodeService:
    """Stands in for CompanyCodeService; runs the real executor over a FakeResolver"""

    def __init__(self, outcomes: Optional[Dict[str, CompanyCodeResult]] = None):
        self.resolver = FakeResolver(outcomes)
        self.batches: List[List[str]] = []
        self.calls: List[Dict[str, Any]] = []

    async def resolve(self, phone_numbers, concurrency=None, deadline=None):
        phone_numbers = list(phone_numbers)
        self.batches.append(phone_numbers)
        self.calls.append({"concurrency": concurrency, "deadline": deadline})
        return await execute_batch(phone_numbers, self.resolver.resolve, concurrency=concurrency or 3, deadline=deadline)
