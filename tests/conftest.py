from __future__ import annotations

import httpx
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from database import get_session_factory, init_db
from ledger import ReservationLedger
from main import app, get_ledger


@pytest_asyncio.fixture
async def engine(tmp_path):
    # A real SQLite file so separate connections see the same unique_booking_slot constraint.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def ledger(engine) -> ReservationLedger:
    return ReservationLedger(get_session_factory(engine), timeout=5.0)


@pytest_asyncio.fixture
async def client(ledger):
    app.dependency_overrides[get_ledger] = lambda: ledger
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
