"""Stand-in sessions for exercising the ledger's store failure paths."""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy.exc import OperationalError


class StalledSession:
    """Async session whose database calls never come back in time."""

    def __init__(self, delay: float = 10.0) -> None:
        self.delay = delay
        self.added: list[Any] = []

    async def __aenter__(self) -> "StalledSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False

    def add(self, instance: Any) -> None:
        self.added.append(instance)

    async def execute(self, statement: Any) -> Any:
        await asyncio.sleep(self.delay)

    async def commit(self) -> None:
        await asyncio.sleep(self.delay)

    async def rollback(self) -> None:
        return None


class UnreachableSession:
    """Async session that fails as soon as it tries to talk to the database."""

    async def __aenter__(self) -> "UnreachableSession":
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class SlowRefreshSession:
    """Wraps a real session and stalls any read-back of an instance after commit."""

    def __init__(self, session: Any, delay: float = 5.0) -> None:
        self._session = session
        self.delay = delay
        self.refreshed = 0

    async def __aenter__(self) -> "SlowRefreshSession":
        await self._session.__aenter__()
        return self

    async def __aexit__(self, *exc_info: Any) -> Any:
        return await self._session.__aexit__(*exc_info)

    def add(self, instance: Any) -> None:
        self._session.add(instance)

    async def execute(self, statement: Any) -> Any:
        return await self._session.execute(statement)

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def refresh(self, instance: Any) -> None:
        self.refreshed += 1
        await asyncio.sleep(self.delay)
        await self._session.refresh(instance)
