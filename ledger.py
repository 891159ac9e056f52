"""
Reservation ledger: the single authority over which (resource, date, slot)
triples are booked.

The ledger keeps no booking state in memory. Every decision is pushed down to
the database, and the ``unique_booking_slot`` constraint is the only conflict
detector, which keeps admission atomic across concurrent requests and across
server processes.
"""
import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, List, TypeVar, Union

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from catalog import DEFAULT_CATALOG, SlotCatalog
from errors import ConflictError, StoreError, ValidationError
from models import Reservation

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Largest value a 64-bit INTEGER primary key can hold
MAX_RESERVATION_ID = 2**63 - 1

DateLike = Union[date, str]


def _coerce_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid date {value!r}. Expected YYYY-MM-DD.") from exc


class ReservationLedger:
    def __init__(
        self,
        session_factory: Callable[[], Any],
        catalog: SlotCatalog = DEFAULT_CATALOG,
        timeout: float = 5.0,
    ):
        self._session_factory = session_factory
        self._catalog = catalog
        self._timeout = timeout

    @property
    def catalog(self) -> SlotCatalog:
        return self._catalog

    # --- Queries ---

    async def list_bookings(self, resource_id: str, booking_date: DateLike) -> List[Reservation]:
        """All current reservations for one resource on one day, in slot order."""
        self._check_resource(resource_id)
        day = _coerce_date(booking_date)
        statement = (
            select(Reservation)
            .where(Reservation.resource_id == resource_id, Reservation.booking_date == day)
            .order_by(Reservation.slot, Reservation.id)
        )
        return await self._call_store("list bookings", lambda: self._find(statement))

    async def list_bookings_for_date(self, booking_date: DateLike) -> List[Reservation]:
        day = _coerce_date(booking_date)
        statement = (
            select(Reservation)
            .where(Reservation.booking_date == day)
            .order_by(Reservation.resource_id, Reservation.slot)
        )
        return await self._call_store("list bookings for date", lambda: self._find(statement))

    # --- Commands ---

    async def reserve(
        self, resource_id: str, booking_date: DateLike, slot: str, user: str
    ) -> Reservation:
        """
        Claim ``slot`` on ``resource_id`` for ``booking_date``.

        Raises ValidationError for bad input, ConflictError when the triple is
        already taken and StoreError when the database fails or times out.
        """
        if not isinstance(user, str) or not user.strip():
            raise ValidationError("User name is required.")
        self._check_resource(resource_id)
        if not self._catalog.has_slot(slot):
            raise ValidationError(f"Invalid time slot {slot!r}.")
        day = _coerce_date(booking_date)

        reservation = Reservation(
            resource_id=resource_id,
            booking_date=day,
            slot=slot,
            user=user.strip(),
        )
        created = await self._call_store("reserve", lambda: self._insert(reservation))
        logger.info(
            "Reserved %s %s %s for %r (id=%s)",
            created.resource_id, created.booking_date, created.slot, created.user, created.id,
        )
        return created

    async def cancel(self, reservation_id: int) -> bool:
        """
        Delete a reservation by id.

        Unknown ids are not an error; the return value tells whether a row was removed.
        """
        if not 0 < reservation_id <= MAX_RESERVATION_ID:
            # Outside the store's integer range, so it cannot name a row
            logger.info("Cancel requested for out-of-range reservation %s", reservation_id)
            return False
        removed = await self._call_store("cancel", lambda: self._delete(reservation_id))
        if removed:
            logger.info("Cancelled reservation %s", reservation_id)
        else:
            logger.info("Cancel requested for unknown reservation %s", reservation_id)
        return removed

    # --- Store access ---

    async def _find(self, statement) -> List[Reservation]:
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def _insert(self, reservation: Reservation) -> Reservation:
        async with self._session_factory() as session:
            try:
                session.add(reservation)
                await session.commit()
            except IntegrityError as exc:
                # This catches the UniqueConstraint violation
                await session.rollback()
                logger.info(
                    "Conflict on %s %s %s",
                    reservation.resource_id, reservation.booking_date, reservation.slot,
                )
                raise ConflictError("This slot is already taken.") from exc
            # eager_defaults loaded id and created_at during the flush
            return reservation

    async def _delete(self, reservation_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(Reservation).where(Reservation.id == reservation_id))
            await session.commit()
            return result.rowcount > 0

    async def _call_store(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        # Leaving the session context on timeout rolls back anything uncommitted
        try:
            return await asyncio.wait_for(operation(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Store timed out after %.1fs during %s", self._timeout, action)
            raise StoreError(f"Database did not respond in time ({action}).") from exc
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Store failure during %s: %s", action, exc)
            raise StoreError(f"Database error during {action}.") from exc

    def _check_resource(self, resource_id: str) -> None:
        if self._catalog.get_resource(resource_id) is None:
            raise ValidationError(f"Unknown resource {resource_id!r}.")
