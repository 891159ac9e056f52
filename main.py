import logging
from datetime import date, datetime
from functools import lru_cache
from typing import List, Optional

from fastapi import FastAPI, Depends, Path, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from catalog import DEFAULT_CATALOG, SlotCatalog
from config import get_settings
from database import get_engine, get_session_factory, init_db
from errors import ReservationError
from ledger import MAX_RESERVATION_ID, ReservationLedger
from logging_config import setup_logging
from models import Reservation

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title="Resource Reservation System")


# Pydantic Schemas for Request/Response.
# Field aliases keep the camelCase names the booking UI sends and expects.
class ReservationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_id: str = Field(alias="resourceId")
    booking_date: date = Field(alias="date")
    slot: str
    user: str


class ReservationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    resource_id: str = Field(alias="resourceId")
    booking_date: date = Field(alias="date")
    slot: str
    user: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @classmethod
    def from_record(cls, record: Reservation) -> "ReservationRead":
        return cls(
            id=record.id,
            resource_id=record.resource_id,
            booking_date=record.booking_date,
            slot=record.slot,
            user=record.user,
            created_at=record.created_at,
        )


class ReservationCreated(BaseModel):
    message: str
    booking: ReservationRead


class BookingList(BaseModel):
    bookings: List[ReservationRead]


class SlotAvailability(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    available_slots: List[str] = Field(alias="availableSlots")
    booked_slots: List[str] = Field(alias="bookedSlots")


class CancelResult(BaseModel):
    success: bool
    deleted: bool
    message: str


class ResourceRead(BaseModel):
    id: str
    name: str
    capacity: int


class SlotStatus(BaseModel):
    slot: str
    status: str
    user: Optional[str]


class ResourceSchedule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_id: str = Field(alias="resourceId")
    name: str
    schedule: List[SlotStatus]


# --- Dependencies ---

def get_catalog() -> SlotCatalog:
    return DEFAULT_CATALOG


@lru_cache(maxsize=1)
def get_ledger() -> ReservationLedger:
    return ReservationLedger(
        get_session_factory(get_engine()),
        catalog=DEFAULT_CATALOG,
        timeout=settings.store_timeout_seconds,
    )


@app.on_event("startup")
async def on_startup():
    setup_logging(settings.log_level)
    await init_db(get_engine())
    logger.info("Reservation API started")


# --- Error mapping: 400 validation, 409 conflict, 500 store failure ---
# "error" repeats the message for browser clients that read that key.

@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc), "error": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request.", "error": "Invalid request.", "errors": _validation_errors(exc)},
    )


def _validation_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


# --- Endpoint 1: health check ---
@app.get("/")
async def read_root():
    return {"message": "Reservation API is running"}


# --- Endpoint 2: GET /api/resources ---
@app.get("/api/resources", response_model=List[ResourceRead])
async def list_resources(catalog: SlotCatalog = Depends(get_catalog)):
    return [
        ResourceRead(id=r.id, name=r.name, capacity=r.capacity)
        for r in catalog.list_resources()
    ]


# --- Endpoint 3: GET /api/slots ---
@app.get("/api/slots", response_model=SlotAvailability)
async def get_slots(
    target_date: date = Query(alias="date"),
    resource_id: str = Query(alias="resourceId"),
    ledger: ReservationLedger = Depends(get_ledger),
):
    bookings = await ledger.list_bookings(resource_id, target_date)
    booked_slots = [b.slot for b in bookings]
    all_slots = ledger.catalog.list_slots()
    return SlotAvailability(
        available_slots=ledger.catalog.compute_available(all_slots, booked_slots),
        booked_slots=booked_slots,
    )


# --- Endpoint 4: GET /api/bookings/{date}/{resource_id} ---
@app.get("/api/bookings/{target_date}/{resource_id}", response_model=BookingList)
async def get_bookings(
    target_date: date,
    resource_id: str,
    ledger: ReservationLedger = Depends(get_ledger),
):
    bookings = await ledger.list_bookings(resource_id, target_date)
    return BookingList(bookings=[ReservationRead.from_record(b) for b in bookings])


# --- Endpoint 5: GET /api/schedule ---
@app.get("/api/schedule", response_model=List[ResourceSchedule])
async def get_schedule(
    target_date: date = Query(alias="date"),
    ledger: ReservationLedger = Depends(get_ledger),
):
    # Step 1: Query DB for ALL bookings on this date (single query)
    bookings = await ledger.list_bookings_for_date(target_date)

    # Step 2: Lookup by (resource_id, slot)
    booking_map = {(b.resource_id, b.slot): b for b in bookings}

    # Step 3: Construct the Grid
    grid = []
    for resource in ledger.catalog.list_resources():
        schedule = []
        for slot in ledger.catalog.list_slots():
            existing = booking_map.get((resource.id, slot))
            if existing:
                schedule.append(SlotStatus(slot=slot, status="occupied", user=existing.user))
            else:
                schedule.append(SlotStatus(slot=slot, status="available", user=None))
        grid.append(ResourceSchedule(resource_id=resource.id, name=resource.name, schedule=schedule))

    return grid


# --- Endpoint 6: POST /api/bookings ---
@app.post("/api/bookings", response_model=ReservationCreated, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: ReservationCreate,
    ledger: ReservationLedger = Depends(get_ledger),
):
    reservation = await ledger.reserve(
        booking_data.resource_id,
        booking_data.booking_date,
        booking_data.slot,
        booking_data.user,
    )
    return ReservationCreated(
        message="Reservation confirmed!",
        booking=ReservationRead.from_record(reservation),
    )


# --- Endpoint 7: DELETE /api/bookings/{reservation_id} ---
@app.delete("/api/bookings/{reservation_id}", response_model=CancelResult)
async def delete_booking(
    reservation_id: int = Path(le=MAX_RESERVATION_ID),
    ledger: ReservationLedger = Depends(get_ledger),
):
    deleted = await ledger.cancel(reservation_id)
    message = "Booking deleted." if deleted else "No booking with that id."
    return CancelResult(success=True, deleted=deleted, message=message)


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
