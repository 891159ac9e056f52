from typing import Optional
from datetime import date, datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint, func

class Reservation(SQLModel, table=True):
    __tablename__ = "bookings"
    __table_args__ = (
        # CRITICAL: Database-level protection against double booking.
        # The INSERT itself is the conflict check, so there is no read-then-write race.
        UniqueConstraint("resource_id", "booking_date", "slot", name="unique_booking_slot"),
        # Never hand a deleted id back out, so a stale cancel cannot remove a newer booking
        {"sqlite_autoincrement": True},
    )
    # id and created_at come back with the INSERT, nothing reads the store after commit
    __mapper_args__ = {"eager_defaults": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    resource_id: str = Field(index=True)
    booking_date: date = Field(index=True)
    slot: str  # "09:00", "09:30", ... "17:00"
    user: str
    # Filled in by the database on insert
    created_at: Optional[datetime] = Field(
        default=None, nullable=False, sa_column_kwargs={"server_default": func.now()}
    )
