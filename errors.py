from fastapi import status


class ReservationError(Exception):
    """Base class for failures the ledger reports to its caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ValidationError(ReservationError):
    # Missing or malformed input (empty user, unknown resource or slot, bad date)
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ReservationError):
    # The (resource, date, slot) triple is already booked
    status_code = status.HTTP_409_CONFLICT


class StoreError(ReservationError):
    # The database failed or did not answer in time. Safe for the caller to retry.
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
