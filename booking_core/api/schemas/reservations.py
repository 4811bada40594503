from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from booking_core.domain.entities.reservation import Reservation, ReservationStatus
from booking_core.domain.entities.reservation_history import ReservationHistory


class CreateReservationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    property_id: int = Field(gt=0)
    guest_id: int = Field(gt=0)
    check_in: date
    check_out: date


class ReservationResponse(BaseModel):
    id: int
    property_id: int
    guest_id: int
    check_in: date
    check_out: date
    nights: int
    status: ReservationStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, reservation: Reservation) -> "ReservationResponse":
        return cls(
            id=reservation.id,
            property_id=reservation.property_id,
            guest_id=reservation.guest_id,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            nights=reservation.stay_range.nights,
            status=reservation.status,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


class HistoryEntryResponse(BaseModel):
    id: int | None = None
    reservation_id: int
    status: ReservationStatus
    changed_at: datetime

    @classmethod
    def from_entity(cls, entry: ReservationHistory) -> "HistoryEntryResponse":
        return cls(
            id=entry.id,
            reservation_id=entry.reservation_id,
            status=entry.status,
            changed_at=entry.changed_at,
        )


class AvailabilityResponse(BaseModel):
    property_id: int
    check_in: date
    check_out: date
    available: bool


class AvailableDatesResponse(BaseModel):
    property_id: int
    horizon_days: int
    dates: list[date]


class WasReservedResponse(BaseModel):
    property_id: int
    guest_id: int
    was_reserved: bool


class OutboxDrainResponse(BaseModel):
    worker_id: str
    claimed: int
    publish_failures: int
