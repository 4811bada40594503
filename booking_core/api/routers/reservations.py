from datetime import date

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from booking_core.api.dependencies import get_use_cases
from booking_core.api.schemas.reservations import (
    AvailabilityResponse,
    AvailableDatesResponse,
    CreateReservationRequest,
    HistoryEntryResponse,
    ReservationResponse,
    WasReservedResponse,
)
from booking_core.domain.entities.reservation import ReservationStatus

router = APIRouter()


@router.post(
    "/reservations",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: CreateReservationRequest,
    idem_key: str | None = Header(default=None, convert_underscores=False, alias="Idempotency-Key"),
    use_cases=Depends(get_use_cases),
) -> ReservationResponse:
    reservation = await use_cases["create_reservation"].execute(
        property_id=payload.property_id,
        guest_id=payload.guest_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        idem_key=idem_key,
    )
    return ReservationResponse.from_entity(reservation)


@router.get("/reservations", response_model=list[ReservationResponse])
async def list_reservations(
    property_id: int | None = Query(default=None, gt=0),
    guest_id: int | None = Query(default=None, gt=0),
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_cases=Depends(get_use_cases),
) -> list[ReservationResponse]:
    if (property_id is None) == (guest_id is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Exactly one of property_id or guest_id is required",
        )
    queries = use_cases["queries"]
    if property_id is not None:
        reservations = await queries.list_by_property(property_id, limit=limit, offset=offset)
    else:
        reservations = await queries.list_by_guest(guest_id, limit=limit, offset=offset)
    return [ReservationResponse.from_entity(r) for r in reservations]


@router.get("/reservations/availability", response_model=AvailabilityResponse)
async def check_availability(
    property_id: int = Query(gt=0),
    check_in: date = Query(),
    check_out: date = Query(),
    use_cases=Depends(get_use_cases),
) -> AvailabilityResponse:
    available = await use_cases["availability"].is_available(property_id, check_in, check_out)
    return AvailabilityResponse(
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        available=available,
    )


@router.get("/reservations/available-dates", response_model=AvailableDatesResponse)
async def available_dates(
    property_id: int = Query(gt=0),
    use_cases=Depends(get_use_cases),
) -> AvailableDatesResponse:
    availability = use_cases["availability"]
    dates = await availability.available_dates(property_id)
    return AvailableDatesResponse(
        property_id=property_id,
        horizon_days=availability.horizon_days,
        dates=dates,
    )


@router.get("/reservations/was-reserved", response_model=WasReservedResponse)
async def was_reserved(
    property_id: int = Query(gt=0),
    guest_id: int = Query(gt=0),
    use_cases=Depends(get_use_cases),
) -> WasReservedResponse:
    result = await use_cases["queries"].was_reserved_by(property_id, guest_id)
    return WasReservedResponse(property_id=property_id, guest_id=guest_id, was_reserved=result)


@router.get("/reservations/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    use_cases=Depends(get_use_cases),
) -> ReservationResponse:
    reservation = await use_cases["queries"].get_by_id(reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.get(
    "/reservations/{reservation_id}/history",
    response_model=list[HistoryEntryResponse],
)
async def get_reservation_history(
    reservation_id: int,
    use_cases=Depends(get_use_cases),
) -> list[HistoryEntryResponse]:
    entries = await use_cases["queries"].list_history_by_reservation(reservation_id)
    return [HistoryEntryResponse.from_entity(e) for e in entries]


@router.patch("/reservations/{reservation_id}/status", response_model=ReservationResponse)
async def update_reservation_status(
    reservation_id: int,
    new_status: ReservationStatus = Query(alias="status"),
    use_cases=Depends(get_use_cases),
) -> ReservationResponse:
    reservation = await use_cases["update_status"].execute(reservation_id, new_status)
    return ReservationResponse.from_entity(reservation)
