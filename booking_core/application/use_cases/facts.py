from typing import Any

from booking_core.domain.entities.reservation import Reservation


def guest_contact_ref(guest_id: int) -> str:
    """Referencia opaca que el servicio de notificaciones resuelve contra identidad."""
    return f"identity:{guest_id}"


def build_reservation_fact(reservation: Reservation) -> dict[str, Any]:
    """Hecho publicado a los consumidores; reservation_id es la clave de deduplicación."""
    return {
        "reservation_id": reservation.id,
        "property_id": reservation.property_id,
        "guest_contact": guest_contact_ref(reservation.guest_id),
        "check_in": reservation.check_in.isoformat(),
        "check_out": reservation.check_out.isoformat(),
        "status": reservation.status.value,
    }
