"""Value Objects del dominio de reservaciones."""

from booking_core.domain.value_objects.stay_range import StayRange

__all__ = [
    "StayRange",
]
