"""Servicios de aplicación compartidos por los casos de uso."""

from booking_core.application.services.availability import (
    DEFAULT_HORIZON_DAYS,
    AvailabilityService,
    iter_free_dates,
)
from booking_core.application.services.existence import ExistenceChecker

__all__ = [
    "AvailabilityService",
    "ExistenceChecker",
    "iter_free_dates",
    "DEFAULT_HORIZON_DAYS",
]
