"""Excepciones de dominio para el motor de reservaciones."""

from datetime import date
from typing import Any


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    @property
    def context(self) -> dict[str, Any]:
        """Datos necesarios para reconstruir la precondición fallida."""
        return {}


# === Errores de Validación ===


class InvalidRangeError(DomainError):
    """Rango de estadía inválido (check_in debe ser estrictamente anterior a check_out)."""

    def __init__(
        self,
        check_in: date,
        check_out: date,
        reason: str = "check_in debe ser anterior a check_out",
        property_id: int | None = None,
    ):
        super().__init__(
            message=f"Rango inválido {check_in} -> {check_out}: {reason}",
            code="INVALID_RANGE",
        )
        self.check_in = check_in
        self.check_out = check_out
        self.reason = reason
        self.property_id = property_id

    @property
    def context(self) -> dict[str, Any]:
        return {
            "property_id": self.property_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "reason": self.reason,
        }


# === Errores de Existencia ===


class NotFoundError(DomainError):
    """La entidad (property, guest o reservation) no existe o no pudo verificarse."""

    KINDS = ("property", "guest", "reservation")

    def __init__(self, kind: str, entity_id: int, **context: Any):
        if kind not in self.KINDS:
            raise ValueError(f"kind desconocido: {kind}")
        super().__init__(
            message=f"{kind.capitalize()} con id {entity_id} no encontrado",
            code="NOT_FOUND",
        )
        self.kind = kind
        self.entity_id = entity_id
        self.extra_context = context

    @property
    def context(self) -> dict[str, Any]:
        return {"kind": self.kind, "id": self.entity_id, **self.extra_context}


class UpstreamUnavailableError(DomainError):
    """
    Un servicio remoto de existencia falló o excedió el timeout.

    Es un error interno: el ciclo de vida lo colapsa en NotFoundError
    (política fail-closed).
    """

    def __init__(self, service: str, entity_id: int, reason: str):
        super().__init__(
            message=f"Servicio {service} no disponible verificando id {entity_id}: {reason}",
            code="UPSTREAM_UNAVAILABLE",
        )
        self.service = service
        self.entity_id = entity_id
        self.reason = reason

    @property
    def context(self) -> dict[str, Any]:
        return {"service": self.service, "id": self.entity_id, "reason": self.reason}


# === Errores de Reservación ===


class ConflictError(DomainError):
    """El intervalo solicitado no está disponible para la propiedad."""

    def __init__(self, property_id: int, check_in: date, check_out: date):
        super().__init__(
            message=(
                f"Propiedad {property_id} no disponible para "
                f"{check_in.isoformat()} -> {check_out.isoformat()}"
            ),
            code="CONFLICT",
        )
        self.property_id = property_id
        self.check_in = check_in
        self.check_out = check_out

    @property
    def context(self) -> dict[str, Any]:
        return {
            "property_id": self.property_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
        }


class InvalidStatusTransitionError(DomainError):
    """La transición de estado solicitada no está permitida."""

    def __init__(self, reservation_id: int, current_status: str, requested_status: str):
        super().__init__(
            message=(
                f"No se puede pasar la reservación {reservation_id} "
                f"de '{current_status}' a '{requested_status}'"
            ),
            code="INVALID_STATUS_TRANSITION",
        )
        self.reservation_id = reservation_id
        self.current_status = current_status
        self.requested_status = requested_status

    @property
    def context(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "current_status": self.current_status,
            "requested_status": self.requested_status,
        }


# === Errores de Persistencia ===


class PersistenceError(DomainError):
    """La escritura durable falló; no se confirmó ninguna reservación."""

    def __init__(self, operation: str, reason: str, retryable: bool = False, **context: Any):
        super().__init__(
            message=f"Falló la persistencia en '{operation}': {reason}",
            code="PERSISTENCE_ERROR",
        )
        self.operation = operation
        self.reason = reason
        self.retryable = retryable
        self.extra_context = context

    @property
    def context(self) -> dict[str, Any]:
        return {"operation": self.operation, "retryable": self.retryable, **self.extra_context}


# === Errores de Idempotencia ===


class IdempotencyConflictError(DomainError):
    """Conflicto de idempotencia: mismo key pero diferente request."""

    def __init__(self, idem_key: str, scope: str):
        super().__init__(
            message=f"Conflicto de idempotencia: key '{idem_key}' en scope '{scope}' "
            f"ya existe con diferente request hash",
            code="IDEMPOTENCY_CONFLICT",
        )
        self.idem_key = idem_key
        self.scope = scope

    @property
    def context(self) -> dict[str, Any]:
        return {"idem_key": self.idem_key, "scope": self.scope}
