"""Value Object StayRange - intervalo de estadía [check_in, check_out)."""

from dataclasses import dataclass
from datetime import date

from booking_core.domain.errors import InvalidRangeError


@dataclass(frozen=True)
class StayRange:
    """
    Value Object inmutable que representa una estadía.

    El check_in es inclusivo y el check_out exclusivo (día de salida).

    Attributes:
        check_in: Fecha de llegada.
        check_out: Fecha de salida; estrictamente posterior a check_in.
    """

    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_in >= self.check_out:
            raise InvalidRangeError(self.check_in, self.check_out)

    @property
    def nights(self) -> int:
        """Retorna el número de noches de la estadía."""
        return (self.check_out - self.check_in).days

    def overlaps_with(self, other: "StayRange") -> bool:
        """
        Predicado de solapamiento usado para admitir reservaciones.

        Es cerrado en ambos extremos: una estadía que termina el mismo día
        en que otra empieza SÍ se considera solapada (el día de recambio
        no se ofrece para reservar).
        """
        return other.check_out >= self.check_in and other.check_in <= self.check_out

    def __str__(self) -> str:
        return f"{self.check_in.isoformat()} -> {self.check_out.isoformat()}"
