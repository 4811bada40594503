"""Puertos de publicación de hechos hacia consumidores asíncronos."""

from abc import ABC, abstractmethod
from typing import Any


class EventEmitter(ABC):
    """
    Publicación fire-and-forget usada por el ciclo de vida.

    Nunca propaga excepciones al llamador: la reservación ya es durable
    cuando se emite el hecho.
    """

    @abstractmethod
    async def emit(self, topic: str, fact: dict[str, Any]) -> None:
        raise NotImplementedError


class MessageBroker(ABC):
    """Transporte real hacia el broker; sí propaga errores para que el outbox reintente."""

    @abstractmethod
    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        raise NotImplementedError
