import asyncio
import json
import logging

import httpx
from pybreaker import CircuitBreaker

from booking_core.application.interfaces.existence_oracle import ExistenceOracle
from booking_core.domain.errors import UpstreamUnavailableError
from booking_core.infrastructure.circuit_breaker import (
    CircuitBreakerError,
    identity_breaker,
    listing_breaker,
)

logger = logging.getLogger(__name__)


class ExistenceGatewayHTTP(ExistenceOracle):
    def __init__(
        self,
        base_url: str,
        path_template: str,
        service_name: str,
        breaker: CircuitBreaker,
        timeout_seconds: float = 2.0,
    ) -> None:
        """
        HTTP existence lookup protected by a circuit breaker.

        Args:
            base_url: Base URL of the owning service
            path_template: Lookup path with an ``{id}`` placeholder
            service_name: Name used in logs and errors
            breaker: pybreaker breaker shared by every call to this service
            timeout_seconds: Request timeout in seconds
        """
        self._base_url = base_url.rstrip("/")
        self._path_template = path_template
        self.service_name = service_name
        self._breaker = breaker
        self._timeout = timeout_seconds

    def _lookup(self, entity_id: int) -> bool:
        url = f"{self._base_url}{self._path_template.format(id=entity_id)}"
        with httpx.Client(timeout=self._timeout) as client:
            response = client.get(url)
        if response.status_code == 404:
            return False
        response.raise_for_status()
        body = response.json()
        if isinstance(body, bool):
            return body
        if isinstance(body, dict) and isinstance(body.get("exists"), bool):
            return body["exists"]
        raise ValueError(f"Unexpected existence payload: {body!r}")

    async def exists(self, entity_id: int) -> bool:
        try:
            # The breaker only records failures of synchronous callables.
            return await asyncio.to_thread(self._breaker.call, self._lookup, entity_id)
        except CircuitBreakerError as exc:
            logger.warning(
                "Existence circuit breaker is open",
                extra={"service": self.service_name, "entity_id": entity_id},
            )
            raise UpstreamUnavailableError(self.service_name, entity_id, "circuit open") from exc
        except httpx.TimeoutException as exc:
            logger.warning(
                "Existence request timeout",
                extra={
                    "service": self.service_name,
                    "entity_id": entity_id,
                    "timeout": self._timeout,
                },
            )
            raise UpstreamUnavailableError(self.service_name, entity_id, "timeout") from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Existence HTTP error",
                extra={"service": self.service_name, "entity_id": entity_id, "error": str(exc)},
            )
            raise UpstreamUnavailableError(self.service_name, entity_id, str(exc)) from exc
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning(
                "Existence response not understood",
                extra={"service": self.service_name, "entity_id": entity_id, "error": str(exc)},
            )
            raise UpstreamUnavailableError(self.service_name, entity_id, "bad payload") from exc


def listing_gateway(base_url: str, timeout_seconds: float = 2.0) -> ExistenceGatewayHTTP:
    return ExistenceGatewayHTTP(
        base_url=base_url,
        path_template="/api/v1/properties/{id}/exists",
        service_name="listing",
        breaker=listing_breaker,
        timeout_seconds=timeout_seconds,
    )


def identity_gateway(base_url: str, timeout_seconds: float = 2.0) -> ExistenceGatewayHTTP:
    return ExistenceGatewayHTTP(
        base_url=base_url,
        path_template="/api/v1/users/{id}/exists",
        service_name="identity",
        breaker=identity_breaker,
        timeout_seconds=timeout_seconds,
    )
