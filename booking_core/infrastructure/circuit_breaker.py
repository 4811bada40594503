"""
Circuit Breaker configuration for the existence oracles.

One breaker per remote service, so a failing listing service does not stop
guest lookups and vice versa.

Circuit Breaker Pattern:
- CLOSED: Normal operation, requests pass through
- OPEN: Too many failures, requests fail immediately
- HALF_OPEN: Testing if service recovered, limited requests allowed

Breakers guard synchronous callables. Async callers run ``breaker.call``
through ``asyncio.to_thread`` so failures are recorded.
"""

import logging

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

logger = logging.getLogger(__name__)


def log_circuit_state_change(breaker_name: str, old_state: str, new_state: str):
    logger.warning(
        "Circuit breaker state changed",
        extra={
            "breaker_name": breaker_name,
            "old_state": old_state,
            "new_state": new_state,
        },
    )


class StateChangeLogger(CircuitBreakerListener):
    """Listener for circuit breaker state changes."""

    def __init__(self, name: str):
        self.name = name

    def state_change(self, cb, old_state, new_state):
        log_circuit_state_change(
            self.name,
            getattr(old_state, "name", str(old_state)),
            getattr(new_state, "name", str(new_state)),
        )


def build_breaker(name: str, fail_max: int = 5, reset_timeout: int = 60) -> CircuitBreaker:
    return CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        name=f"{name}_circuit_breaker",
        listeners=[StateChangeLogger(name)],
    )


listing_breaker = build_breaker("listing")
identity_breaker = build_breaker("identity")


__all__ = [
    "listing_breaker",
    "identity_breaker",
    "build_breaker",
    "CircuitBreakerError",
]
