from booking_core.infrastructure.gateways.existence_gateway_http import (
    ExistenceGatewayHTTP,
    identity_gateway,
    listing_gateway,
)
from booking_core.infrastructure.gateways.notification_broker_http import NotificationBrokerHTTP

__all__ = [
    "ExistenceGatewayHTTP",
    "NotificationBrokerHTTP",
    "identity_gateway",
    "listing_gateway",
]
