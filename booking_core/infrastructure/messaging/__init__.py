from booking_core.infrastructure.messaging.event_emitter import OutboxEventEmitter
from booking_core.infrastructure.messaging.outbox_worker import OutboxWorker

__all__ = ["OutboxEventEmitter", "OutboxWorker"]
