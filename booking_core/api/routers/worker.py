from typing import Annotated

from fastapi import APIRouter, Depends, status

from booking_core.api.dependencies import get_use_cases
from booking_core.api.schemas.reservations import OutboxDrainResponse

router = APIRouter()


@router.post(
    "/workers/outbox/drain",
    response_model=OutboxDrainResponse,
    status_code=status.HTTP_200_OK,
)
async def drain_outbox(
    use_cases: Annotated[dict, Depends(get_use_cases)],
) -> OutboxDrainResponse:
    """Publishes one batch of ready outbox events."""
    worker = use_cases["outbox_worker"]
    claimed = await worker.process_batch()
    return OutboxDrainResponse(
        worker_id=worker.worker_id,
        claimed=claimed,
        publish_failures=worker.publish_failures,
    )
