from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
import logging

from ...api.deps import (
    get_operator, get_admin, get_assignment_service, get_notifier, get_roster,
    get_rotation_service
)
from ...core.security import TokenPayload
from ...schemas.queue import (
    AssignmentResponse, ClinicianSlot, QueueStateResponse, ResetRequest
)
from ...services.assignment_service import AssignmentService, AssignmentSource
from ...services.notifier import ChangeNotifier
from ...services.roster import ClinicianRoster
from ...services.rotation_service import RotationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queue", tags=["Rotation Queue"])

KEEPALIVE_SECONDS = 15.0

def _state(record, roster: ClinicianRoster) -> QueueStateResponse:
    return QueueStateResponse.from_record(record, roster.names(record.order))

@router.get("", response_model=QueueStateResponse)
def get_queue(
    rotation: RotationService = Depends(get_rotation_service),
    roster: ClinicianRoster = Depends(get_roster),
    _: TokenPayload = Depends(get_operator)
):
    """Current state of today's rotation queue."""
    record = rotation.snapshot()
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Today's rotation queue has not been initialized"
        )
    return _state(record, roster)

@router.post("/initialize", response_model=QueueStateResponse)
def initialize_queue(
    rotation: RotationService = Depends(get_rotation_service),
    roster: ClinicianRoster = Depends(get_roster),
    _: TokenPayload = Depends(get_operator)
):
    """Create today's queue if it does not exist yet."""
    return _state(rotation.initialize(), roster)

@router.post("/next", response_model=AssignmentResponse)
def next_clinician(
    assignments: AssignmentService = Depends(get_assignment_service),
    _: TokenPayload = Depends(get_operator)
):
    """Consume one rotation slot and return the clinician it belongs to.
    
    Counts as a rotation-sourced assignment, so repeat warnings are included.
    """
    result = assignments.assign(AssignmentSource.ROTATION)
    return AssignmentResponse.from_result(result)

@router.get("/peek", response_model=ClinicianSlot)
def peek_clinician(
    rotation: RotationService = Depends(get_rotation_service),
    roster: ClinicianRoster = Depends(get_roster),
    _: TokenPayload = Depends(get_operator)
):
    """Who is next, without consuming the slot."""
    clinician_id = rotation.peek()
    if clinician_id is None:
        return ClinicianSlot()
    return ClinicianSlot(
        clinician_id=clinician_id,
        clinician_name=roster.names([clinician_id]).get(clinician_id)
    )

@router.post("/reset", response_model=QueueStateResponse)
def reset_queue(
    reset_data: ResetRequest,
    rotation: RotationService = Depends(get_rotation_service),
    roster: ClinicianRoster = Depends(get_roster),
    admin: TokenPayload = Depends(get_admin)
):
    """Discard today's queue and start a new shuffle. Admin only."""
    record = rotation.reset(reset_data.confirmed)
    logger.info(f"Rotation queue for {record.date} reset by user {admin.sub}")
    return _state(record, roster)

@router.get("/events")
def queue_events(
    notifier: ChangeNotifier = Depends(get_notifier),
    _: TokenPayload = Depends(get_operator)
):
    """Server-sent stream of queue change notifications. Re-fetch on every event."""
    def stream():
        events = notifier.listen(timeout=KEEPALIVE_SECONDS)
        try:
            for event in events:
                if event is None:
                    yield ": keepalive\n\n"
                else:
                    yield f"event: queue_changed\ndata: {event.to_json()}\n\n"
        finally:
            events.close()
    
    return StreamingResponse(stream(), media_type="text/event-stream")
