from fastapi import APIRouter, Depends

from ...api.deps import get_operator, get_assignment_service
from ...core.security import TokenPayload
from ...schemas.queue import AssignmentRequest, AssignmentResponse
from ...services.assignment_service import AssignmentService

router = APIRouter(prefix="/assignments", tags=["Patient Assignment"])

@router.post("", response_model=AssignmentResponse)
def assign_patient(
    assignment_data: AssignmentRequest,
    assignments: AssignmentService = Depends(get_assignment_service),
    _: TokenPayload = Depends(get_operator)
):
    """Pick the clinician for a new patient, from the rotation or by choice."""
    result = assignments.assign(assignment_data.source, assignment_data.clinician_id)
    return AssignmentResponse.from_result(result)
