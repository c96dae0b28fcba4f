from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..core.exceptions import ClinicianNotFound, RotationError
from .monitor import ConsecutiveAssignmentMonitor, ConsecutiveAssignmentWarning
from .roster import ClinicianRoster
from .rotation_service import RotationService

class AssignmentSource(str, Enum):
    ROTATION = "rotation"
    PREFERENCE = "preference"

@dataclass
class AssignmentResult:
    clinician_id: int
    clinician_name: Optional[str]
    source: AssignmentSource
    warnings: List[ConsecutiveAssignmentWarning] = field(default_factory=list)

class AssignmentService:
    """Routes a new patient to a clinician, by rotation or by operator choice."""
    
    def __init__(
        self,
        rotation: RotationService,
        roster: ClinicianRoster,
        monitor: ConsecutiveAssignmentMonitor,
    ):
        self.rotation = rotation
        self.roster = roster
        self.monitor = monitor
    
    def assign(
        self,
        source: AssignmentSource,
        clinician_id: Optional[int] = None,
    ) -> AssignmentResult:
        if source == AssignmentSource.ROTATION:
            return self._assign_from_rotation()
        
        if clinician_id is None:
            raise RotationError("A clinician must be chosen for a preference assignment")
        
        clinician = self.roster.get(clinician_id)
        if clinician is None:
            raise ClinicianNotFound(clinician_id)
        
        return AssignmentResult(
            clinician_id=clinician.id,
            clinician_name=clinician.name,
            source=source,
        )
    
    def _assign_from_rotation(self) -> AssignmentResult:
        picked = self.rotation.advance()
        name = self.roster.names([picked]).get(picked)
        
        result = AssignmentResult(
            clinician_id=picked,
            clinician_name=name,
            source=AssignmentSource.ROTATION,
        )
        
        warning = self.monitor.observe(picked, name)
        if warning:
            result.warnings.append(warning)
        
        return result
