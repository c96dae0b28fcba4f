from typing import Iterable, List, Optional

from ..core.exceptions import NoEligibleClinicians
from ..core.security import UserRole
from ..models.clinician import Clinician

class EligibilityFilter:
    """Derives the day's rotation pool from the clinician roster."""
    
    def __init__(self, excluded_ids: Optional[Iterable[int]] = None):
        self.excluded_ids = frozenset(excluded_ids or ())
    
    def is_eligible(self, clinician: Clinician) -> bool:
        return (
            clinician.role == UserRole.DOCTOR
            and bool(clinician.eligible_for_rotation)
            and clinician.id not in self.excluded_ids
        )
    
    def pool(self, roster: Iterable[Clinician]) -> List[int]:
        """Return eligible clinician ids in roster order.
        
        Raises NoEligibleClinicians when nobody qualifies.
        """
        pool = []
        for clinician in roster:
            if self.is_eligible(clinician) and clinician.id not in pool:
                pool.append(clinician.id)
        
        if not pool:
            raise NoEligibleClinicians()
        
        return pool
