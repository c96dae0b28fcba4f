from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Dict, Iterable, List, Optional

from ..core.database import raise_persistence_failure
from ..models.clinician import Clinician

class ClinicianRoster:
    """Read-only view of the clinic staff roster."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def active_members(self) -> List[Clinician]:
        try:
            return self.db.query(Clinician).filter(
                Clinician.is_active == True
            ).order_by(Clinician.name, Clinician.id).all()
        except SQLAlchemyError as e:
            raise_persistence_failure(self.db, "read the clinician roster", e)
    
    def get(self, clinician_id: int) -> Optional[Clinician]:
        try:
            return self.db.query(Clinician).filter(
                Clinician.id == clinician_id,
                Clinician.is_active == True
            ).first()
        except SQLAlchemyError as e:
            raise_persistence_failure(self.db, f"read clinician {clinician_id}", e)
    
    def names(self, clinician_ids: Iterable[int]) -> Dict[int, str]:
        """Map ids to display names; unknown or departed ids are omitted."""
        ids = list(clinician_ids)
        if not ids:
            return {}
        
        try:
            rows = self.db.query(Clinician.id, Clinician.name).filter(
                Clinician.id.in_(ids)
            ).all()
        except SQLAlchemyError as e:
            raise_persistence_failure(self.db, "read clinician names", e)
        return {row.id: row.name for row in rows}
