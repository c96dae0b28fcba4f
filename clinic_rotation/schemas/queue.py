from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ..services.assignment_service import AssignmentResult, AssignmentSource
from ..services.queue_store import QueueRecord

class ClinicianSlot(BaseModel):
    clinician_id: Optional[int] = None
    clinician_name: Optional[str] = None

class QueueEntry(BaseModel):
    position: int
    clinician_id: int
    clinician_name: Optional[str] = None
    is_next: bool = False

class QueueStateResponse(BaseModel):
    date: date
    cursor: int
    size: int
    next_clinician: ClinicianSlot
    entries: List[QueueEntry]
    updated_at: Optional[datetime] = None
    
    @classmethod
    def from_record(cls, record: QueueRecord, names: Dict[int, str]) -> "QueueStateResponse":
        entries = [
            QueueEntry(
                position=position,
                clinician_id=clinician_id,
                clinician_name=names.get(clinician_id),
                is_next=position == record.cursor,
            )
            for position, clinician_id in enumerate(record.order)
        ]
        return cls(
            date=record.date,
            cursor=record.cursor,
            size=len(record.order),
            next_clinician=ClinicianSlot(
                clinician_id=record.current,
                clinician_name=names.get(record.current),
            ),
            entries=entries,
            updated_at=record.updated_at,
        )

class ResetRequest(BaseModel):
    confirmed: bool = False

class AssignmentRequest(BaseModel):
    source: AssignmentSource
    clinician_id: Optional[int] = None

class AssignmentWarning(BaseModel):
    clinician_id: int
    count: int
    message: str

class AssignmentResponse(BaseModel):
    clinician_id: int
    clinician_name: Optional[str] = None
    source: AssignmentSource
    warnings: List[AssignmentWarning] = Field(default_factory=list)
    
    @classmethod
    def from_result(cls, result: AssignmentResult) -> "AssignmentResponse":
        return cls(
            clinician_id=result.clinician_id,
            clinician_name=result.clinician_name,
            source=result.source,
            warnings=[
                AssignmentWarning(
                    clinician_id=warning.clinician_id,
                    count=warning.count,
                    message=warning.message,
                )
                for warning in result.warnings
            ],
        )
