from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
import logging
import threading

from ..core.config import settings
from .rotation_service import utc_now

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class AssignmentEntry:
    clinician_id: int
    timestamp: datetime

@dataclass(frozen=True)
class ConsecutiveAssignmentWarning:
    clinician_id: int
    clinician_name: str
    count: int
    
    @property
    def message(self) -> str:
        return (
            f"Attention: {self.clinician_name} is receiving their "
            f"{ordinal(self.count)} consecutive patient from the rotation"
        )

def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"

class ConsecutiveAssignmentMonitor:
    """Advisory tracker for rotation assignments piling up on one clinician.
    
    Keeps the last few rotation-sourced assignments of this process only.
    Warnings are nudges for the operator and never block an assignment.
    """
    
    def __init__(
        self,
        window_size: int = settings.CONSECUTIVE_WINDOW_SIZE,
        threshold: timedelta = timedelta(minutes=settings.CONSECUTIVE_THRESHOLD_MINUTES),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.window = deque(maxlen=window_size)
        self.threshold = threshold
        self.clock = clock
        self._lock = threading.Lock()
    
    def observe(
        self,
        clinician_id: int,
        clinician_name: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> Optional[ConsecutiveAssignmentWarning]:
        """Record a rotation assignment; return a warning if it repeats recently."""
        now = at or self.clock()
        
        with self._lock:
            recent = [
                entry for entry in self.window
                if entry.clinician_id == clinician_id
                and now - entry.timestamp < self.threshold
            ]
            self.window.append(AssignmentEntry(clinician_id=clinician_id, timestamp=now))
        
        if not recent:
            return None
        
        warning = ConsecutiveAssignmentWarning(
            clinician_id=clinician_id,
            clinician_name=clinician_name or f"Clinician {clinician_id}",
            count=len(recent) + 1,
        )
        logger.warning(warning.message)
        return warning
    
    def clear(self):
        with self._lock:
            self.window.clear()
