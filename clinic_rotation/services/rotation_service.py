from datetime import date, datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo
import logging
import random

from ..core.config import settings
from ..core.exceptions import (
    ConcurrentUpdateConflict, PersistenceFailure, QueueAlreadyExists, ResetNotConfirmed
)
from .eligibility import EligibilityFilter
from .notifier import ChangeNotifier, QueueAction
from .queue_store import QueueRecord, QueueStore
from .roster import ClinicianRoster

logger = logging.getLogger(__name__)

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

class RotationService:
    """Daily round-robin rotation of clinicians for rotation-sourced patients.
    
    The service keeps no queue state of its own: every call reads the record
    from the store and every mutation is a conditional write, so operators in
    separate processes can share one queue. ``queue_date`` defaults to today in
    the clinic's timezone.
    """
    
    def __init__(
        self,
        store: QueueStore,
        roster: ClinicianRoster,
        notifier: Optional[ChangeNotifier] = None,
        eligibility: Optional[EligibilityFilter] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
        max_retries: int = settings.QUEUE_CAS_MAX_RETRIES,
        tz: str = settings.CLINIC_TIMEZONE,
    ):
        self.store = store
        self.roster = roster
        self.notifier = notifier
        self.eligibility = eligibility or EligibilityFilter(
            settings.ROTATION_EXCLUDED_CLINICIAN_IDS
        )
        self.rng = rng or random.SystemRandom()
        self.clock = clock
        self.max_retries = max(1, max_retries)
        self.tz = ZoneInfo(tz)
    
    def today(self) -> date:
        return self.clock().astimezone(self.tz).date()
    
    def initialize(self, queue_date: Optional[date] = None) -> QueueRecord:
        """Return the day's queue, creating it with a fresh shuffle if absent."""
        queue_date = queue_date or self.today()
        
        existing = self.store.get(queue_date)
        if existing:
            return existing
        
        order = self._shuffled_pool()
        try:
            record = self.store.create(queue_date, order)
        except QueueAlreadyExists:
            winner = self.store.get(queue_date)
            if winner is None:
                raise PersistenceFailure(
                    f"Rotation queue for {queue_date} vanished while initializing"
                )
            logger.info(f"Rotation queue for {queue_date} was initialized concurrently; using it")
            return winner
        
        logger.info(f"Initialized rotation queue for {queue_date} with {len(order)} clinicians")
        self._notify(queue_date, QueueAction.INITIALIZED)
        return record
    
    def advance(self, queue_date: Optional[date] = None) -> int:
        """Consume one slot: return the clinician at the cursor and move past them."""
        queue_date = queue_date or self.today()
        
        for attempt in range(1, self.max_retries + 1):
            record = self.initialize(queue_date)
            picked = record.current
            
            if self.store.compare_and_set_cursor(record, record.cursor, record.next_cursor):
                logger.info(
                    f"Assigned clinician {picked} from rotation for {queue_date}, "
                    f"cursor {record.cursor} -> {record.next_cursor}"
                )
                self._notify(queue_date, QueueAction.ADVANCED)
                return picked
            
            logger.warning(
                f"Rotation cursor for {queue_date} moved under us "
                f"(attempt {attempt}/{self.max_retries}); re-reading"
            )
        
        logger.error(f"Giving up on rotation advance for {queue_date} after {self.max_retries} attempts")
        raise ConcurrentUpdateConflict(self.max_retries)
    
    def peek(self, queue_date: Optional[date] = None) -> Optional[int]:
        """Who the next advance would return. Never creates or mutates."""
        record = self.store.get(queue_date or self.today())
        return record.current if record else None
    
    def snapshot(self, queue_date: Optional[date] = None) -> Optional[QueueRecord]:
        return self.store.get(queue_date or self.today())
    
    def reset(self, confirmed: bool, queue_date: Optional[date] = None) -> QueueRecord:
        """Discard the day's queue and start over with a new shuffle at cursor 0."""
        if not confirmed:
            raise ResetNotConfirmed()
        
        queue_date = queue_date or self.today()
        order = self._shuffled_pool()
        
        try:
            record = self.store.replace(queue_date, order)
        except QueueAlreadyExists:
            # Another reset committed first; its queue is just as fresh
            record = self.store.get(queue_date)
            if record is None:
                raise PersistenceFailure(f"Rotation queue for {queue_date} vanished while resetting")
            logger.info(f"Rotation queue for {queue_date} was reset concurrently; using it")
            return record
        
        logger.info(f"Reset rotation queue for {queue_date} with {len(order)} clinicians")
        self._notify(queue_date, QueueAction.RESET)
        return record
    
    def _shuffled_pool(self):
        order = self.eligibility.pool(self.roster.active_members())
        self.rng.shuffle(order)
        return order
    
    def _notify(self, queue_date: date, action: QueueAction):
        if self.notifier is not None:
            self.notifier.publish(queue_date, action)
