from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.database import raise_persistence_failure
from ..core.exceptions import QueueAlreadyExists
from ..models.queue import DailyRotationQueue, new_generation

@dataclass(frozen=True)
class QueueRecord:
    """Point-in-time copy of a day's rotation queue."""
    id: int
    generation: str
    date: date
    order: Tuple[int, ...]
    cursor: int
    updated_at: Optional[datetime] = None
    
    @property
    def current(self) -> int:
        """Clinician the cursor points at."""
        return self.order[self.cursor]
    
    @property
    def next_cursor(self) -> int:
        return (self.cursor + 1) % len(self.order)
    
    @classmethod
    def from_row(cls, row: DailyRotationQueue) -> "QueueRecord":
        return cls(
            id=row.id,
            generation=row.generation,
            date=row.date,
            order=tuple(row.order),
            cursor=row.cursor,
            updated_at=row.updated_at,
        )

class QueueStore:
    """Durable daily rotation records. The single source of truth for the queue.
    
    Every method finishes its own transaction and hands back snapshots, so no
    caller ever holds queue state that the database has not confirmed.
    """
    
    def __init__(self, db: Session):
        self.db = db
    
    def get(self, queue_date: date) -> Optional[QueueRecord]:
        try:
            row = self.db.query(DailyRotationQueue).populate_existing().filter(
                DailyRotationQueue.date == queue_date
            ).first()
            record = QueueRecord.from_row(row) if row else None
            self.db.commit()
            return record
        except SQLAlchemyError as e:
            self._fail(f"read rotation queue for {queue_date}", e)
    
    def create(self, queue_date: date, order: Sequence[int]) -> QueueRecord:
        """Insert the record for a day.
        
        Raises QueueAlreadyExists when another writer created it first.
        """
        row = DailyRotationQueue(
            date=queue_date, generation=new_generation(), order=list(order), cursor=0
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return QueueRecord.from_row(row)
        except IntegrityError:
            self.db.rollback()
            raise QueueAlreadyExists(queue_date)
        except SQLAlchemyError as e:
            self._fail(f"create rotation queue for {queue_date}", e)
    
    def compare_and_set_cursor(self, record: QueueRecord, expected: int, new: int) -> bool:
        """Move the cursor only if it still holds the value the caller read.
        
        Returns False when the record changed, was reset or disappeared in between.
        """
        try:
            updated = self.db.query(DailyRotationQueue).filter(
                DailyRotationQueue.id == record.id,
                DailyRotationQueue.generation == record.generation,
                DailyRotationQueue.cursor == expected
            ).update({"cursor": new}, synchronize_session=False)
            
            if updated != 1:
                self.db.rollback()
                return False
            
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self._fail(f"update rotation cursor for {record.date}", e)
    
    def replace(self, queue_date: date, order: Sequence[int]) -> QueueRecord:
        """Drop the day's record and insert a fresh one in a single transaction.
        
        On failure nothing is committed, so the previous record survives.
        """
        try:
            self.db.query(DailyRotationQueue).filter(
                DailyRotationQueue.date == queue_date
            ).delete(synchronize_session=False)
            
            row = DailyRotationQueue(
                date=queue_date, generation=new_generation(), order=list(order), cursor=0
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return QueueRecord.from_row(row)
        except IntegrityError:
            self.db.rollback()
            raise QueueAlreadyExists(queue_date)
        except SQLAlchemyError as e:
            self._fail(f"replace rotation queue for {queue_date}", e)
    
    def _fail(self, action: str, error: SQLAlchemyError):
        raise_persistence_failure(self.db, action, error)
