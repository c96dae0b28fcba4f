from sqlalchemy import Column, Integer, String, Date, DateTime, JSON, CheckConstraint
from sqlalchemy.sql import func
import uuid

from ..core.database import Base

def new_generation() -> str:
    return uuid.uuid4().hex

class DailyRotationQueue(Base):
    __tablename__ = "daily_rotation_queue"
    __table_args__ = (
        CheckConstraint("cursor >= 0", name="ck_rotation_cursor_non_negative"),
        {"sqlite_autoincrement": True},
    )
    
    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    
    # New token for every created or reset rotation; conditional updates must match it
    generation = Column(String(32), nullable=False, default=new_generation)
    
    # Clinician ids in rotation order, fixed for the day unless reset
    order = Column("queue_order", JSON, nullable=False)
    cursor = Column(Integer, nullable=False, default=0)
    
    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    
    def __repr__(self):
        return f"<DailyRotationQueue(id={self.id}, date='{self.date}', generation='{self.generation}', cursor={self.cursor})>"
