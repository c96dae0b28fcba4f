from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum as SQLEnum
from sqlalchemy.sql import func

from ..core.database import Base
from ..core.security import UserRole

class Clinician(Base):
    """Roster member. Owned by the staff management collaborator, read-only here."""
    __tablename__ = "clinicians"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)
    
    # Rotation
    eligible_for_rotation = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    
    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    
    def __repr__(self):
        return f"<Clinician(id={self.id}, name='{self.name}', role='{self.role}')>"
