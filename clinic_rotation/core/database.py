from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator
import logging
import redis
from .config import settings
from .exceptions import PersistenceFailure

logger = logging.getLogger(__name__)

def _engine_options(url: str) -> dict:
    """Connection options for the configured backend."""
    if url.startswith("sqlite"):
        # Sessions are handed across threads by the test client and the SSE stream
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
    }

engine = create_engine(
    settings.get_database_url,
    **_engine_options(settings.get_database_url)
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Redis client for the change notification channel
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client

# Database initialization
def init_db():
    """Initialize database tables."""
    # Register models on the metadata before creating tables
    from ..models import clinician, queue  # noqa: F401
    Base.metadata.create_all(bind=engine)

def raise_persistence_failure(db: Session, action: str, error: Exception):
    """Roll back the session and surface a storage error as PersistenceFailure."""
    db.rollback()
    logger.error(f"Failed to {action}: {str(error)}")
    raise PersistenceFailure(f"Could not {action}") from error
