from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload, OPERATOR_ROLES
)
from ..services.assignment_service import AssignmentService
from ..services.monitor import ConsecutiveAssignmentMonitor
from ..services.notifier import ChangeNotifier
from ..services.queue_store import QueueStore
from ..services.roster import ClinicianRoster
from ..services.rotation_service import RotationService

async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    token = credentials.credentials
    
    # Verify token
    token_payload = verify_token(token)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")
    
    # Check if token is access token
    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")
    
    if not token_payload.sub or token_payload.role is None:
        raise AuthenticationError("Invalid token payload")
    
    return token_payload

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific user roles."""
    async def role_checker(
        token_payload: TokenPayload = Depends(get_current_user_token)
    ) -> TokenPayload:
        if token_payload.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return token_payload
    
    return role_checker

# Specific role dependencies
async def get_operator(
    token_payload: TokenPayload = Depends(require_role(OPERATOR_ROLES))
) -> TokenPayload:
    """Require a front-office operator (front desk, assistant or admin)."""
    return token_payload

async def get_admin(
    token_payload: TokenPayload = Depends(require_role([UserRole.ADMIN]))
) -> TokenPayload:
    """Require admin role."""
    return token_payload

# Service dependencies
def get_notifier(redis_client = Depends(get_redis)) -> ChangeNotifier:
    return ChangeNotifier(redis_client, settings.QUEUE_CHANNEL)

def get_roster(db: Session = Depends(get_db)) -> ClinicianRoster:
    return ClinicianRoster(db)

def get_rotation_service(
    db: Session = Depends(get_db),
    roster: ClinicianRoster = Depends(get_roster),
    notifier: ChangeNotifier = Depends(get_notifier)
) -> RotationService:
    return RotationService(QueueStore(db), roster, notifier=notifier)

def get_monitor(request: Request) -> ConsecutiveAssignmentMonitor:
    """The monitor lives for the whole process, one per application."""
    return request.app.state.assignment_monitor

def get_assignment_service(
    rotation: RotationService = Depends(get_rotation_service),
    roster: ClinicianRoster = Depends(get_roster),
    monitor: ConsecutiveAssignmentMonitor = Depends(get_monitor)
) -> AssignmentService:
    return AssignmentService(rotation, roster, monitor)
