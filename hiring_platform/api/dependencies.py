"""API dependencies for authentication and request identity"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from hiring_platform.api.errors import unauthorized_exception, validation_exception
from hiring_platform.database import get_db
from hiring_platform.models import User
from hiring_platform.services.auth_service import AuthService
from hiring_platform.services.hierarchy_service import HierarchyService
from hiring_platform.services.identity import IdentityContext

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _parse_uuid(value: Optional[str], header: str, request: Request) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        raise validation_exception(f"{header} header must be a UUID", instance=request.url.path)


def get_hierarchy_service(db: Session = Depends(get_db)) -> HierarchyService:
    return HierarchyService(db)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Get current authenticated user from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or names an unknown user
    """
    if not credentials:
        raise unauthorized_exception("Missing authentication credentials", request.url.path)

    payload = AuthService.validate_token(credentials.credentials, token_type="access")
    if not payload:
        raise unauthorized_exception("Invalid or expired token", request.url.path)

    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise unauthorized_exception("Invalid user ID in token", request.url.path)

    user = db.get(User, user_id)
    if user is None:
        raise unauthorized_exception("User not found", request.url.path)

    return user


def get_identity(
    request: Request,
    x_group_id: Optional[str] = Header(None),
    x_organization_id: Optional[str] = Header(None),
    user: User = Depends(get_current_user),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> IdentityContext:
    """
    Identity of the caller inside the group named by X-Group-Id.

    X-Organization-Id, when present, is the default viewing organization.
    """
    group_id = _parse_uuid(x_group_id, "X-Group-Id", request)
    if group_id is None:
        raise validation_exception("X-Group-Id header is required", instance=request.url.path)
    viewing_id = _parse_uuid(x_organization_id, "X-Organization-Id", request)

    return service.resolve_identity(user.id, group_id, viewing_id)
