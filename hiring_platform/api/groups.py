"""Group onboarding and organization tree endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from hiring_platform.api.dependencies import get_current_user, get_hierarchy_service, get_identity
from hiring_platform.models import User
from hiring_platform.schemas.organization import (
    GrantCreate,
    GrantResponse,
    GroupCreate,
    GroupCreatedResponse,
    OrganizationTreeNode,
)
from hiring_platform.services.hierarchy_service import HierarchyService
from hiring_platform.services.identity import IdentityContext

router = APIRouter(prefix="/api/v1/groups", tags=["Groups"])


@router.post("", response_model=GroupCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    user: User = Depends(get_current_user),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """
    Create a group and its root organization (superadmins only)

    The API key is only returned here.
    """
    group = service.create_group(
        user.id,
        payload.name,
        payload.root_organization_name,
        payload.city,
        payload.state,
    )
    return GroupCreatedResponse.model_validate(group)


@router.get("/tree", response_model=OrganizationTreeNode)
def get_group_tree(
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Nested organization tree of the caller's group (group admins only)"""
    return service.get_tree(identity)


@router.post("/grants", response_model=GrantResponse, status_code=status.HTTP_201_CREATED)
def grant_access(
    payload: GrantCreate,
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Grant a group member access to an organization (group admins only)"""
    grant = service.grant_access(identity, payload.user_id, payload.organization_id, payload.include_children)
    return GrantResponse.model_validate(grant)


@router.delete("/grants/{user_id}/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_access(
    user_id: UUID,
    organization_id: UUID,
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Revoke a member's grant on an organization (group admins only)"""
    service.revoke_access(identity, user_id, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
