"""Organization management endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from hiring_platform.api.dependencies import get_hierarchy_service, get_identity
from hiring_platform.schemas.organization import (
    AccessCheckResponse,
    AccessibleOrganization,
    AccessibleOrganizationsResponse,
    OrganizationCreate,
    OrganizationDetailResponse,
    OrganizationMove,
    OrganizationResponse,
    OrganizationUpdate,
)
from hiring_platform.services.hierarchy_service import HierarchyService
from hiring_platform.services.identity import IdentityContext

router = APIRouter(prefix="/api/v1/organizations", tags=["Organizations"])


@router.get("/accessible", response_model=AccessibleOrganizationsResponse)
def list_accessible_organizations(
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """
    Organizations the caller can switch to in the current group

    Derived from the caller's grants against the current tree.
    """
    organizations = [AccessibleOrganization(**item) for item in service.accessible_organizations(identity)]
    return AccessibleOrganizationsResponse(
        group_id=identity.group_id,
        organizations=organizations,
        total=len(organizations),
    )


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
def create_organization(
    payload: OrganizationCreate,
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Create an organization under an accessible parent"""
    organization = service.create_organization(
        identity,
        payload.parent_organization_id,
        payload.name,
        payload.city,
        payload.state,
    )
    return OrganizationResponse.model_validate(organization)


@router.get("/{organization_id}", response_model=OrganizationDetailResponse)
def get_organization(
    organization_id: UUID,
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    organization, depth, child_count = service.get_organization(identity, organization_id)
    response = OrganizationResponse.model_validate(organization)
    return OrganizationDetailResponse(**response.model_dump(), depth=depth, child_count=child_count)


@router.patch("/{organization_id}", response_model=OrganizationResponse)
def update_organization(
    organization_id: UUID,
    payload: OrganizationUpdate,
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Rename or relocate (city/state) an organization; the parent changes through /move"""
    changes = payload.model_dump(exclude_unset=True)
    organization = service.update_organization(identity, organization_id, changes)
    return OrganizationResponse.model_validate(organization)


@router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_organization(
    organization_id: UUID,
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Delete a leaf organization that owns no agents or interview guides"""
    service.delete_organization(identity, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{organization_id}/move", response_model=OrganizationResponse)
def move_organization(
    organization_id: UUID,
    payload: OrganizationMove,
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """
    Reparent an organization; its whole subtree moves with it

    Access and inherited visibility follow the new position immediately.
    """
    organization = service.move_organization(identity, organization_id, payload.new_parent_organization_id)
    return OrganizationResponse.model_validate(organization)


@router.get("/{organization_id}/access", response_model=AccessCheckResponse)
def check_access(
    organization_id: UUID,
    identity: IdentityContext = Depends(get_identity),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Whether the caller may act on an organization"""
    return AccessCheckResponse(
        organization_id=organization_id,
        can_access=service.can_access(identity, organization_id),
    )
