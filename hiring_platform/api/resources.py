"""Agent and interview guide endpoints: listing, CRUD and cloning"""

from typing import Optional, Type
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from hiring_platform.api.dependencies import get_hierarchy_service, get_identity
from hiring_platform.config import settings
from hiring_platform.models.shareable import VisibilityScope
from hiring_platform.schemas.resource import (
    AgentCreate,
    AgentListResponse,
    AgentResponse,
    AgentUpdate,
    CloneRequest,
    InterviewGuideCreate,
    InterviewGuideListResponse,
    InterviewGuideResponse,
    InterviewGuideUpdate,
    ResourceFilters,
)
from hiring_platform.services.hierarchy_service import HierarchyService
from hiring_platform.services.identity import IdentityContext
from hiring_platform.services.visibility_resolver import Visibility


def get_filters(
    name: Optional[str] = Query(None, description="Case-insensitive name search"),
    is_active: Optional[bool] = Query(None, description="Active flag (interview guides)"),
    created_by: Optional[str] = Query(None, description="Creator"),
    sort_by: str = Query("recent", pattern="^(recent|alphabetical)$", description="recent or alphabetical"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page, applied to each bucket"),
) -> ResourceFilters:
    return ResourceFilters(
        name=name,
        is_active=is_active,
        created_by=created_by,
        sort_by=sort_by,
        page=page,
        page_size=page_size,
    )


def build_resource_router(
    resource_type: str,
    prefix: str,
    tag: str,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    response_schema: Type[BaseModel],
    list_schema: Type[BaseModel],
) -> APIRouter:
    """
    Router for one shareable resource type.

    Every route resolves visibility from the viewing organization given by
    the organization_id query parameter or the X-Organization-Id header.
    """
    router = APIRouter(prefix=prefix, tags=[tag])

    def serialize(resource, visibility: Visibility, usable: bool):
        return response_schema.model_validate(resource).model_copy(
            update={"visibility": visibility.value, "usable_here": usable}
        )

    @router.get("", response_model=list_schema)
    def list_resources(
        organization_id: Optional[UUID] = Query(None, description="Viewing organization"),
        filters: ResourceFilters = Depends(get_filters),
        identity: IdentityContext = Depends(get_identity),
        service: HierarchyService = Depends(get_hierarchy_service),
    ):
        """
        Local and inherited resources for the viewing organization

        Local: owned by the organization (or by the group). Inherited: shared
        down by an ancestor. Each bucket is filtered and paginated on its own.
        """
        listing = service.list_resources(identity, resource_type, organization_id, filters)
        return list_schema(
            organization_id=listing.organization_id,
            local=[serialize(r, Visibility.LOCAL, listing.is_usable(r)) for r in listing.local],
            inherited=[serialize(r, Visibility.INHERITED, listing.is_usable(r)) for r in listing.inherited],
            local_total=listing.local_total,
            inherited_total=listing.inherited_total,
            page=listing.page,
            page_size=listing.page_size,
        )

    @router.post("", response_model=response_schema, status_code=status.HTTP_201_CREATED)
    def create_resource(
        payload: create_schema,
        identity: IdentityContext = Depends(get_identity),
        service: HierarchyService = Depends(get_hierarchy_service),
    ):
        fields = payload.model_dump(exclude={"questions"})
        children = [q.model_dump() for q in getattr(payload, "questions", None) or []]
        resource = service.create_resource(identity, resource_type, fields, children)
        usable = resource.organization_id is None or (
            resource.visibility_scope != VisibilityScope.DESCENDANTS_ONLY.value
        )
        return serialize(resource, Visibility.LOCAL, usable)

    @router.get("/{resource_id}", response_model=response_schema)
    def get_resource(
        resource_id: UUID,
        organization_id: Optional[UUID] = Query(None, description="Viewing organization"),
        identity: IdentityContext = Depends(get_identity),
        service: HierarchyService = Depends(get_hierarchy_service),
    ):
        resource, visibility, usable = service.get_resource(identity, resource_type, resource_id, organization_id)
        return serialize(resource, visibility, usable)

    @router.patch("/{resource_id}", response_model=response_schema)
    def update_resource(
        resource_id: UUID,
        payload: update_schema,
        organization_id: Optional[UUID] = Query(None, description="Viewing organization"),
        identity: IdentityContext = Depends(get_identity),
        service: HierarchyService = Depends(get_hierarchy_service),
    ):
        """Update a resource owned by the viewing organization; inherited resources must be cloned first"""
        changes = payload.model_dump(exclude_unset=True, exclude={"questions"})
        questions = getattr(payload, "questions", None)
        children = [q.model_dump() for q in questions] if questions is not None else None
        service.update_resource(identity, resource_type, resource_id, changes, children, organization_id)
        resource, visibility, usable = service.get_resource(identity, resource_type, resource_id, organization_id)
        return serialize(resource, visibility, usable)

    @router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_resource(
        resource_id: UUID,
        organization_id: Optional[UUID] = Query(None, description="Viewing organization"),
        identity: IdentityContext = Depends(get_identity),
        service: HierarchyService = Depends(get_hierarchy_service),
    ):
        service.delete_resource(identity, resource_type, resource_id, organization_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post("/{resource_id}/clone", response_model=response_schema, status_code=status.HTTP_201_CREATED)
    def clone_resource(
        resource_id: UUID,
        payload: Optional[CloneRequest] = None,
        identity: IdentityContext = Depends(get_identity),
        service: HierarchyService = Depends(get_hierarchy_service),
    ):
        """
        Copy an inherited resource into the target organization

        The copy is local to the target, starts as organization_only, and is
        independent of the source from then on.
        """
        target = payload.target_organization_id if payload else None
        clone = service.clone_resource(identity, resource_type, resource_id, target)
        return serialize(clone, Visibility.LOCAL, True)

    return router


agents_router = build_resource_router(
    "agent",
    "/api/v1/agents",
    "Agents",
    AgentCreate,
    AgentUpdate,
    AgentResponse,
    AgentListResponse,
)

interview_guides_router = build_resource_router(
    "interview_guide",
    "/api/v1/interview-guides",
    "Interview Guides",
    InterviewGuideCreate,
    InterviewGuideUpdate,
    InterviewGuideResponse,
    InterviewGuideListResponse,
)
