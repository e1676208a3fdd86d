"""Organization and group schemas"""

from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID


class OrganizationBase(BaseModel):
    """Base organization schema"""
    name: str = Field(..., min_length=1, max_length=255, description="Organization name")
    city: Optional[str] = Field(None, max_length=100, description="City")
    state: Optional[str] = Field(None, max_length=100, description="State")


class OrganizationCreate(OrganizationBase):
    """Organization creation schema; new organizations always hang under a parent"""
    parent_organization_id: UUID = Field(..., description="Parent organization UUID")


class OrganizationUpdate(BaseModel):
    """Organization update schema - all fields optional"""
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Organization name")
    city: Optional[str] = Field(None, max_length=100, description="City")
    state: Optional[str] = Field(None, max_length=100, description="State")


class OrganizationMove(BaseModel):
    """Reparent request"""
    new_parent_organization_id: Optional[UUID] = Field(
        ..., description="New parent organization UUID (null is rejected: the root is fixed)"
    )


class OrganizationResponse(OrganizationBase):
    """Organization response schema"""
    id: UUID
    group_id: UUID
    parent_organization_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrganizationDetailResponse(OrganizationResponse):
    """Organization with its position in the tree"""
    depth: int = Field(..., description="Distance from the group root (root = 0)")
    child_count: int = Field(default=0, description="Number of direct children")


class OrganizationTreeNode(BaseModel):
    """Nested tree node"""
    id: UUID
    name: str
    city: Optional[str] = None
    state: Optional[str] = None
    parent_organization_id: Optional[UUID] = None
    depth: Optional[int] = None
    children: List["OrganizationTreeNode"] = Field(default_factory=list)


class AccessibleOrganization(BaseModel):
    """Organization the caller may switch to"""
    id: UUID
    name: str
    parent_organization_id: Optional[UUID] = None
    depth: Optional[int] = None


class AccessibleOrganizationsResponse(BaseModel):
    """Organizations accessible to the caller in the current group"""
    group_id: UUID
    organizations: List[AccessibleOrganization]
    total: int


class AccessCheckResponse(BaseModel):
    """Result of an access probe"""
    organization_id: UUID
    can_access: bool


class GroupCreate(BaseModel):
    """Group onboarding schema"""
    name: str = Field(..., min_length=1, max_length=255, description="Group name")
    root_organization_name: str = Field(..., min_length=1, max_length=255, description="Root organization name")
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)


class GroupResponse(BaseModel):
    """Group response schema"""
    id: UUID
    name: str
    root_organization_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class GroupCreatedResponse(GroupResponse):
    """Group response returned once at creation, including the API key"""
    api_key: str


class GrantCreate(BaseModel):
    """Grant a user access to an organization"""
    user_id: UUID
    organization_id: UUID
    include_children: bool = Field(default=False, description="Also cover every descendant, present and future")


class GrantResponse(BaseModel):
    """Grant response schema"""
    id: UUID
    user_id: UUID
    organization_id: UUID
    include_children: bool
    created_at: datetime

    class Config:
        from_attributes = True
