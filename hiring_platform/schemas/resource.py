"""Shareable resource schemas (agents and interview guides)"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from uuid import UUID

from hiring_platform.models.shareable import VISIBILITY_SCOPE_VALUES, VisibilityScope


def _check_scope(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in VISIBILITY_SCOPE_VALUES:
        raise ValueError(f"visibility_scope must be one of: {', '.join(VISIBILITY_SCOPE_VALUES)}")
    return value


class ResourceFilters(BaseModel):
    """Filters, sorting and pagination applied to each listing bucket"""
    name: Optional[str] = Field(None, description="Case-insensitive substring of the name")
    is_active: Optional[bool] = Field(None, description="Interview guides only")
    created_by: Optional[str] = Field(None, description="Exact creator")
    sort_by: Literal["recent", "alphabetical"] = Field(default="recent")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=100)


class ResourceBase(BaseModel):
    """Ownership fields shared by agents and guides"""
    organization_id: Optional[UUID] = Field(None, description="Owning organization (null = group level)")
    visibility_scope: str = Field(
        default=VisibilityScope.ORGANIZATION_ONLY.value, description="Visibility scope"
    )

    @field_validator("visibility_scope")
    @classmethod
    def validate_visibility_scope(cls, value: Optional[str]) -> Optional[str]:
        return _check_scope(value)


class ResourceResponseBase(BaseModel):
    """Common response fields"""
    id: UUID
    group_id: UUID
    organization_id: Optional[UUID] = None
    visibility_scope: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_by: Optional[str] = None
    updated_at: datetime
    visibility: Optional[str] = Field(None, description="local or inherited, relative to the viewing organization")
    usable_here: Optional[bool] = Field(None, description="Whether the viewing organization may use the resource")

    class Config:
        from_attributes = True


# Agents

class AgentFields(BaseModel):
    """Agent payload"""
    display_name: str = Field(..., min_length=1, max_length=255)
    profile_image_url: Optional[str] = None
    system_prompt: Optional[str] = None
    interview_guidelines: Optional[str] = None
    voice_provider: Optional[str] = Field(None, max_length=50)
    voice_type: Optional[str] = Field(None, max_length=50)
    voice_name: Optional[str] = Field(None, max_length=255)
    voice_id: Optional[str] = Field(None, max_length=255)
    voice_stability: Optional[float] = Field(None, ge=0, le=1)
    voice_similarity_boost: Optional[float] = Field(None, ge=0, le=1)


class AgentCreate(ResourceBase, AgentFields):
    """Agent creation schema"""


class AgentUpdate(BaseModel):
    """Agent update schema - all fields optional"""
    display_name: Optional[str] = Field(None, min_length=1, max_length=255)
    profile_image_url: Optional[str] = None
    system_prompt: Optional[str] = None
    interview_guidelines: Optional[str] = None
    voice_provider: Optional[str] = Field(None, max_length=50)
    voice_type: Optional[str] = Field(None, max_length=50)
    voice_name: Optional[str] = Field(None, max_length=255)
    voice_id: Optional[str] = Field(None, max_length=255)
    voice_stability: Optional[float] = Field(None, ge=0, le=1)
    voice_similarity_boost: Optional[float] = Field(None, ge=0, le=1)
    visibility_scope: Optional[str] = None

    @field_validator("visibility_scope")
    @classmethod
    def validate_visibility_scope(cls, value: Optional[str]) -> Optional[str]:
        return _check_scope(value)


class AgentResponse(ResourceResponseBase, AgentFields):
    """Agent response schema"""


# Interview guides

class QuestionFields(BaseModel):
    """Interview guide question payload"""
    question: str = Field(..., min_length=1)
    display_order: Optional[int] = Field(None, ge=0)
    scoring_weight: float = Field(default=1.0, ge=0)
    scoring_guidance: Optional[str] = None
    follow_ups_enabled: bool = False
    max_follow_ups: int = Field(default=0, ge=0)


class QuestionResponse(QuestionFields):
    """Question response schema"""
    id: UUID
    interview_guide_id: UUID
    display_order: int

    class Config:
        from_attributes = True


class InterviewGuideFields(BaseModel):
    """Interview guide payload"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    opening_template: Optional[str] = None
    closing_template: Optional[str] = None
    scoring_rubric: Optional[str] = None
    is_active: bool = True


class InterviewGuideCreate(ResourceBase, InterviewGuideFields):
    """Interview guide creation schema"""
    questions: List[QuestionFields] = Field(default_factory=list)


class InterviewGuideUpdate(BaseModel):
    """Interview guide update schema; questions, when given, replace the whole list"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    opening_template: Optional[str] = None
    closing_template: Optional[str] = None
    scoring_rubric: Optional[str] = None
    is_active: Optional[bool] = None
    visibility_scope: Optional[str] = None
    questions: Optional[List[QuestionFields]] = None

    @field_validator("visibility_scope")
    @classmethod
    def validate_visibility_scope(cls, value: Optional[str]) -> Optional[str]:
        return _check_scope(value)


class InterviewGuideResponse(ResourceResponseBase, InterviewGuideFields):
    """Interview guide response schema"""
    questions: List[QuestionResponse] = Field(default_factory=list)


# Listings and cloning

class CloneRequest(BaseModel):
    """Clone an inherited resource into an organization"""
    target_organization_id: Optional[UUID] = Field(
        None, description="Defaults to the caller's viewing organization"
    )


class AgentListResponse(BaseModel):
    """Local and inherited agents for one viewing organization"""
    organization_id: UUID
    local: List[AgentResponse]
    inherited: List[AgentResponse]
    local_total: int
    inherited_total: int
    page: int
    page_size: int


class InterviewGuideListResponse(BaseModel):
    """Local and inherited interview guides for one viewing organization"""
    organization_id: UUID
    local: List[InterviewGuideResponse]
    inherited: List[InterviewGuideResponse]
    local_total: int
    inherited_total: int
    page: int
    page_size: int
