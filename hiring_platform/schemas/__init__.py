"""API schemas package"""

from .organization import (
    OrganizationCreate,
    OrganizationUpdate,
    OrganizationMove,
    OrganizationResponse,
    OrganizationDetailResponse,
    OrganizationTreeNode,
    GroupCreate,
    GroupResponse,
)
from .resource import (
    ResourceFilters,
    AgentCreate,
    AgentUpdate,
    AgentResponse,
    InterviewGuideCreate,
    InterviewGuideUpdate,
    InterviewGuideResponse,
    CloneRequest,
)

__all__ = [
    "OrganizationCreate",
    "OrganizationUpdate",
    "OrganizationMove",
    "OrganizationResponse",
    "OrganizationDetailResponse",
    "OrganizationTreeNode",
    "GroupCreate",
    "GroupResponse",
    "ResourceFilters",
    "AgentCreate",
    "AgentUpdate",
    "AgentResponse",
    "InterviewGuideCreate",
    "InterviewGuideUpdate",
    "InterviewGuideResponse",
    "CloneRequest",
]
