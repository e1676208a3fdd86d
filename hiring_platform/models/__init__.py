"""Database models package"""

from hiring_platform.models.base import BaseModel
from hiring_platform.models.group import Group
from hiring_platform.models.organization import Organization
from hiring_platform.models.user import User, GroupMembership
from hiring_platform.models.access_grant import OrgAccessGrant
from hiring_platform.models.shareable import VisibilityScope, VISIBILITY_SCOPE_VALUES
from hiring_platform.models.agent import Agent
from hiring_platform.models.interview_guide import InterviewGuide, InterviewGuideQuestion

# Export all models
__all__ = [
    "BaseModel",
    "Group",
    "Organization",
    "User",
    "GroupMembership",
    "OrgAccessGrant",
    "VisibilityScope",
    "VISIBILITY_SCOPE_VALUES",
    "Agent",
    "InterviewGuide",
    "InterviewGuideQuestion",
]
