"""Agent model"""

from sqlalchemy import Column, String, Text, Float, CheckConstraint
from hiring_platform.models.base import BaseModel
from hiring_platform.models.shareable import ShareableResourceMixin


class Agent(ShareableResourceMixin, BaseModel):
    """
    Agent model representing an AI interviewer persona.
    Owned by one organization and optionally shared with its descendants.
    """

    __tablename__ = "agents"

    CLONED_FIELDS = (
        "display_name",
        "profile_image_url",
        "system_prompt",
        "interview_guidelines",
        "voice_provider",
        "voice_type",
        "voice_name",
        "voice_id",
        "voice_stability",
        "voice_similarity_boost",
    )
    NAME_FIELD = "display_name"

    display_name = Column(String(255), nullable=False)
    profile_image_url = Column(Text, nullable=True)
    system_prompt = Column(Text, nullable=True)
    interview_guidelines = Column(Text, nullable=True)
    voice_provider = Column(String(50), nullable=True)
    voice_type = Column(String(50), nullable=True)  # preset, cloned
    voice_name = Column(String(255), nullable=True)
    voice_id = Column(String(255), nullable=True)
    voice_stability = Column(Float, nullable=True)
    voice_similarity_boost = Column(Float, nullable=True)

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "visibility_scope IN ('organization_only', 'organization_and_descendants', 'descendants_only')",
            name="check_agent_visibility_scope",
        ),
    )

    def __repr__(self):
        return f"<Agent(id={self.id}, display_name={self.display_name}, scope={self.visibility_scope})>"
