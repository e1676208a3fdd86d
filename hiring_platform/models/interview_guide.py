"""Interview guide and question models"""

from sqlalchemy import Column, String, Text, Boolean, Integer, Float, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from hiring_platform.models.base import BaseModel
from hiring_platform.models.shareable import ShareableResourceMixin


class InterviewGuide(ShareableResourceMixin, BaseModel):
    """
    Interview guide model holding an ordered set of questions,
    a scoring rubric and opening/closing templates.
    """

    __tablename__ = "interview_guides"

    CLONED_FIELDS = (
        "name",
        "description",
        "opening_template",
        "closing_template",
        "scoring_rubric",
        "is_active",
    )
    NAME_FIELD = "name"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    opening_template = Column(Text, nullable=True)
    closing_template = Column(Text, nullable=True)
    scoring_rubric = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")

    # Relationships
    questions = relationship(
        "InterviewGuideQuestion",
        back_populates="guide",
        cascade="all, delete-orphan",
        order_by="InterviewGuideQuestion.display_order",
    )

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "visibility_scope IN ('organization_only', 'organization_and_descendants', 'descendants_only')",
            name="check_guide_visibility_scope",
        ),
    )

    def __repr__(self):
        return f"<InterviewGuide(id={self.id}, name={self.name}, scope={self.visibility_scope})>"


class InterviewGuideQuestion(BaseModel):
    """Question belonging to an interview guide, ordered by display_order"""

    __tablename__ = "interview_guide_questions"

    CLONED_FIELDS = (
        "question",
        "display_order",
        "scoring_weight",
        "scoring_guidance",
        "follow_ups_enabled",
        "max_follow_ups",
    )

    interview_guide_id = Column(
        Uuid(as_uuid=True), ForeignKey("interview_guides.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    question = Column(Text, nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    scoring_weight = Column(Float, nullable=False, default=1.0)
    scoring_guidance = Column(Text, nullable=True)
    follow_ups_enabled = Column(Boolean, nullable=False, default=False, server_default="false")
    max_follow_ups = Column(Integer, nullable=False, default=0, server_default="0")

    # Relationships
    guide = relationship("InterviewGuide", back_populates="questions")

    __table_args__ = (
        CheckConstraint("scoring_weight >= 0", name="check_question_scoring_weight"),
        CheckConstraint("max_follow_ups >= 0", name="check_question_max_follow_ups"),
    )

    def __repr__(self):
        return f"<InterviewGuideQuestion(id={self.id}, order={self.display_order})>"
