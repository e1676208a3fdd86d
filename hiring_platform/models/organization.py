"""Organization model"""

from sqlalchemy import Column, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from hiring_platform.models.base import BaseModel


class Organization(BaseModel):
    """
    Organization model representing a location or branch inside a group.
    Organizations form a tree per group; only the group root has no parent.
    """

    __tablename__ = "organizations"

    group_id = Column(
        Uuid(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    parent_organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)

    # Relationships
    group = relationship("Group", back_populates="organizations")
    access_grants = relationship(
        "OrgAccessGrant", back_populates="organization", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Organization(id={self.id}, name={self.name}, parent={self.parent_organization_id})>"
