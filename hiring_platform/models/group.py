"""Group model"""

from sqlalchemy import Column, String, Integer, Uuid
from sqlalchemy.orm import relationship
from hiring_platform.models.base import BaseModel


class Group(BaseModel):
    """
    Group model representing a tenant.
    Owns exactly one organization tree and one resource namespace.
    """

    __tablename__ = "groups"

    name = Column(String(255), nullable=False)
    api_key = Column(String(100), unique=True, nullable=False, index=True)
    # Set once at onboarding, never reassigned
    root_organization_id = Column(Uuid(as_uuid=True), nullable=True)
    # Bumped on every structural mutation of the tree
    structure_version = Column(Integer, nullable=False, default=0, server_default="0")

    # Relationships
    organizations = relationship(
        "Organization", back_populates="group", cascade="all, delete-orphan"
    )
    memberships = relationship(
        "GroupMembership", back_populates="group", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Group(id={self.id}, name={self.name})>"
