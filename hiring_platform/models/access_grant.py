"""Organization access grant model"""

from sqlalchemy import Column, Boolean, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from hiring_platform.models.base import BaseModel


class OrgAccessGrant(BaseModel):
    """
    Explicit access of a user to one organization.
    With include_children the grant also covers every descendant,
    including descendants created after the grant.
    """

    __tablename__ = "org_access_grants"

    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    include_children = Column(Boolean, nullable=False, default=False, server_default="false")

    # Relationships
    user = relationship("User", back_populates="access_grants")
    organization = relationship("Organization", back_populates="access_grants")

    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_org_access_grant_user_org"),
    )

    def __repr__(self):
        return (
            f"<OrgAccessGrant(user_id={self.user_id}, organization_id={self.organization_id}, "
            f"include_children={self.include_children})>"
        )
