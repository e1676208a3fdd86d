"""User and group membership models"""

from sqlalchemy import Column, String, Boolean, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from hiring_platform.models.base import BaseModel


class User(BaseModel):
    """
    User model representing an authenticated identity.
    Users exist independently of groups and may belong to several of them.
    """

    __tablename__ = "users"

    auth_subject = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    is_superadmin = Column(Boolean, nullable=False, default=False, server_default="false")

    # Relationships
    memberships = relationship(
        "GroupMembership", back_populates="user", cascade="all, delete-orphan"
    )
    access_grants = relationship(
        "OrgAccessGrant", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id={self.id}, auth_subject={self.auth_subject})>"


class GroupMembership(BaseModel):
    """Membership of a user in a group; admins see every organization of the group"""

    __tablename__ = "group_memberships"

    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    group_id = Column(
        Uuid(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    is_admin = Column(Boolean, nullable=False, default=False, server_default="false")

    # Relationships
    user = relationship("User", back_populates="memberships")
    group = relationship("Group", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_group_membership_user_group"),
    )

    def __repr__(self):
        return f"<GroupMembership(user_id={self.user_id}, group_id={self.group_id}, is_admin={self.is_admin})>"
