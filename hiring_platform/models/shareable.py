"""Columns shared by every resource that can be inherited down the organization tree"""

import enum
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import declared_attr


class VisibilityScope(str, enum.Enum):
    """Which organizations, relative to the owner, may see a resource"""
    ORGANIZATION_ONLY = "organization_only"
    ORGANIZATION_AND_DESCENDANTS = "organization_and_descendants"
    DESCENDANTS_ONLY = "descendants_only"


VISIBILITY_SCOPE_VALUES = tuple(scope.value for scope in VisibilityScope)


class ShareableResourceMixin:
    """
    Ownership, visibility and audit columns for Agent and InterviewGuide.

    Subclasses declare which payload columns a clone copies (CLONED_FIELDS)
    and which column carries the display name (NAME_FIELD).
    """

    CLONED_FIELDS: tuple = ()
    NAME_FIELD: str = "name"

    @declared_attr
    def group_id(cls):
        return Column(
            Uuid(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"),
            nullable=False, index=True
        )

    @declared_attr
    def organization_id(cls):
        # NULL for group-level resources that every organization owns
        return Column(
            Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=True, index=True
        )

    visibility_scope = Column(
        String(50),
        nullable=False,
        default=VisibilityScope.ORGANIZATION_ONLY.value,
        server_default=VisibilityScope.ORGANIZATION_ONLY.value,
    )

    # Audit
    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False, server_default="false", index=True)
    deleted_by = Column(String(255), nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    # Provenance only; nothing reads it back
    cloned_from_id = Column(Uuid(as_uuid=True), nullable=True)
