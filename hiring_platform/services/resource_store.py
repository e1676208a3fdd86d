"""Typed storage for shareable resources and their child collections"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from hiring_platform.database import transaction
from hiring_platform.models import Agent, InterviewGuide, InterviewGuideQuestion
from hiring_platform.services.exceptions import HierarchyValidationError

logger = logging.getLogger(__name__)


class ResourceKind:
    """Describes one shareable resource type: its model and its owned child collection"""

    def __init__(
        self,
        name: str,
        label: str,
        model,
        child_attribute: Optional[str] = None,
        child_model=None,
    ):
        self.name = name
        self.label = label
        self.model = model
        self.child_attribute = child_attribute
        self.child_model = child_model

    @property
    def name_field(self) -> str:
        return self.model.NAME_FIELD

    @property
    def has_children(self) -> bool:
        return self.child_attribute is not None

    def __repr__(self):
        return f"<ResourceKind(name={self.name})>"


AGENT = ResourceKind(name="agent", label="Agent", model=Agent)
INTERVIEW_GUIDE = ResourceKind(
    name="interview_guide",
    label="Interview guide",
    model=InterviewGuide,
    child_attribute="questions",
    child_model=InterviewGuideQuestion,
)

RESOURCE_KINDS: Dict[str, ResourceKind] = {kind.name: kind for kind in (AGENT, INTERVIEW_GUIDE)}


def get_resource_kind(resource_type: str) -> ResourceKind:
    """Look up a resource kind by name ("agent" or "interview_guide")"""
    kind = RESOURCE_KINDS.get(resource_type)
    if kind is None:
        allowed = ", ".join(sorted(RESOURCE_KINDS))
        raise HierarchyValidationError(f"resource_type must be one of: {allowed}")
    return kind


class SqlResourceStore:
    """
    Resource Store backed by a SQLAlchemy session.

    Reads return live (not soft-deleted) rows unless asked otherwise; writes
    only flush, so the surrounding transaction decides when they commit.
    """

    def __init__(self, db: Session):
        """Initialize with database session"""
        self.db = db

    def transaction(self):
        """Atomic block on the store's session (savepoint when already in a transaction)"""
        return transaction(self.db)

    def get(self, resource_type: str, resource_id: UUID, include_deleted: bool = False):
        """
        Get a resource by id, with its child collection loaded.

        Returns:
            The resource row, or None if it does not exist (or is soft-deleted)
        """
        kind = get_resource_kind(resource_type)
        query = select(kind.model).where(kind.model.id == resource_id)
        if kind.has_children:
            query = query.options(selectinload(getattr(kind.model, kind.child_attribute)))
        if not include_deleted:
            query = query.where(kind.model.is_deleted.is_(False))
        return self.db.execute(query).scalar_one_or_none()

    def get_resources(
        self,
        group_id: UUID,
        resource_type: str,
        owner_organization_ids: Optional[Iterable[UUID]] = None,
        include_unowned: bool = True,
    ) -> List[Any]:
        """
        Get live resources of a group.

        Args:
            group_id: Group the resources belong to
            resource_type: "agent" or "interview_guide"
            owner_organization_ids: Restrict to these owners (None means every owner)
            include_unowned: Also return group-level resources with no owner

        Returns:
            List of resource rows ordered by creation time, newest first
        """
        kind = get_resource_kind(resource_type)
        model = kind.model
        query = select(model).where(model.group_id == group_id, model.is_deleted.is_(False))

        if owner_organization_ids is not None:
            owners = list(owner_organization_ids)
            owner_clause = model.organization_id.in_(owners)
            if include_unowned:
                owner_clause = or_(owner_clause, model.organization_id.is_(None))
            query = query.where(owner_clause)

        if kind.has_children:
            query = query.options(selectinload(getattr(model, kind.child_attribute)))

        query = query.order_by(model.created_at.desc())
        return list(self.db.execute(query).scalars().all())

    def name_exists(
        self,
        resource_type: str,
        group_id: UUID,
        organization_id: Optional[UUID],
        name: str,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        """Case-insensitive check for a live resource with the same name at one owner"""
        kind = get_resource_kind(resource_type)
        model = kind.model
        name_column = getattr(model, kind.name_field)

        query = select(func.count(model.id)).where(
            model.group_id == group_id,
            model.is_deleted.is_(False),
            func.lower(name_column) == name.strip().lower(),
        )
        if organization_id is None:
            query = query.where(model.organization_id.is_(None))
        else:
            query = query.where(model.organization_id == organization_id)
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)

        return self.db.execute(query).scalar_one() > 0

    def snapshot(self, resource) -> Dict[str, Any]:
        """
        Deep snapshot of a resource's copyable payload.

        Returns:
            {"fields": {...}, "children": [{...}, ...]} built from plain values,
            sharing nothing mutable with the source row
        """
        kind = self._kind_for(resource)
        fields = {name: getattr(resource, name) for name in kind.model.CLONED_FIELDS}

        children: List[Dict[str, Any]] = []
        if kind.has_children:
            rows = sorted(
                getattr(resource, kind.child_attribute),
                key=lambda child: child.display_order,
            )
            for child in rows:
                children.append(
                    {name: getattr(child, name) for name in kind.child_model.CLONED_FIELDS}
                )

        return {"fields": fields, "children": children}

    def create(
        self,
        resource_type: str,
        fields: Dict[str, Any],
        children: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Insert a resource row plus its child rows.

        Returns:
            The new resource row (flushed, with id assigned)
        """
        kind = get_resource_kind(resource_type)
        resource = kind.model(**fields)
        self.db.add(resource)
        self.db.flush()

        if kind.has_children:
            self.save_children(resource, children or [])

        logger.debug(f"Created {kind.name} {resource.id} for organization {resource.organization_id}")
        return resource

    def save_resource(self, resource, changes: Dict[str, Any], actor: Optional[str] = None):
        """Apply field changes to an existing resource row"""
        for field, value in changes.items():
            setattr(resource, field, value)
        resource.updated_by = actor
        resource.updated_at = datetime.utcnow()
        self.db.flush()
        return resource

    def save_children(self, resource, children: List[Dict[str, Any]]) -> List[Any]:
        """
        Replace a resource's child collection.

        Children keep their given display_order; missing orders are filled
        with the position in the list.
        """
        kind = self._kind_for(resource)
        if not kind.has_children:
            raise HierarchyValidationError(f"{kind.label} has no child records")

        collection = getattr(resource, kind.child_attribute)
        collection.clear()
        self.db.flush()

        created = []
        for position, data in enumerate(children):
            values = dict(data)
            if values.get("display_order") is None:
                values["display_order"] = position
            child = kind.child_model(**values)
            collection.append(child)
            created.append(child)

        self.db.flush()
        return created

    def soft_delete(self, resource, actor: Optional[str] = None):
        """Mark a resource deleted; rows are kept for audit"""
        resource.is_deleted = True
        resource.deleted_by = actor
        resource.deleted_at = datetime.utcnow()
        self.db.flush()
        return resource

    def _kind_for(self, resource) -> ResourceKind:
        for kind in RESOURCE_KINDS.values():
            if isinstance(resource, kind.model):
                return kind
        raise HierarchyValidationError(f"Unsupported resource {resource!r}")
