"""Copy-on-write cloning of inherited resources"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from hiring_platform.config import settings
from hiring_platform.models.shareable import VisibilityScope
from hiring_platform.monitoring.metrics import metrics_collector
from hiring_platform.services.exceptions import CloneNotAllowed, HierarchyError, ResourceNotFound
from hiring_platform.services.resource_store import SqlResourceStore, get_resource_kind
from hiring_platform.services.visibility_resolver import ResourceVisibilityResolver, Visibility

logger = logging.getLogger(__name__)


class ResourceCloner:
    """
    Forks an inherited resource into an independent resource owned by the target organization.

    The clone is built from a plain-value snapshot of the source, so later edits
    to either side never reach the other. Each call creates a new copy.
    """

    def __init__(self, store: SqlResourceStore, visibility: ResourceVisibilityResolver):
        self.store = store
        self.visibility = visibility

    def clone(
        self,
        resource_type: str,
        resource_id: UUID,
        target_organization_id: UUID,
        actor: Optional[str] = None,
    ):
        """
        Clone a resource into the target organization.

        Args:
            resource_type: "agent" or "interview_guide"
            resource_id: Source resource
            target_organization_id: Organization that will own the copy
            actor: Audit identity written to created_by

        Returns:
            The new resource row

        Raises:
            ResourceNotFound: source missing, deleted or not visible from the target
            CloneNotAllowed: source is already local to the target
        """
        kind = get_resource_kind(resource_type)

        try:
            source = self.store.get(kind.name, resource_id)
            if source is None or source.group_id != self.visibility.tree.group_id:
                raise ResourceNotFound(kind.label, resource_id)

            visibility = self.visibility.classify(source, target_organization_id)
            if visibility == Visibility.NOT_VISIBLE:
                raise ResourceNotFound(kind.label, resource_id)
            if visibility == Visibility.LOCAL:
                raise CloneNotAllowed(kind.label, resource_id, target_organization_id)

            snapshot = self.store.snapshot(source)
            fields = dict(snapshot["fields"])
            fields.update(
                group_id=source.group_id,
                organization_id=target_organization_id,
                visibility_scope=VisibilityScope.ORGANIZATION_ONLY.value,
                created_by=actor,
                created_at=datetime.utcnow(),
                cloned_from_id=source.id,
            )

            name = fields[kind.name_field]
            while self.store.name_exists(kind.name, source.group_id, target_organization_id, name):
                name = f"{name}{settings.clone_name_suffix}"
            fields[kind.name_field] = name

            with self.store.transaction():
                clone = self.store.create(kind.name, fields, snapshot["children"])

        except HierarchyError as e:
            metrics_collector.record_clone(kind.name, type(e).__name__)
            raise

        metrics_collector.record_clone(kind.name, "created")
        logger.info(
            f"Cloned {kind.name} {resource_id} into organization {target_organization_id} "
            f"as {clone.id}"
        )
        return clone
