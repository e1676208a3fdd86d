"""Local / inherited classification of shareable resources"""

import enum
import logging
from typing import Iterable, List, Optional, Tuple, TypeVar
from uuid import UUID

from hiring_platform.models.shareable import VisibilityScope
from hiring_platform.services.exceptions import HierarchyValidationError
from hiring_platform.services.organization_tree import OrganizationTree

logger = logging.getLogger(__name__)

R = TypeVar("R")

PROPAGATING_SCOPES = (
    VisibilityScope.ORGANIZATION_AND_DESCENDANTS,
    VisibilityScope.DESCENDANTS_ONLY,
)


class Visibility(str, enum.Enum):
    """How a resource relates to the organization looking at it"""
    LOCAL = "local"
    INHERITED = "inherited"
    NOT_VISIBLE = "not_visible"


def parse_scope(value) -> VisibilityScope:
    """Coerce a stored or submitted scope into the enum, rejecting unknown values"""
    if isinstance(value, VisibilityScope):
        return value
    try:
        return VisibilityScope(value)
    except ValueError:
        allowed = ", ".join(scope.value for scope in VisibilityScope)
        raise HierarchyValidationError(f"visibility_scope must be one of: {allowed}")


class ResourceVisibilityResolver:
    """
    Classifies Agent / InterviewGuide rows against a viewing organization.

    Works on anything exposing organization_id and visibility_scope (and
    optionally group_id), so the same rules apply to ORM rows and plain objects.
    """

    def __init__(self, tree: OrganizationTree):
        self.tree = tree

    def classify(self, resource, viewing_organization_id: Optional[UUID]) -> Visibility:
        """
        Classify a resource relative to a viewing organization.

        Args:
            resource: Resource with organization_id and visibility_scope
            viewing_organization_id: Organization the caller is looking from

        Returns:
            Visibility.LOCAL, Visibility.INHERITED or Visibility.NOT_VISIBLE
        """
        owner_id = resource.organization_id

        # An organization always sees what it owns; group-level resources are owned everywhere
        if owner_id is None or owner_id == viewing_organization_id:
            return Visibility.LOCAL

        scope = parse_scope(resource.visibility_scope)
        if scope == VisibilityScope.ORGANIZATION_ONLY:
            return Visibility.NOT_VISIBLE

        if scope in PROPAGATING_SCOPES and self.tree.is_descendant_of(viewing_organization_id, owner_id):
            return Visibility.INHERITED

        return Visibility.NOT_VISIBLE

    def is_usable_at(self, resource, viewing_organization_id: Optional[UUID]) -> bool:
        """
        Whether the viewing organization may put the resource to use.

        A descendants_only resource is still Local (editable, deletable) at its
        owner but is meant for the descendants, so it is not usable there.
        """
        visibility = self.classify(resource, viewing_organization_id)
        if visibility == Visibility.NOT_VISIBLE:
            return False
        if (
            visibility == Visibility.LOCAL
            and resource.organization_id is not None
            and parse_scope(resource.visibility_scope) == VisibilityScope.DESCENDANTS_ONLY
        ):
            return False
        return True

    def partition(
        self, resources: Iterable[R], viewing_organization_id: Optional[UUID]
    ) -> Tuple[List[R], List[R]]:
        """
        Split candidate resources into local and inherited buckets.

        Resources from other groups and resources not visible from the viewing
        organization are dropped. Input order is preserved inside each bucket.

        Returns:
            Tuple of (local, inherited)
        """
        local: List[R] = []
        inherited: List[R] = []

        for resource in resources:
            group_id = getattr(resource, "group_id", None)
            if group_id is not None and group_id != self.tree.group_id:
                continue

            visibility = self.classify(resource, viewing_organization_id)
            if visibility == Visibility.LOCAL:
                local.append(resource)
            elif visibility == Visibility.INHERITED:
                inherited.append(resource)

        logger.debug(
            f"Partitioned resources for organization {viewing_organization_id}: "
            f"{len(local)} local, {len(inherited)} inherited"
        )
        return local, inherited
