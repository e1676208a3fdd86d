"""Organization access decisions derived from raw grants and the live tree"""

import logging
from typing import Optional, Set
from uuid import UUID

from hiring_platform.monitoring.metrics import metrics_collector
from hiring_platform.services.identity import IdentityContext
from hiring_platform.services.organization_tree import OrganizationTree

logger = logging.getLogger(__name__)


class AccessGrantResolver:
    """
    Answers "may this user act on this organization?" for one request.

    The resolver only holds the identity's raw grants and a tree snapshot.
    Grants with include_children cover organizations created after the grant,
    so nothing here is precomputed or cached; build a new resolver whenever
    the tree changes.
    """

    def __init__(self, identity: IdentityContext, tree: OrganizationTree):
        self.identity = identity
        self.tree = tree

    def can_access(self, organization_id: Optional[UUID]) -> bool:
        """
        Check whether the identity may access an organization.

        Args:
            organization_id: Organization to check; None is never accessible here,
                call sites that treat "no organization" as unrestricted decide that themselves

        Returns:
            True if access is allowed
        """
        decision = self._decide(organization_id)
        metrics_collector.record_access_check(decision)
        logger.debug(
            f"Access {'granted' if decision else 'denied'} for user {self.identity.user_id} "
            f"on organization {organization_id}"
        )
        return decision

    def _decide(self, organization_id: Optional[UUID]) -> bool:
        if organization_id is None:
            return False

        if self.identity.is_superadmin:
            return True

        if self.identity.is_group_admin:
            return self.tree.contains(organization_id)

        for grant in self.identity.grants:
            if grant.organization_id == organization_id:
                return True
            if grant.include_children and self.tree.is_descendant_of(organization_id, grant.organization_id):
                return True

        return False

    def accessible_organization_ids(self) -> Set[UUID]:
        """
        Every organization of the group the identity can access right now.

        For display and filtering only; authorization goes through can_access.
        """
        if self.identity.is_superadmin or self.identity.is_group_admin:
            return self.tree.organization_ids()

        accessible: Set[UUID] = set()
        for grant in self.identity.grants:
            if not self.tree.contains(grant.organization_id):
                continue
            accessible.add(grant.organization_id)
            if grant.include_children:
                accessible |= self.tree.descendants(grant.organization_id)

        return accessible
