"""Service facade over the organization tree, access grants and shareable resources"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from hiring_platform.config import settings
from hiring_platform.models import Group, Organization
from hiring_platform.monitoring.metrics import MetricsTimer, metrics_collector
from hiring_platform.schemas.resource import ResourceFilters
from hiring_platform.services.access_resolver import AccessGrantResolver
from hiring_platform.services.exceptions import (
    ConcurrentStructuralConflict,
    Forbidden,
    HierarchyValidationError,
    InvalidMoveTarget,
    OrganizationNotFound,
    ResourceNotFound,
)
from hiring_platform.services.identity import IdentityContext
from hiring_platform.services.organization_tree import OrganizationTree
from hiring_platform.services.persistence_gateway import PersistenceGateway
from hiring_platform.services.resource_cloner import ResourceCloner
from hiring_platform.services.resource_store import SqlResourceStore, get_resource_kind
from hiring_platform.services.visibility_resolver import (
    ResourceVisibilityResolver,
    Visibility,
    parse_scope,
)

logger = logging.getLogger(__name__)


class ResourceListing:
    """One page of local and inherited resources for a viewing organization"""

    def __init__(
        self,
        organization_id: UUID,
        local: List[Any],
        inherited: List[Any],
        local_total: int,
        inherited_total: int,
        page: int,
        page_size: int,
        usable: Optional[Dict[UUID, bool]] = None,
    ):
        self.organization_id = organization_id
        self.local = local
        self.inherited = inherited
        self.local_total = local_total
        self.inherited_total = inherited_total
        self.page = page
        self.page_size = page_size
        self.usable = usable or {}

    def is_usable(self, resource) -> bool:
        return self.usable.get(resource.id, True)


def _clean_name(value: Optional[str], field: str = "name") -> str:
    if value is None or not value.strip():
        raise HierarchyValidationError(f"{field} must not be blank")
    return value.strip()


class HierarchyService:
    """
    Request-scoped entry point used by the API layer.

    Every call loads a fresh tree snapshot, so access and visibility are
    always derived from the current structure.
    """

    def __init__(self, db: Session):
        """Initialize with database session"""
        self.db = db
        self.gateway = PersistenceGateway(db)
        self.store = SqlResourceStore(db)

    # ------------------------------------------------------------------
    # Identity and snapshots
    # ------------------------------------------------------------------

    def resolve_identity(
        self,
        user_id: UUID,
        group_id: UUID,
        viewing_organization_id: Optional[UUID] = None,
    ) -> IdentityContext:
        """
        Build the identity for a user acting inside one group.

        Raises:
            Forbidden: unknown user, or a user who is neither a member nor a superadmin
            GroupNotFound: group does not exist
        """
        user = self.gateway.get_user(user_id)
        if user is None:
            raise Forbidden("Unknown user")

        self.gateway.get_group(group_id)
        roles = self.gateway.get_role_flags(user_id, group_id)
        if not roles.is_superadmin and not self.gateway.is_member(user_id, group_id):
            raise Forbidden(f"User {user_id} is not a member of group {group_id}")

        return IdentityContext(
            user_id=user_id,
            group_id=group_id,
            roles=roles,
            grants=self.gateway.get_grants(user_id, group_id),
            auth_subject=user.auth_subject,
            viewing_organization_id=viewing_organization_id,
        )

    def snapshot(self, group_id: UUID) -> OrganizationTree:
        return self.gateway.get_organization_tree(group_id)

    def _require_accessible(
        self, resolver: AccessGrantResolver, organization_id: Optional[UUID]
    ) -> None:
        # Organizations the caller cannot reach are reported as missing
        if organization_id is None or not resolver.tree.contains(organization_id):
            raise OrganizationNotFound(organization_id)
        if not resolver.can_access(organization_id):
            raise OrganizationNotFound(organization_id)

    def _viewing_organization(
        self, identity: IdentityContext, organization_id: Optional[UUID]
    ) -> UUID:
        viewing = organization_id or identity.viewing_organization_id
        if viewing is None:
            raise HierarchyValidationError("A viewing organization is required (X-Organization-Id)")
        return viewing

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def can_access(self, identity: IdentityContext, organization_id: UUID) -> bool:
        tree = self.snapshot(identity.group_id)
        return AccessGrantResolver(identity, tree).can_access(organization_id)

    def accessible_organization_ids(self, identity: IdentityContext) -> List[UUID]:
        """Accessible organizations, ordered root-first then by name"""
        tree = self.snapshot(identity.group_id)
        ids = AccessGrantResolver(identity, tree).accessible_organization_ids()
        return sorted(ids, key=lambda org_id: (tree.depth(org_id), tree.get(org_id).name, str(org_id)))

    def accessible_organizations(self, identity: IdentityContext) -> List[Dict[str, Any]]:
        tree = self.snapshot(identity.group_id)
        ids = AccessGrantResolver(identity, tree).accessible_organization_ids()
        organizations = []
        for org_id in ids:
            node = tree.get(org_id)
            organizations.append(
                {
                    "id": node.id,
                    "name": node.name,
                    "parent_organization_id": node.parent_id,
                    "depth": tree.depth(org_id),
                }
            )
        organizations.sort(key=lambda item: (item["depth"], item["name"], str(item["id"])))
        return organizations

    # ------------------------------------------------------------------
    # Groups and organizations
    # ------------------------------------------------------------------

    def create_group(
        self,
        user_id: UUID,
        name: str,
        root_name: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> Group:
        user = self.gateway.get_user(user_id)
        if user is None or not user.is_superadmin:
            raise Forbidden("Only superadmins can create groups")
        return self.gateway.create_group(
            _clean_name(name), _clean_name(root_name, "root_organization_name"), city, state
        )

    def grant_access(
        self,
        identity: IdentityContext,
        user_id: UUID,
        organization_id: UUID,
        include_children: bool = False,
    ):
        """
        Give a group member access to one organization (and optionally its descendants).

        Raises:
            Forbidden: caller is not a group admin
            OrganizationNotFound: organization not in the caller's group
            HierarchyValidationError: target user is not a member of the group
        """
        if not (identity.is_superadmin or identity.is_group_admin):
            raise Forbidden("Only group admins can manage access grants")
        tree = self.snapshot(identity.group_id)
        if not tree.contains(organization_id):
            raise OrganizationNotFound(organization_id)
        if not self.gateway.is_member(user_id, identity.group_id):
            raise HierarchyValidationError(f"User {user_id} is not a member of group {identity.group_id}")

        grant = self.gateway.add_grant(user_id, organization_id, include_children)
        logger.info(
            f"Granted user {user_id} access to organization {organization_id} "
            f"(include_children={include_children}) by {identity.actor}"
        )
        return grant

    def revoke_access(self, identity: IdentityContext, user_id: UUID, organization_id: UUID) -> None:
        """Remove a user's grant on one organization; descendants covered by it lose access too"""
        if not (identity.is_superadmin or identity.is_group_admin):
            raise Forbidden("Only group admins can manage access grants")
        tree = self.snapshot(identity.group_id)
        if not tree.contains(organization_id):
            raise OrganizationNotFound(organization_id)
        if not self.gateway.remove_grant(user_id, organization_id):
            raise HierarchyValidationError(f"User {user_id} has no grant on organization {organization_id}")
        logger.info(f"Revoked user {user_id} access to organization {organization_id} by {identity.actor}")

    def get_tree(self, identity: IdentityContext) -> Dict:
        """Whole nested tree; reserved for group admins and superadmins"""
        if not (identity.is_superadmin or identity.is_group_admin):
            raise Forbidden("Only group admins can view the full organization tree")
        tree = self.snapshot(identity.group_id)
        return tree.to_nested()

    def get_organization(self, identity: IdentityContext, organization_id: UUID) -> Tuple[Organization, int, int]:
        """
        Returns:
            Tuple of (organization row, depth, number of children)
        """
        tree = self.snapshot(identity.group_id)
        self._require_accessible(AccessGrantResolver(identity, tree), organization_id)
        organization = self.gateway.get_organization(organization_id)
        return organization, tree.depth(organization_id), len(tree.children(organization_id))

    def create_organization(
        self,
        identity: IdentityContext,
        parent_organization_id: UUID,
        name: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> Organization:
        tree = self.snapshot(identity.group_id)
        self._require_accessible(AccessGrantResolver(identity, tree), parent_organization_id)
        return self.gateway.create_organization(
            identity.group_id, parent_organization_id, _clean_name(name), city, state
        )

    def update_organization(
        self, identity: IdentityContext, organization_id: UUID, changes: Dict[str, Any]
    ) -> Organization:
        tree = self.snapshot(identity.group_id)
        self._require_accessible(AccessGrantResolver(identity, tree), organization_id)
        if "name" in changes:
            changes["name"] = _clean_name(changes["name"])
        organization = self.gateway.get_organization(organization_id)
        return self.gateway.update_organization(organization, changes)

    def delete_organization(self, identity: IdentityContext, organization_id: UUID) -> None:
        """
        Delete a leaf organization that owns no resources.

        Raises:
            OrganizationNotFound: unknown or inaccessible organization
            HierarchyValidationError: root, organization with children, or owner of resources
        """
        tree = self.snapshot(identity.group_id)
        self._require_accessible(AccessGrantResolver(identity, tree), organization_id)

        if organization_id == tree.root_id:
            raise HierarchyValidationError("The root organization cannot be deleted")
        if tree.children(organization_id):
            raise HierarchyValidationError("Organization has child organizations; move or delete them first")
        if self.gateway.count_owned_resources(organization_id):
            raise HierarchyValidationError("Organization still owns agents or interview guides")

        self.gateway.delete_organization(self.gateway.get_organization(organization_id))

    def move_organization(
        self,
        identity: IdentityContext,
        organization_id: UUID,
        new_parent_id: Optional[UUID],
    ) -> Organization:
        """
        Reparent an organization (and its whole subtree) within its group.

        A concurrent structural change detected at commit is retried with a
        fresh snapshot, up to move_conflict_retries times.

        Raises:
            OrganizationNotFound: organization or new parent unknown or inaccessible
            InvalidMoveTarget: null parent, self, a descendant, or another group's organization
            ConcurrentStructuralConflict: retries exhausted
        """
        retryer = Retrying(
            retry=retry_if_exception_type(ConcurrentStructuralConflict),
            stop=stop_after_attempt(1 + settings.move_conflict_retries),
            reraise=True,
        )
        return retryer(self._move_once, identity, organization_id, new_parent_id)

    def _move_once(
        self,
        identity: IdentityContext,
        organization_id: UUID,
        new_parent_id: Optional[UUID],
    ) -> Organization:
        tree = self.snapshot(identity.group_id)
        resolver = AccessGrantResolver(identity, tree)

        try:
            self._require_accessible(resolver, organization_id)

            if new_parent_id is not None and not tree.contains(new_parent_id):
                if self.gateway.get_organization(new_parent_id) is None:
                    raise OrganizationNotFound(new_parent_id)
                raise InvalidMoveTarget(
                    organization_id, new_parent_id, "new parent belongs to another group"
                )

            tree.validate_move(organization_id, new_parent_id)
            self._require_accessible(resolver, new_parent_id)

            old_depth = tree.depth(organization_id)
            tree.move(organization_id, new_parent_id)
            depth_shift = tree.depth(organization_id) - old_depth

            organization = self.gateway.apply_move(
                identity.group_id, organization_id, new_parent_id, tree.version
            )

        except InvalidMoveTarget:
            metrics_collector.record_move("invalid_target")
            raise
        except OrganizationNotFound:
            metrics_collector.record_move("not_found")
            raise
        except ConcurrentStructuralConflict:
            metrics_collector.record_move("conflict")
            logger.warning(
                f"Move of organization {organization_id} hit a concurrent change in group {identity.group_id}"
            )
            raise

        metrics_collector.record_move("moved", depth_shift)
        logger.info(
            f"Moved organization {organization_id} under {new_parent_id} "
            f"(depth shift {depth_shift}) by {identity.actor}"
        )
        return organization

    # ------------------------------------------------------------------
    # Shareable resources
    # ------------------------------------------------------------------

    def list_resources(
        self,
        identity: IdentityContext,
        resource_type: str,
        viewing_organization_id: Optional[UUID] = None,
        filters: Optional[ResourceFilters] = None,
    ) -> ResourceListing:
        """
        Local and inherited resources for a viewing organization.

        Filters, sorting and pagination apply to each bucket separately.

        Raises:
            OrganizationNotFound: viewing organization unknown or inaccessible
        """
        kind = get_resource_kind(resource_type)
        filters = filters or ResourceFilters()
        viewing = self._viewing_organization(identity, viewing_organization_id)

        tree = self.snapshot(identity.group_id)
        self._require_accessible(AccessGrantResolver(identity, tree), viewing)
        visibility = ResourceVisibilityResolver(tree)

        durations: List[float] = []
        with MetricsTimer(durations.append):
            owners = [viewing] + tree.ancestors(viewing)
            candidates = self.store.get_resources(identity.group_id, kind.name, owners)
            local, inherited = visibility.partition(candidates, viewing)

        metrics_collector.record_listing(kind.name, len(candidates), durations[0])

        local = self._apply_filters(kind, local, filters)
        inherited = self._apply_filters(kind, inherited, filters)

        start = (filters.page - 1) * filters.page_size
        end = start + filters.page_size
        page_local = local[start:end]
        page_inherited = inherited[start:end]

        usable = {
            resource.id: visibility.is_usable_at(resource, viewing)
            for resource in page_local + page_inherited
        }

        return ResourceListing(
            organization_id=viewing,
            local=page_local,
            inherited=page_inherited,
            local_total=len(local),
            inherited_total=len(inherited),
            page=filters.page,
            page_size=filters.page_size,
            usable=usable,
        )

    def _apply_filters(self, kind, resources: List[Any], filters: ResourceFilters) -> List[Any]:
        result = resources
        if filters.name:
            needle = filters.name.strip().lower()
            result = [r for r in result if needle in (getattr(r, kind.name_field) or "").lower()]
        if filters.is_active is not None and hasattr(kind.model, "is_active"):
            result = [r for r in result if bool(r.is_active) == filters.is_active]
        if filters.created_by:
            result = [r for r in result if r.created_by == filters.created_by]

        if filters.sort_by == "alphabetical":
            result = sorted(result, key=lambda r: ((getattr(r, kind.name_field) or "").lower(), str(r.id)))
        else:
            result = sorted(result, key=lambda r: r.created_at, reverse=True)
        return result

    def get_resource(
        self,
        identity: IdentityContext,
        resource_type: str,
        resource_id: UUID,
        viewing_organization_id: Optional[UUID] = None,
    ) -> Tuple[Any, Visibility, bool]:
        """
        Returns:
            Tuple of (resource, visibility from the viewing organization, usable there)

        Raises:
            ResourceNotFound: missing, deleted or not visible
        """
        kind = get_resource_kind(resource_type)
        viewing = self._viewing_organization(identity, viewing_organization_id)
        tree = self.snapshot(identity.group_id)
        self._require_accessible(AccessGrantResolver(identity, tree), viewing)
        visibility = ResourceVisibilityResolver(tree)

        resource = self.store.get(kind.name, resource_id)
        if resource is None or resource.group_id != identity.group_id:
            raise ResourceNotFound(kind.label, resource_id)

        classified = visibility.classify(resource, viewing)
        if classified == Visibility.NOT_VISIBLE:
            raise ResourceNotFound(kind.label, resource_id)
        return resource, classified, visibility.is_usable_at(resource, viewing)

    def create_resource(
        self,
        identity: IdentityContext,
        resource_type: str,
        fields: Dict[str, Any],
        children: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Create a resource owned by an organization, or by the group when organization_id is null.

        Raises:
            Forbidden: group-level resource requested by a non-admin
            OrganizationNotFound: owner unknown or inaccessible
            HierarchyValidationError: blank name, bad scope, or duplicate name at the owner
        """
        kind = get_resource_kind(resource_type)
        fields = dict(fields)
        owner_id = fields.get("organization_id")

        tree = self.snapshot(identity.group_id)
        resolver = AccessGrantResolver(identity, tree)
        if owner_id is None:
            if not (identity.is_superadmin or identity.is_group_admin):
                raise Forbidden("Only group admins can create group-level resources")
        else:
            self._require_accessible(resolver, owner_id)

        name = _clean_name(fields.get(kind.name_field), kind.name_field)
        fields[kind.name_field] = name
        fields["visibility_scope"] = parse_scope(
            fields.get("visibility_scope") or "organization_only"
        ).value

        if self.store.name_exists(kind.name, identity.group_id, owner_id, name):
            raise HierarchyValidationError(f"{kind.label} named '{name}' already exists here")

        fields.update(group_id=identity.group_id, created_by=identity.actor)
        with self.store.transaction():
            resource = self.store.create(kind.name, fields, children if kind.has_children else None)

        logger.info(f"Created {kind.name} {resource.id} owned by {owner_id or 'group'} by {identity.actor}")
        return resource

    def _owned_resource(
        self,
        identity: IdentityContext,
        kind,
        resource_id: UUID,
        viewing_organization_id: Optional[UUID],
    ):
        # Only the owner may modify a resource; inherited copies are read-only
        viewing = self._viewing_organization(identity, viewing_organization_id)
        tree = self.snapshot(identity.group_id)
        resolver = AccessGrantResolver(identity, tree)
        self._require_accessible(resolver, viewing)

        resource = self.store.get(kind.name, resource_id)
        if resource is None or resource.group_id != identity.group_id:
            raise ResourceNotFound(kind.label, resource_id)

        classified = ResourceVisibilityResolver(tree).classify(resource, viewing)
        if classified == Visibility.NOT_VISIBLE:
            raise ResourceNotFound(kind.label, resource_id)
        if classified == Visibility.INHERITED:
            raise Forbidden(f"{kind.label} {resource_id} is inherited; clone it to make changes")
        if resource.organization_id is None and not (identity.is_superadmin or identity.is_group_admin):
            raise Forbidden("Only group admins can modify group-level resources")
        return resource

    def update_resource(
        self,
        identity: IdentityContext,
        resource_type: str,
        resource_id: UUID,
        changes: Dict[str, Any],
        children: Optional[List[Dict[str, Any]]] = None,
        viewing_organization_id: Optional[UUID] = None,
    ):
        kind = get_resource_kind(resource_type)
        resource = self._owned_resource(identity, kind, resource_id, viewing_organization_id)

        changes = dict(changes)
        if kind.name_field in changes:
            name = _clean_name(changes[kind.name_field], kind.name_field)
            if self.store.name_exists(
                kind.name, resource.group_id, resource.organization_id, name, exclude_id=resource.id
            ):
                raise HierarchyValidationError(f"{kind.label} named '{name}' already exists here")
            changes[kind.name_field] = name
        if changes.get("visibility_scope") is not None:
            changes["visibility_scope"] = parse_scope(changes["visibility_scope"]).value
        else:
            changes.pop("visibility_scope", None)
        # An explicit null on a NOT NULL column means "leave unchanged"
        columns = kind.model.__table__.columns
        for key in [key for key, value in changes.items() if value is None]:
            if key in columns and not columns[key].nullable:
                changes.pop(key)

        with self.store.transaction():
            self.store.save_resource(resource, changes, identity.actor)
            if children is not None and kind.has_children:
                self.store.save_children(resource, children)

        logger.info(f"Updated {kind.name} {resource_id} by {identity.actor}")
        return resource

    def delete_resource(
        self,
        identity: IdentityContext,
        resource_type: str,
        resource_id: UUID,
        viewing_organization_id: Optional[UUID] = None,
    ) -> None:
        kind = get_resource_kind(resource_type)
        resource = self._owned_resource(identity, kind, resource_id, viewing_organization_id)
        self.store.soft_delete(resource, identity.actor)
        logger.info(f"Deleted {kind.name} {resource_id} by {identity.actor}")

    def clone_resource(
        self,
        identity: IdentityContext,
        resource_type: str,
        resource_id: UUID,
        target_organization_id: Optional[UUID] = None,
    ):
        """
        Clone an inherited resource into the target organization.

        Raises:
            OrganizationNotFound: target unknown or inaccessible
            ResourceNotFound: source missing or not visible from the target
            CloneNotAllowed: source already local to the target
        """
        target = self._viewing_organization(identity, target_organization_id)
        tree = self.snapshot(identity.group_id)
        self._require_accessible(AccessGrantResolver(identity, tree), target)

        cloner = ResourceCloner(self.store, ResourceVisibilityResolver(tree))
        return cloner.clone(resource_type, resource_id, target, actor=identity.actor)
