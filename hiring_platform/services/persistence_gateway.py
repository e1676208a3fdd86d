"""Persistence gateway for groups, organizations, memberships and grants"""

import logging
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from hiring_platform.config import settings
from hiring_platform.database import transaction
from hiring_platform.models import (
    Agent,
    Group,
    GroupMembership,
    InterviewGuide,
    Organization,
    OrgAccessGrant,
    User,
)
from hiring_platform.services.exceptions import (
    ConcurrentStructuralConflict,
    GroupNotFound,
    HierarchyValidationError,
    OrganizationNotFound,
)
from hiring_platform.services.identity import AccessGrant, RoleFlags
from hiring_platform.services.organization_tree import OrganizationTree

logger = logging.getLogger(__name__)


def generate_api_key() -> str:
    """Random group API key, hex encoded behind a fixed prefix"""
    return f"{settings.group_api_key_prefix}{secrets.token_hex(16)}"


class PersistenceGateway:
    """
    Only place that queries organization, group, membership and grant rows.

    Reads hand back plain engine objects (OrganizationTree, AccessGrant,
    RoleFlags); writes flush and leave committing to the caller's transaction.
    """

    def __init__(self, db: Session):
        """Initialize with database session"""
        self.db = db

    def transaction(self):
        return transaction(self.db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_group(self, group_id: UUID) -> Group:
        group = self.db.get(Group, group_id) if group_id is not None else None
        if group is None:
            raise GroupNotFound(group_id)
        return group

    def get_organization(self, organization_id: UUID) -> Optional[Organization]:
        if organization_id is None:
            return None
        return self.db.get(Organization, organization_id)

    def get_organizations(self, group_id: UUID) -> List[Organization]:
        result = self.db.execute(
            select(Organization)
            .where(Organization.group_id == group_id)
            .order_by(Organization.name)
        )
        return list(result.scalars().all())

    def get_organization_tree(self, group_id: UUID) -> OrganizationTree:
        """
        Fresh snapshot of a group's organization tree.

        The group's structure version is read with the rows so a later
        structural write can tell whether the snapshot went stale.
        """
        group = self.get_group(group_id)
        self.db.refresh(group, attribute_names=["structure_version"])
        version = group.structure_version

        tree = OrganizationTree.from_organizations(group_id, self.get_organizations(group_id), version)
        problems = tree.check_integrity()
        if problems:
            logger.error(f"Organization tree of group {group_id} is malformed: {'; '.join(problems)}")
        return tree

    def get_user(self, user_id: UUID) -> Optional[User]:
        if user_id is None:
            return None
        return self.db.get(User, user_id)

    def get_user_by_subject(self, auth_subject: str) -> Optional[User]:
        result = self.db.execute(select(User).where(User.auth_subject == auth_subject))
        return result.scalar_one_or_none()

    def get_grants(self, user_id: UUID, group_id: UUID) -> List[AccessGrant]:
        """Raw grants of a user on organizations of one group"""
        result = self.db.execute(
            select(OrgAccessGrant)
            .join(Organization, Organization.id == OrgAccessGrant.organization_id)
            .where(
                OrgAccessGrant.user_id == user_id,
                Organization.group_id == group_id,
            )
        )
        return [AccessGrant.from_model(grant) for grant in result.scalars().all()]

    def get_role_flags(self, user_id: UUID, group_id: UUID) -> RoleFlags:
        user = self.get_user(user_id)
        if user is None:
            return RoleFlags()

        membership = self.db.execute(
            select(GroupMembership).where(
                GroupMembership.user_id == user_id,
                GroupMembership.group_id == group_id,
            )
        ).scalar_one_or_none()

        return RoleFlags(
            is_superadmin=bool(user.is_superadmin),
            is_group_admin=bool(membership and membership.is_admin),
        )

    def is_member(self, user_id: UUID, group_id: UUID) -> bool:
        count = self.db.execute(
            select(func.count(GroupMembership.id)).where(
                GroupMembership.user_id == user_id,
                GroupMembership.group_id == group_id,
            )
        ).scalar_one()
        return count > 0

    def count_owned_resources(self, organization_id: UUID) -> int:
        """Agents and interview guides (soft-deleted included) owned by an organization"""
        total = 0
        for model in (Agent, InterviewGuide):
            total += self.db.execute(
                select(func.count(model.id)).where(model.organization_id == organization_id)
            ).scalar_one()
        return total

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_group(
        self,
        name: str,
        root_name: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> Group:
        """Create a group together with its root organization"""
        with self.transaction():
            group = Group(name=name, api_key=generate_api_key(), structure_version=0)
            self.db.add(group)
            self.db.flush()

            root = Organization(
                group_id=group.id,
                parent_organization_id=None,
                name=root_name,
                city=city,
                state=state,
            )
            self.db.add(root)
            self.db.flush()

            group.root_organization_id = root.id
            self.db.flush()

        logger.info(f"Created group {group.id} with root organization {root.id}")
        return group

    def create_organization(
        self,
        group_id: UUID,
        parent_organization_id: UUID,
        name: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> Organization:
        with self.transaction():
            self._bump_structure_version(group_id)
            organization = Organization(
                group_id=group_id,
                parent_organization_id=parent_organization_id,
                name=name,
                city=city,
                state=state,
            )
            self.db.add(organization)
            self.db.flush()

        logger.info(f"Created organization {organization.id} under {parent_organization_id}")
        return organization

    def update_organization(self, organization: Organization, changes: Dict[str, Any]) -> Organization:
        for field, value in changes.items():
            setattr(organization, field, value)
        organization.updated_at = datetime.utcnow()
        self.db.flush()
        return organization

    def delete_organization(self, organization: Organization) -> None:
        with self.transaction():
            self._bump_structure_version(organization.group_id)
            self.db.delete(organization)
            self.db.flush()
        logger.info(f"Deleted organization {organization.id}")

    def apply_move(
        self,
        group_id: UUID,
        organization_id: UUID,
        new_parent_id: UUID,
        expected_version: int,
    ) -> Organization:
        """
        Persist a reparent validated against the snapshot with expected_version.

        The group row is locked (where the dialect supports it) and its
        structure version compared-and-set in the same transaction as the
        parent update.

        Raises:
            ConcurrentStructuralConflict: the tree changed since the snapshot
        """
        with self.transaction():
            self.db.execute(
                select(Group.id).where(Group.id == group_id).with_for_update()
            )
            result = self.db.execute(
                update(Group)
                .where(Group.id == group_id, Group.structure_version == expected_version)
                .values(structure_version=Group.structure_version + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConcurrentStructuralConflict(group_id, expected_version)

            organization = self.get_organization(organization_id)
            if organization is None or organization.group_id != group_id:
                raise OrganizationNotFound(organization_id)

            organization.parent_organization_id = new_parent_id
            organization.updated_at = datetime.utcnow()
            self.db.flush()

        group = self.db.get(Group, group_id)
        if group is not None:
            self.db.expire(group, ["structure_version"])
        return organization

    def set_membership(self, user_id: UUID, group_id: UUID, is_admin: bool = False) -> GroupMembership:
        membership = self.db.execute(
            select(GroupMembership).where(
                GroupMembership.user_id == user_id,
                GroupMembership.group_id == group_id,
            )
        ).scalar_one_or_none()

        if membership is None:
            membership = GroupMembership(user_id=user_id, group_id=group_id, is_admin=is_admin)
            self.db.add(membership)
        else:
            membership.is_admin = is_admin
        self.db.flush()
        return membership

    def add_grant(self, user_id: UUID, organization_id: UUID, include_children: bool = False) -> OrgAccessGrant:
        """Create or update a user's grant on one organization"""
        if self.get_organization(organization_id) is None:
            raise OrganizationNotFound(organization_id)

        grant = self.db.execute(
            select(OrgAccessGrant).where(
                OrgAccessGrant.user_id == user_id,
                OrgAccessGrant.organization_id == organization_id,
            )
        ).scalar_one_or_none()

        if grant is None:
            grant = OrgAccessGrant(
                user_id=user_id,
                organization_id=organization_id,
                include_children=include_children,
            )
            self.db.add(grant)
        else:
            grant.include_children = include_children
        self.db.flush()
        return grant

    def remove_grant(self, user_id: UUID, organization_id: UUID) -> bool:
        grant = self.db.execute(
            select(OrgAccessGrant).where(
                OrgAccessGrant.user_id == user_id,
                OrgAccessGrant.organization_id == organization_id,
            )
        ).scalar_one_or_none()

        if grant:
            self.db.delete(grant)
            self.db.flush()
            return True

        return False

    def create_user(
        self,
        auth_subject: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        is_superadmin: bool = False,
    ) -> User:
        if self.get_user_by_subject(auth_subject) is not None:
            raise HierarchyValidationError(f"User with subject {auth_subject} already exists")
        user = User(auth_subject=auth_subject, name=name, email=email, is_superadmin=is_superadmin)
        self.db.add(user)
        self.db.flush()
        return user

    def _bump_structure_version(self, group_id: UUID) -> None:
        result = self.db.execute(
            update(Group)
            .where(Group.id == group_id)
            .values(structure_version=Group.structure_version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise GroupNotFound(group_id)
