"""Request-scoped identity: who is acting, in which group, with which raw grants"""

from typing import List, Optional
from uuid import UUID


class AccessGrant:
    """A user's explicit access to one organization, optionally extended to its descendants"""

    def __init__(self, organization_id: UUID, include_children: bool = False):
        self.organization_id = organization_id
        self.include_children = include_children

    @classmethod
    def from_model(cls, grant) -> "AccessGrant":
        return cls(grant.organization_id, bool(grant.include_children))

    def __eq__(self, other):
        if not isinstance(other, AccessGrant):
            return NotImplemented
        return (self.organization_id, self.include_children) == (
            other.organization_id,
            other.include_children,
        )

    def __hash__(self):
        return hash((self.organization_id, self.include_children))

    def __repr__(self):
        return f"<AccessGrant(organization_id={self.organization_id}, include_children={self.include_children})>"


class RoleFlags:
    """Coarse roles that bypass per-organization grants"""

    def __init__(self, is_superadmin: bool = False, is_group_admin: bool = False):
        self.is_superadmin = is_superadmin
        self.is_group_admin = is_group_admin

    def __repr__(self):
        return f"<RoleFlags(is_superadmin={self.is_superadmin}, is_group_admin={self.is_group_admin})>"


class IdentityContext:
    """
    Authenticated actor as handed to the engine by the API layer.

    Holds raw grants only; the accessible set is always derived against the
    live organization tree at query time.
    """

    def __init__(
        self,
        user_id: UUID,
        group_id: UUID,
        roles: Optional[RoleFlags] = None,
        grants: Optional[List[AccessGrant]] = None,
        auth_subject: Optional[str] = None,
        viewing_organization_id: Optional[UUID] = None,
    ):
        self.user_id = user_id
        self.group_id = group_id
        self.roles = roles or RoleFlags()
        self.grants = list(grants or [])
        self.auth_subject = auth_subject
        self.viewing_organization_id = viewing_organization_id

    @property
    def is_superadmin(self) -> bool:
        return self.roles.is_superadmin

    @property
    def is_group_admin(self) -> bool:
        return self.roles.is_group_admin

    @property
    def actor(self) -> str:
        """Value written to created_by/updated_by audit columns"""
        return self.auth_subject or str(self.user_id)

    def __repr__(self):
        return (
            f"<IdentityContext(user_id={self.user_id}, group_id={self.group_id}, "
            f"roles={self.roles}, grants={len(self.grants)})>"
        )
