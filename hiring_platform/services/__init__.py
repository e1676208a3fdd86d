"""Hierarchy engine and service layer"""

from .exceptions import (
    HierarchyError,
    OrganizationNotFound,
    GroupNotFound,
    ResourceNotFound,
    InvalidMoveTarget,
    Forbidden,
    CloneNotAllowed,
    ConcurrentStructuralConflict,
    InvalidTreeStructure,
    HierarchyValidationError,
)
from .identity import AccessGrant, IdentityContext, RoleFlags
from .organization_tree import OrganizationNode, OrganizationTree
from .access_resolver import AccessGrantResolver
from .visibility_resolver import ResourceVisibilityResolver, Visibility
from .resource_store import SqlResourceStore
from .resource_cloner import ResourceCloner
from .persistence_gateway import PersistenceGateway
from .hierarchy_service import HierarchyService, ResourceListing

__all__ = [
    "HierarchyError",
    "OrganizationNotFound",
    "GroupNotFound",
    "ResourceNotFound",
    "InvalidMoveTarget",
    "Forbidden",
    "CloneNotAllowed",
    "ConcurrentStructuralConflict",
    "InvalidTreeStructure",
    "HierarchyValidationError",
    "AccessGrant",
    "IdentityContext",
    "RoleFlags",
    "OrganizationNode",
    "OrganizationTree",
    "AccessGrantResolver",
    "ResourceVisibilityResolver",
    "Visibility",
    "SqlResourceStore",
    "ResourceCloner",
    "PersistenceGateway",
    "HierarchyService",
    "ResourceListing",
]
