"""Domain errors raised by the hierarchy engine and its services"""

from typing import Optional
from uuid import UUID


class HierarchyError(Exception):
    """Base class for domain errors; carries the HTTP status the API maps it to"""

    status_code = 400
    title = "Bad Request"
    error_type = "validation_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class OrganizationNotFound(HierarchyError):
    status_code = 404
    title = "Not Found"
    error_type = "not_found"

    def __init__(self, organization_id: Optional[UUID], detail: Optional[str] = None):
        self.organization_id = organization_id
        super().__init__(detail or f"Organization with id {organization_id} not found")


class GroupNotFound(HierarchyError):
    status_code = 404
    title = "Not Found"
    error_type = "not_found"

    def __init__(self, group_id: Optional[UUID]):
        self.group_id = group_id
        super().__init__(f"Group with id {group_id} not found")


class ResourceNotFound(HierarchyError):
    """Raised for missing resources and for resources the caller may not see"""

    status_code = 404
    title = "Not Found"
    error_type = "not_found"

    def __init__(self, resource_type: str, resource_id: UUID):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} with id {resource_id} not found")


class InvalidMoveTarget(HierarchyError):
    status_code = 400
    title = "Invalid Move Target"
    error_type = "invalid_move_target"

    def __init__(self, organization_id: UUID, new_parent_id: Optional[UUID], reason: str):
        self.organization_id = organization_id
        self.new_parent_id = new_parent_id
        self.reason = reason
        super().__init__(
            f"Cannot move organization {organization_id} under {new_parent_id}: {reason}"
        )


class Forbidden(HierarchyError):
    status_code = 403
    title = "Forbidden"
    error_type = "forbidden"


class CloneNotAllowed(HierarchyError):
    status_code = 409
    title = "Clone Not Allowed"
    error_type = "clone_not_allowed"

    def __init__(self, resource_type: str, resource_id: UUID, target_organization_id: UUID):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.target_organization_id = target_organization_id
        super().__init__(
            f"{resource_type} {resource_id} is already local to organization {target_organization_id}"
        )


class ConcurrentStructuralConflict(HierarchyError):
    """The organization tree changed between snapshot and commit; retry with a fresh snapshot"""

    status_code = 409
    title = "Conflict"
    error_type = "conflict"

    def __init__(self, group_id: UUID, expected_version: int):
        self.group_id = group_id
        self.expected_version = expected_version
        super().__init__(
            f"Organization tree of group {group_id} changed concurrently "
            f"(expected structure version {expected_version}); retry the request"
        )


class InvalidTreeStructure(HierarchyError):
    """A loaded snapshot violates the single-root acyclic invariant"""

    status_code = 500
    title = "Internal Server Error"
    error_type = "internal_server_error"


class HierarchyValidationError(HierarchyError):
    status_code = 400
    title = "Validation Error"
    error_type = "validation_error"
