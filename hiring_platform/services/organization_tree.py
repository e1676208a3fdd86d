"""In-memory snapshot of one group's organization tree"""

import logging
from collections import deque
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from hiring_platform.services.exceptions import (
    InvalidMoveTarget,
    InvalidTreeStructure,
    OrganizationNotFound,
)

logger = logging.getLogger(__name__)


class OrganizationNode:
    """One organization as seen by the tree: identity, parent edge and display fields"""

    def __init__(
        self,
        id: UUID,
        group_id: UUID,
        parent_id: Optional[UUID],
        name: str = "",
        city: Optional[str] = None,
        state: Optional[str] = None,
    ):
        self.id = id
        self.group_id = group_id
        self.parent_id = parent_id
        self.name = name
        self.city = city
        self.state = state

    @classmethod
    def from_model(cls, organization) -> "OrganizationNode":
        """Build a node from an Organization row (or anything shaped like one)"""
        return cls(
            id=organization.id,
            group_id=organization.group_id,
            parent_id=organization.parent_organization_id,
            name=organization.name,
            city=getattr(organization, "city", None),
            state=getattr(organization, "state", None),
        )

    def __repr__(self):
        return f"<OrganizationNode(id={self.id}, parent_id={self.parent_id}, name={self.name})>"


class OrganizationTree:
    """
    Parent-indexed adjacency over the organizations of a single group.

    A tree is a per-request snapshot: build it from the current rows, query it,
    and drop it with the request. Depths are derived top-down from the root
    after every structural change and are never persisted.

    Traversals keep a visited set and stop after as many steps as there are
    nodes, so a malformed snapshot (cycle, dangling parent) cannot hang them.
    """

    def __init__(self, group_id: UUID, nodes: Iterable[OrganizationNode] = (), version: int = 0):
        self.group_id = group_id
        # Structure version of the group at the time the snapshot was read
        self.version = version
        self._nodes: Dict[UUID, OrganizationNode] = {}
        self._children: Dict[UUID, List[UUID]] = {}
        self._depths: Dict[UUID, int] = {}
        self._root_id: Optional[UUID] = None

        for node in nodes:
            if node.group_id != group_id:
                logger.warning(
                    f"Skipping organization {node.id} of group {node.group_id} "
                    f"while building tree for group {group_id}"
                )
                continue
            self._nodes[node.id] = node

        self._reindex()

    @classmethod
    def from_organizations(cls, group_id: UUID, organizations: Iterable, version: int = 0) -> "OrganizationTree":
        return cls(group_id, (OrganizationNode.from_model(org) for org in organizations), version)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def root_id(self) -> Optional[UUID]:
        return self._root_id

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, organization_id) -> bool:
        return self.contains(organization_id)

    def contains(self, organization_id: Optional[UUID]) -> bool:
        return organization_id is not None and organization_id in self._nodes

    def get(self, organization_id: UUID) -> OrganizationNode:
        """Return the node for an id, raising OrganizationNotFound when it is not in this group"""
        node = self._nodes.get(organization_id) if organization_id is not None else None
        if node is None:
            raise OrganizationNotFound(organization_id)
        return node

    def organization_ids(self) -> Set[UUID]:
        return set(self._nodes)

    def parent_of(self, organization_id: UUID) -> Optional[UUID]:
        return self.get(organization_id).parent_id

    def children(self, organization_id: UUID) -> List[UUID]:
        self.get(organization_id)
        return list(self._children.get(organization_id, []))

    def descendants(self, organization_id: UUID) -> Set[UUID]:
        """
        All organizations reachable by following child edges, excluding the start node.

        Args:
            organization_id: Organization to start from

        Returns:
            Set of descendant organization ids
        """
        self.get(organization_id)

        found: Set[UUID] = set()
        queue = deque(self._children.get(organization_id, []))
        steps = 0
        limit = len(self._nodes)

        while queue and steps < limit:
            current = queue.popleft()
            steps += 1
            if current in found or current == organization_id:
                continue
            found.add(current)
            queue.extend(self._children.get(current, []))

        return found

    def is_descendant_of(self, candidate_id: Optional[UUID], ancestor_id: Optional[UUID]) -> bool:
        """True when candidate_id lies strictly below ancestor_id"""
        if not self.contains(candidate_id) or not self.contains(ancestor_id):
            return False
        if candidate_id == ancestor_id:
            return False
        # Walk up from the candidate; cheaper than enumerating the ancestor's subtree
        current = self._nodes[candidate_id].parent_id
        steps = 0
        while current is not None and steps < len(self._nodes):
            if current == ancestor_id:
                return True
            node = self._nodes.get(current)
            if node is None:
                return False
            current = node.parent_id
            steps += 1
        return False

    def ancestors(self, organization_id: UUID) -> List[UUID]:
        """Parent chain of an organization, nearest first, root last"""
        chain: List[UUID] = []
        seen = {organization_id}
        current = self.get(organization_id).parent_id
        while current is not None and current in self._nodes and current not in seen:
            chain.append(current)
            seen.add(current)
            current = self._nodes[current].parent_id
        return chain

    def depth(self, organization_id: UUID) -> int:
        """Distance from the group root (root = 0)"""
        self.get(organization_id)
        if organization_id not in self._depths:
            raise InvalidTreeStructure(
                f"Organization {organization_id} is not reachable from the root of group {self.group_id}"
            )
        return self._depths[organization_id]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def validate_move(self, organization_id: UUID, new_parent_id: Optional[UUID]) -> None:
        """
        Check that reparenting organization_id under new_parent_id keeps the tree valid.

        Raises:
            OrganizationNotFound: either id is not part of this group
            InvalidMoveTarget: root sentinel, self-parenting or a cycle
        """
        self.get(organization_id)

        if new_parent_id is None:
            raise InvalidMoveTarget(
                organization_id, new_parent_id, "a group has exactly one root organization"
            )
        if new_parent_id == organization_id:
            raise InvalidMoveTarget(
                organization_id, new_parent_id, "an organization cannot be its own parent"
            )

        self.get(new_parent_id)

        if new_parent_id in self.descendants(organization_id):
            raise InvalidMoveTarget(
                organization_id, new_parent_id,
                "cannot move an organization under one of its own descendants",
            )

    def move(self, organization_id: UUID, new_parent_id: Optional[UUID]) -> OrganizationNode:
        """
        Reparent organization_id under new_parent_id and recompute depths.

        The moved subtree keeps its shape; its absolute depth shifts by
        depth(new_parent) + 1 - depth(organization).

        Returns:
            The moved node
        """
        self.validate_move(organization_id, new_parent_id)

        node = self._nodes[organization_id]
        old_parent_id = node.parent_id
        node.parent_id = new_parent_id
        self._reindex()

        logger.debug(
            f"Moved organization {organization_id} from {old_parent_id} to {new_parent_id} "
            f"in group {self.group_id}"
        )
        return node

    def add(self, node: OrganizationNode) -> OrganizationNode:
        """Attach a new organization under an existing parent"""
        if node.group_id != self.group_id:
            raise InvalidMoveTarget(node.id, node.parent_id, "parent belongs to another group")
        if node.id in self._nodes:
            raise InvalidTreeStructure(f"Organization {node.id} already exists in group {self.group_id}")
        if node.parent_id is None:
            if self._root_id is not None:
                raise InvalidMoveTarget(node.id, None, "a group has exactly one root organization")
        else:
            self.get(node.parent_id)

        self._nodes[node.id] = node
        self._reindex()
        return node

    def remove(self, organization_id: UUID) -> OrganizationNode:
        """Detach a leaf organization; the root and inner nodes stay"""
        node = self.get(organization_id)
        if self._children.get(organization_id):
            raise InvalidTreeStructure(
                f"Organization {organization_id} still has child organizations"
            )
        if organization_id == self._root_id:
            raise InvalidTreeStructure("The root organization of a group cannot be removed")

        del self._nodes[organization_id]
        self._reindex()
        return node

    # ------------------------------------------------------------------
    # Integrity and views
    # ------------------------------------------------------------------

    def check_integrity(self) -> List[str]:
        """
        Describe every violation of the single-root acyclic invariant.

        Returns:
            List of human-readable problems (empty when the snapshot is sound)
        """
        problems = []
        roots = [node.id for node in self._nodes.values() if node.parent_id is None]
        if len(roots) != 1:
            problems.append(f"expected exactly one root, found {len(roots)}")

        for node in self._nodes.values():
            if node.parent_id is not None and node.parent_id not in self._nodes:
                problems.append(f"organization {node.id} references missing parent {node.parent_id}")

        unreachable = set(self._nodes) - set(self._depths)
        for organization_id in sorted(unreachable, key=str):
            problems.append(f"organization {organization_id} is not reachable from the root")

        return problems

    def to_nested(self, organization_id: Optional[UUID] = None) -> Dict:
        """Nested dict view of a subtree (whole tree by default), children sorted by name"""
        start = organization_id or self._root_id
        if start is None:
            return {}

        def build(current: UUID, remaining: int) -> Dict:
            node = self._nodes[current]
            children = sorted(
                self._children.get(current, []),
                key=lambda child: (self._nodes[child].name.lower(), str(child)),
            )
            return {
                "id": node.id,
                "name": node.name,
                "city": node.city,
                "state": node.state,
                "parent_organization_id": node.parent_id,
                "depth": self._depths.get(current),
                "children": [build(child, remaining - 1) for child in children] if remaining > 0 else [],
            }

        self.get(start)
        return build(start, len(self._nodes))

    def _reindex(self) -> None:
        """Rebuild the child index and recompute depths top-down from the root"""
        self._children = {}
        roots = []
        for node in self._nodes.values():
            if node.parent_id is None:
                roots.append(node.id)
            else:
                self._children.setdefault(node.parent_id, []).append(node.id)

        self._root_id = roots[0] if len(roots) == 1 else None
        if len(roots) > 1:
            logger.warning(f"Group {self.group_id} has {len(roots)} root organizations")

        self._depths = {}
        if self._root_id is None:
            return

        queue = deque([(self._root_id, 0)])
        while queue:
            current, depth = queue.popleft()
            if current in self._depths:
                continue
            self._depths[current] = depth
            for child in self._children.get(current, []):
                queue.append((child, depth + 1))
