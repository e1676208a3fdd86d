"""Tests for organization access decisions"""

import uuid

import pytest

from hiring_platform.monitoring.metrics import metrics_collector
from hiring_platform.services.access_resolver import AccessGrantResolver
from hiring_platform.services.identity import AccessGrant, IdentityContext, RoleFlags
from hiring_platform.services.organization_tree import OrganizationNode, OrganizationTree


@pytest.fixture
def tree_and_ids():
    """
    root
    ├── a
    │   └── b
    │       └── d
    └── c
    """
    group_id = uuid.uuid4()
    ids = {name: uuid.uuid4() for name in ("root", "a", "b", "c", "d")}
    parents = {"root": None, "a": "root", "b": "a", "c": "root", "d": "b"}
    nodes = [
        OrganizationNode(ids[name], group_id, ids[parent] if parent else None, name=name)
        for name, parent in parents.items()
    ]
    return OrganizationTree(group_id, nodes), ids


def make_identity(tree, grants=(), roles=None):
    return IdentityContext(
        user_id=uuid.uuid4(),
        group_id=tree.group_id,
        roles=roles,
        grants=list(grants),
    )


class TestGrants:
    """Test per-organization grants"""

    def test_direct_grant_without_children(self, tree_and_ids):
        tree, ids = tree_and_ids
        resolver = AccessGrantResolver(make_identity(tree, [AccessGrant(ids["b"])]), tree)

        assert resolver.can_access(ids["b"]) is True
        assert resolver.can_access(ids["d"]) is False
        assert resolver.can_access(ids["a"]) is False

    def test_grant_with_children_covers_subtree(self, tree_and_ids):
        tree, ids = tree_and_ids
        resolver = AccessGrantResolver(
            make_identity(tree, [AccessGrant(ids["a"], include_children=True)]), tree
        )

        assert resolver.can_access(ids["a"]) is True
        assert resolver.can_access(ids["b"]) is True
        assert resolver.can_access(ids["d"]) is True
        assert resolver.can_access(ids["root"]) is False
        assert resolver.can_access(ids["c"]) is False

    def test_no_grants_no_access(self, tree_and_ids):
        tree, ids = tree_and_ids
        resolver = AccessGrantResolver(make_identity(tree), tree)

        assert all(resolver.can_access(org_id) is False for org_id in ids.values())
        assert resolver.accessible_organization_ids() == set()

    def test_none_is_never_accessible(self, tree_and_ids):
        tree, ids = tree_and_ids
        identity = make_identity(tree, roles=RoleFlags(is_superadmin=True))
        assert AccessGrantResolver(identity, tree).can_access(None) is False

    def test_grant_follows_moved_subtree(self, tree_and_ids):
        tree, ids = tree_and_ids
        identity = make_identity(tree, [AccessGrant(ids["a"], include_children=True)])

        tree.move(ids["b"], ids["c"])
        resolver = AccessGrantResolver(identity, tree)

        assert resolver.can_access(ids["b"]) is False
        assert resolver.can_access(ids["d"]) is False
        assert resolver.can_access(ids["a"]) is True

    def test_grant_covers_organizations_moved_in(self, tree_and_ids):
        tree, ids = tree_and_ids
        identity = make_identity(tree, [AccessGrant(ids["a"], include_children=True)])

        tree.move(ids["c"], ids["a"])

        assert AccessGrantResolver(identity, tree).can_access(ids["c"]) is True

    def test_grant_covers_organizations_created_later(self, tree_and_ids):
        tree, ids = tree_and_ids
        identity = make_identity(tree, [AccessGrant(ids["a"], include_children=True)])
        new_node = OrganizationNode(uuid.uuid4(), tree.group_id, ids["d"], name="e")

        tree.add(new_node)

        assert AccessGrantResolver(identity, tree).can_access(new_node.id) is True

    def test_grant_on_organization_outside_tree_is_ignored(self, tree_and_ids):
        tree, ids = tree_and_ids
        resolver = AccessGrantResolver(
            make_identity(tree, [AccessGrant(uuid.uuid4(), include_children=True)]), tree
        )

        assert resolver.accessible_organization_ids() == set()


class TestRoles:
    """Test role-based bypasses"""

    def test_group_admin_accesses_every_organization_in_tree(self, tree_and_ids):
        tree, ids = tree_and_ids
        resolver = AccessGrantResolver(make_identity(tree, roles=RoleFlags(is_group_admin=True)), tree)

        assert all(resolver.can_access(org_id) for org_id in ids.values())
        assert resolver.can_access(uuid.uuid4()) is False
        assert resolver.accessible_organization_ids() == set(ids.values())

    def test_superadmin_accesses_anything(self, tree_and_ids):
        tree, ids = tree_and_ids
        resolver = AccessGrantResolver(make_identity(tree, roles=RoleFlags(is_superadmin=True)), tree)

        assert resolver.can_access(ids["d"]) is True
        assert resolver.can_access(uuid.uuid4()) is True


class TestAccessibleSet:
    """Test the derived accessible set"""

    def test_union_of_grants(self, tree_and_ids):
        tree, ids = tree_and_ids
        identity = make_identity(
            tree,
            [AccessGrant(ids["b"], include_children=True), AccessGrant(ids["c"])],
        )

        assert AccessGrantResolver(identity, tree).accessible_organization_ids() == {
            ids["b"], ids["d"], ids["c"]
        }

    def test_accessible_set_matches_can_access(self, tree_and_ids):
        tree, ids = tree_and_ids
        identity = make_identity(
            tree,
            [AccessGrant(ids["a"]), AccessGrant(ids["b"], include_children=True)],
        )
        resolver = AccessGrantResolver(identity, tree)
        accessible = resolver.accessible_organization_ids()

        for org_id in tree.organization_ids():
            assert (org_id in accessible) == resolver.can_access(org_id)

    def test_access_checks_are_counted(self, tree_and_ids):
        tree, ids = tree_and_ids
        resolver = AccessGrantResolver(make_identity(tree, [AccessGrant(ids["a"])]), tree)
        granted_before = metrics_collector.get_outcome_count("access_granted")
        denied_before = metrics_collector.get_outcome_count("access_denied")

        resolver.can_access(ids["a"])
        resolver.can_access(ids["c"])

        assert metrics_collector.get_outcome_count("access_granted") == granted_before + 1
        assert metrics_collector.get_outcome_count("access_denied") == denied_before + 1
