"""Tests for resource listing, ownership rules and cloning"""

import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from hiring_platform.models import InterviewGuide, InterviewGuideQuestion, VisibilityScope
from hiring_platform.monitoring.metrics import metrics_collector
from hiring_platform.schemas.resource import ResourceFilters
from hiring_platform.services.exceptions import (
    CloneNotAllowed,
    Forbidden,
    HierarchyValidationError,
    OrganizationNotFound,
    ResourceNotFound,
)
from hiring_platform.services.visibility_resolver import Visibility

SHARED = VisibilityScope.ORGANIZATION_AND_DESCENDANTS
DESCENDANTS = VisibilityScope.DESCENDANTS_ONLY
PRIVATE = VisibilityScope.ORGANIZATION_ONLY


def names(resources, field="display_name"):
    return [getattr(r, field) for r in resources]


@pytest.fixture
def catalog(hierarchy, make_agent):
    """Agents spread over the sample tree, oldest first"""
    base = datetime(2026, 1, 1, 12, 0, 0)
    return {
        "screener": make_agent(hierarchy.root, "Screener", SHARED, created_at=base),
        "regional": make_agent(hierarchy.region_a, "Regional", DESCENDANTS, created_at=base + timedelta(minutes=1)),
        "private_a": make_agent(hierarchy.region_a, "Private A", PRIVATE, created_at=base + timedelta(minutes=2)),
        "branch_own": make_agent(hierarchy.branch_b, "Branch Own", PRIVATE, created_at=base + timedelta(minutes=3)),
        "c_shared": make_agent(hierarchy.region_c, "C Shared", SHARED, created_at=base + timedelta(minutes=4)),
    }


class TestListResources:
    """Test local / inherited listings"""

    def test_branch_sees_own_and_inherited(self, service, identity_for, hierarchy, catalog):
        listing = service.list_resources(identity_for("recruiter"), "agent", hierarchy.branch_b)

        assert names(listing.local) == ["Branch Own"]
        assert names(listing.inherited) == ["Regional", "Screener"]
        assert listing.local_total == 1
        assert listing.inherited_total == 2

    def test_descendants_only_is_local_but_unusable_at_owner(self, service, identity_for, hierarchy, catalog):
        listing = service.list_resources(identity_for("manager"), "agent", hierarchy.region_a)

        assert names(listing.local) == ["Private A", "Regional"]
        assert names(listing.inherited) == ["Screener"]
        assert listing.is_usable(catalog["regional"]) is False
        assert listing.is_usable(catalog["private_a"]) is True

    def test_root_sees_only_its_own(self, service, identity_for, hierarchy, catalog):
        listing = service.list_resources(identity_for("admin"), "agent", hierarchy.root)

        assert names(listing.local) == ["Screener"]
        assert listing.inherited == []

    def test_viewing_organization_from_identity(self, service, identity_for, hierarchy, catalog):
        identity = identity_for("recruiter", viewing_organization_id=hierarchy.branch_b)
        listing = service.list_resources(identity, "agent")

        assert listing.organization_id == hierarchy.branch_b
        assert names(listing.local) == ["Branch Own"]

    def test_viewing_organization_required(self, service, identity_for, catalog):
        with pytest.raises(HierarchyValidationError):
            service.list_resources(identity_for("admin"), "agent")

    def test_inaccessible_viewing_organization(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(OrganizationNotFound):
            service.list_resources(identity_for("recruiter"), "agent", hierarchy.team_d)

    def test_listing_follows_moves(self, service, identity_for, hierarchy, catalog):
        admin = identity_for("admin")
        service.move_organization(admin, hierarchy.branch_b, hierarchy.region_c)

        listing = service.list_resources(admin, "agent", hierarchy.branch_b)

        assert names(listing.local) == ["Branch Own"]
        assert names(listing.inherited) == ["C Shared", "Screener"]

    def test_deeper_descendants_inherit(self, service, identity_for, hierarchy, catalog):
        listing = service.list_resources(identity_for("manager"), "agent", hierarchy.team_d)

        assert listing.local == []
        assert names(listing.inherited) == ["Regional", "Screener"]

    def test_group_level_resources_are_local(self, service, identity_for, hierarchy, catalog, make_agent):
        make_agent(None, "Group Wide", PRIVATE, created_at=datetime(2027, 1, 1))

        listing = service.list_resources(identity_for("recruiter"), "agent", hierarchy.branch_b)

        assert names(listing.local) == ["Group Wide", "Branch Own"]

    def test_deleted_resources_disappear(self, service, identity_for, hierarchy, catalog):
        admin = identity_for("admin")
        service.delete_resource(admin, "agent", catalog["screener"].id, hierarchy.root)

        listing = service.list_resources(admin, "agent", hierarchy.branch_b)

        assert names(listing.inherited) == ["Regional"]

    def test_other_group_resources_never_listed(self, service, gateway, identity_for, hierarchy, catalog):
        gateway.set_membership(hierarchy.admin, hierarchy.other_group_id, is_admin=True)
        other_admin = service.resolve_identity(hierarchy.admin, hierarchy.other_group_id)
        service.create_resource(
            other_admin, "agent",
            {"organization_id": None, "display_name": "Globex Agent", "visibility_scope": "organization_only"},
        )

        listing = service.list_resources(identity_for("recruiter"), "agent", hierarchy.branch_b)

        assert "Globex Agent" not in names(listing.local + listing.inherited)

    def test_name_filter(self, service, identity_for, hierarchy, catalog):
        filters = ResourceFilters(name="SCREEN")
        listing = service.list_resources(identity_for("recruiter"), "agent", hierarchy.branch_b, filters)

        assert listing.local == []
        assert names(listing.inherited) == ["Screener"]

    def test_alphabetical_sort_and_paging_per_bucket(self, service, identity_for, hierarchy, catalog):
        filters = ResourceFilters(sort_by="alphabetical", page=2, page_size=1)
        listing = service.list_resources(identity_for("recruiter"), "agent", hierarchy.branch_b, filters)

        assert listing.local == []
        assert names(listing.inherited) == ["Screener"]
        assert listing.local_total == 1
        assert listing.inherited_total == 2

    def test_created_by_filter(self, service, identity_for, hierarchy, catalog):
        filters = ResourceFilters(created_by="someone-else")
        listing = service.list_resources(identity_for("recruiter"), "agent", hierarchy.branch_b, filters)

        assert listing.local_total == 0
        assert listing.inherited_total == 0

    def test_is_active_filter_for_guides(self, service, identity_for, hierarchy, make_guide):
        make_guide(hierarchy.root, "Active Guide", SHARED)
        make_guide(hierarchy.root, "Retired Guide", SHARED, is_active=False)

        filters = ResourceFilters(is_active=True)
        listing = service.list_resources(identity_for("recruiter"), "interview_guide", hierarchy.branch_b, filters)

        assert names(listing.inherited, "name") == ["Active Guide"]

    def test_listing_is_measured(self, service, identity_for, hierarchy, catalog):
        before = metrics_collector.get_outcome_count("listing_agent")
        service.list_resources(identity_for("recruiter"), "agent", hierarchy.branch_b)
        assert metrics_collector.get_outcome_count("listing_agent") == before + 1

    def test_unknown_resource_type(self, service, identity_for, hierarchy):
        with pytest.raises(HierarchyValidationError):
            service.list_resources(identity_for("admin"), "candidate", hierarchy.root)


class TestResourceOwnership:
    """Test create / read / update / delete rules"""

    def test_create_sets_audit_fields(self, service, identity_for, hierarchy):
        agent = service.create_resource(
            identity_for("recruiter"), "agent",
            {"organization_id": hierarchy.branch_b, "display_name": " Night Shift "},
        )

        assert agent.display_name == "Night Shift"
        assert agent.group_id == hierarchy.group_id
        assert agent.created_by == "recruiter"
        assert agent.visibility_scope == "organization_only"

    def test_create_in_inaccessible_organization(self, service, identity_for, hierarchy):
        with pytest.raises(OrganizationNotFound):
            service.create_resource(
                identity_for("recruiter"), "agent",
                {"organization_id": hierarchy.region_c, "display_name": "Nope"},
            )

    def test_group_level_requires_admin(self, service, identity_for, hierarchy):
        with pytest.raises(Forbidden):
            service.create_resource(
                identity_for("manager"), "agent", {"organization_id": None, "display_name": "Everyone"}
            )

    def test_duplicate_name_at_owner_rejected(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(HierarchyValidationError):
            service.create_resource(
                identity_for("recruiter"), "agent",
                {"organization_id": hierarchy.branch_b, "display_name": "branch own"},
            )

    def test_same_name_at_other_owner_allowed(self, service, identity_for, hierarchy, catalog):
        agent = service.create_resource(
            identity_for("recruiter"), "agent",
            {"organization_id": hierarchy.branch_b, "display_name": "Screener"},
        )
        assert agent.organization_id == hierarchy.branch_b

    def test_invalid_scope_rejected(self, service, identity_for, hierarchy):
        with pytest.raises(HierarchyValidationError):
            service.create_resource(
                identity_for("admin"), "agent",
                {"organization_id": hierarchy.root, "display_name": "X", "visibility_scope": "public"},
            )

    def test_get_inherited_resource(self, service, identity_for, hierarchy, catalog):
        resource, visibility, usable = service.get_resource(
            identity_for("recruiter"), "agent", catalog["screener"].id, hierarchy.branch_b
        )
        assert resource.id == catalog["screener"].id
        assert visibility == Visibility.INHERITED
        assert usable is True

    def test_get_invisible_resource_is_not_found(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(ResourceNotFound):
            service.get_resource(identity_for("recruiter"), "agent", catalog["private_a"].id, hierarchy.branch_b)
        with pytest.raises(ResourceNotFound):
            service.get_resource(identity_for("recruiter"), "agent", uuid.uuid4(), hierarchy.branch_b)

    def test_update_local_resource(self, service, identity_for, hierarchy, catalog):
        updated = service.update_resource(
            identity_for("recruiter"), "agent", catalog["branch_own"].id,
            {"system_prompt": "Be brief", "visibility_scope": "organization_and_descendants"},
            viewing_organization_id=hierarchy.branch_b,
        )

        assert updated.system_prompt == "Be brief"
        assert updated.visibility_scope == "organization_and_descendants"
        assert updated.updated_by == "recruiter"

    def test_update_inherited_resource_forbidden(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(Forbidden):
            service.update_resource(
                identity_for("recruiter"), "agent", catalog["screener"].id,
                {"system_prompt": "Hijack"}, viewing_organization_id=hierarchy.branch_b,
            )

    def test_update_rename_collision(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(HierarchyValidationError):
            service.update_resource(
                identity_for("manager"), "agent", catalog["private_a"].id,
                {"display_name": "REGIONAL"}, viewing_organization_id=hierarchy.region_a,
            )

    def test_delete_inherited_resource_forbidden(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(Forbidden):
            service.delete_resource(identity_for("manager"), "agent", catalog["screener"].id, hierarchy.region_a)

    def test_soft_delete_keeps_row(self, service, identity_for, hierarchy, catalog):
        service.delete_resource(identity_for("recruiter"), "agent", catalog["branch_own"].id, hierarchy.branch_b)

        assert service.store.get("agent", catalog["branch_own"].id) is None
        row = service.store.get("agent", catalog["branch_own"].id, include_deleted=True)
        assert row.is_deleted is True
        assert row.deleted_by == "recruiter"

    def test_replace_guide_questions(self, service, identity_for, hierarchy, make_guide):
        guide = make_guide(hierarchy.branch_b, "Guide", PRIVATE, [{"question": "Q1"}, {"question": "Q2"}])
        assert [q.display_order for q in guide.questions] == [0, 1]

        service.update_resource(
            identity_for("recruiter"), "interview_guide", guide.id, {},
            children=[{"question": "Only question", "scoring_weight": 3.0}],
            viewing_organization_id=hierarchy.branch_b,
        )

        reloaded = service.store.get("interview_guide", guide.id)
        assert [q.question for q in reloaded.questions] == ["Only question"]
        assert reloaded.questions[0].scoring_weight == 3.0


class TestCloneResource:
    """Test copy-on-write cloning"""

    def test_clone_inherited_agent(self, service, identity_for, hierarchy, catalog):
        recruiter = identity_for("recruiter")
        source = catalog["screener"]

        clone = service.clone_resource(recruiter, "agent", source.id, hierarchy.branch_b)

        assert clone.id != source.id
        assert clone.organization_id == hierarchy.branch_b
        assert clone.group_id == hierarchy.group_id
        assert clone.display_name == "Screener"
        assert clone.visibility_scope == "organization_only"
        assert clone.created_by == "recruiter"
        assert clone.cloned_from_id == source.id

        listing = service.list_resources(recruiter, "agent", hierarchy.branch_b)
        assert sorted(names(listing.local)) == ["Branch Own", "Screener"]
        assert "Screener" in names(listing.inherited)

    def test_second_clone_gets_copy_suffix(self, service, identity_for, hierarchy, catalog):
        recruiter = identity_for("recruiter")
        first = service.clone_resource(recruiter, "agent", catalog["screener"].id, hierarchy.branch_b)
        second = service.clone_resource(recruiter, "agent", catalog["screener"].id, hierarchy.branch_b)

        assert first.id != second.id
        assert second.display_name == "Screener (Copy)"

    def test_repeated_clones_keep_names_unique(self, service, identity_for, hierarchy, catalog):
        recruiter = identity_for("recruiter")
        clones = [
            service.clone_resource(recruiter, "agent", catalog["screener"].id, hierarchy.branch_b)
            for _ in range(3)
        ]

        assert names(clones) == ["Screener", "Screener (Copy)", "Screener (Copy) (Copy)"]

    def test_clone_is_independent_of_source(self, service, identity_for, hierarchy, catalog):
        recruiter = identity_for("recruiter")
        admin = identity_for("admin")
        clone = service.clone_resource(recruiter, "agent", catalog["screener"].id, hierarchy.branch_b)

        service.update_resource(
            admin, "agent", catalog["screener"].id, {"system_prompt": "Changed at root"},
            viewing_organization_id=hierarchy.root,
        )
        service.update_resource(
            recruiter, "agent", clone.id, {"voice_name": "Changed at branch"},
            viewing_organization_id=hierarchy.branch_b,
        )

        assert service.store.get("agent", clone.id).system_prompt is None
        assert service.store.get("agent", catalog["screener"].id).voice_name is None

    def test_clone_guide_copies_questions_in_order(self, service, identity_for, hierarchy, make_guide):
        source = make_guide(
            hierarchy.region_a, "Warehouse", DESCENDANTS,
            [
                {"question": "First", "display_order": 0, "scoring_weight": 2.0},
                {"question": "Second", "display_order": 1, "follow_ups_enabled": True, "max_follow_ups": 2},
            ],
            scoring_rubric="1-5",
        )

        clone = service.clone_resource(identity_for("recruiter"), "interview_guide", source.id, hierarchy.branch_b)

        assert clone.scoring_rubric == "1-5"
        assert [q.question for q in clone.questions] == ["First", "Second"]
        assert clone.questions[0].scoring_weight == 2.0
        assert clone.questions[1].max_follow_ups == 2
        assert {q.id for q in clone.questions}.isdisjoint({q.id for q in source.questions})
        assert all(q.interview_guide_id == clone.id for q in clone.questions)

    def test_clone_local_resource_not_allowed(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(CloneNotAllowed):
            service.clone_resource(identity_for("recruiter"), "agent", catalog["branch_own"].id, hierarchy.branch_b)

    def test_clone_invisible_resource_is_not_found(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(ResourceNotFound):
            service.clone_resource(identity_for("recruiter"), "agent", catalog["private_a"].id, hierarchy.branch_b)
        with pytest.raises(ResourceNotFound):
            service.clone_resource(identity_for("recruiter"), "agent", catalog["c_shared"].id, hierarchy.branch_b)

    def test_clone_into_inaccessible_organization(self, service, identity_for, hierarchy, catalog):
        with pytest.raises(OrganizationNotFound):
            service.clone_resource(identity_for("recruiter"), "agent", catalog["screener"].id, hierarchy.team_d)

    def test_refused_clone_leaves_no_rows(self, service, identity_for, hierarchy, catalog):
        before = len(service.store.get_resources(hierarchy.group_id, "agent"))
        with pytest.raises(CloneNotAllowed):
            service.clone_resource(identity_for("admin"), "agent", catalog["screener"].id, hierarchy.root)

        assert len(service.store.get_resources(hierarchy.group_id, "agent")) == before

    def test_clone_failing_midway_rolls_back(self, service, identity_for, hierarchy, make_guide, monkeypatch):
        """A failure after the guide row is flushed leaves neither the guide nor its questions"""
        source = make_guide(
            hierarchy.region_a, "Warehouse", DESCENDANTS,
            [{"question": "First"}, {"question": "Second"}],
        )
        db = service.store.db
        guides_before = db.execute(select(func.count(InterviewGuide.id))).scalar_one()
        questions_before = db.execute(select(func.count(InterviewGuideQuestion.id))).scalar_one()
        save_children = service.store.save_children

        def fail_after_first_question(resource, children):
            save_children(resource, children[:1])
            raise RuntimeError("disk full")

        monkeypatch.setattr(service.store, "save_children", fail_after_first_question)

        with pytest.raises(RuntimeError):
            service.clone_resource(identity_for("recruiter"), "interview_guide", source.id, hierarchy.branch_b)

        assert db.execute(select(func.count(InterviewGuide.id))).scalar_one() == guides_before
        assert db.execute(select(func.count(InterviewGuideQuestion.id))).scalar_one() == questions_before
        assert db.execute(
            select(func.count(InterviewGuide.id)).where(InterviewGuide.cloned_from_id == source.id)
        ).scalar_one() == 0

    def test_clone_outcomes_counted(self, service, identity_for, hierarchy, catalog):
        created_before = metrics_collector.get_outcome_count("clone_agent_created")
        refused_before = metrics_collector.get_outcome_count("clone_agent_CloneNotAllowed")
        recruiter = identity_for("recruiter")

        service.clone_resource(recruiter, "agent", catalog["screener"].id, hierarchy.branch_b)
        with pytest.raises(CloneNotAllowed):
            service.clone_resource(recruiter, "agent", catalog["branch_own"].id, hierarchy.branch_b)

        assert metrics_collector.get_outcome_count("clone_agent_created") == created_before + 1
        assert metrics_collector.get_outcome_count("clone_agent_CloneNotAllowed") == refused_before + 1
