#!/usr/bin/env python3
"""
Database seeding script for development and testing.
Creates a group with a three-level organization tree, users with grants,
and agents / interview guides shared down the tree.
"""

import sys

from hiring_platform.database import Base, SessionLocal, configure_engine
from hiring_platform.models import VisibilityScope
from hiring_platform.services.auth_service import AuthService
from hiring_platform.services.hierarchy_service import HierarchyService
from hiring_platform.services.persistence_gateway import PersistenceGateway


def create_tables():
    """Create all database tables"""
    engine = configure_engine()
    Base.metadata.create_all(engine)
    print("✓ Database tables created")


def seed_data():
    """Seed the database with sample data"""
    db = SessionLocal()
    try:
        gateway = PersistenceGateway(db)
        service = HierarchyService(db)

        superadmin = gateway.create_user("seed-superadmin", "Sam Super", "sam@example.com", is_superadmin=True)
        group = service.create_group(superadmin.id, "Northwind Staffing", "Northwind HQ", "Chicago", "IL")
        print(f"✓ Created group {group.name} (api key {group.api_key})")

        root_id = group.root_organization_id
        midwest = gateway.create_organization(group.id, root_id, "Midwest Region", "Chicago", "IL")
        detroit = gateway.create_organization(group.id, midwest.id, "Detroit Branch", "Detroit", "MI")
        west = gateway.create_organization(group.id, root_id, "West Region", "Denver", "CO")
        print("✓ Created organizations")

        admin = gateway.create_user("seed-admin", "Ada Admin", "ada@example.com")
        gateway.set_membership(admin.id, group.id, is_admin=True)

        manager = gateway.create_user("seed-manager", "Max Manager", "max@example.com")
        gateway.set_membership(manager.id, group.id)
        gateway.add_grant(manager.id, midwest.id, include_children=True)

        recruiter = gateway.create_user("seed-recruiter", "Rae Recruiter", "rae@example.com")
        gateway.set_membership(recruiter.id, group.id)
        gateway.add_grant(recruiter.id, detroit.id)
        print("✓ Created users and grants")

        identity = service.resolve_identity(admin.id, group.id)
        service.create_resource(
            identity,
            "agent",
            {
                "organization_id": root_id,
                "display_name": "Friendly Screener",
                "system_prompt": "You run short, friendly phone screens.",
                "voice_provider": "elevenlabs",
                "voice_type": "preset",
                "visibility_scope": VisibilityScope.ORGANIZATION_AND_DESCENDANTS.value,
            },
        )
        service.create_resource(
            identity,
            "interview_guide",
            {
                "organization_id": midwest.id,
                "name": "Warehouse Associate Screen",
                "description": "Baseline questions for warehouse roles",
                "visibility_scope": VisibilityScope.DESCENDANTS_ONLY.value,
            },
            [
                {"question": "Tell me about your forklift experience.", "scoring_weight": 2.0},
                {"question": "Which shifts can you work?"},
            ],
        )
        service.create_resource(
            identity,
            "agent",
            {
                "organization_id": west.id,
                "display_name": "West Coast Recruiter",
                "visibility_scope": VisibilityScope.ORGANIZATION_ONLY.value,
            },
        )
        print("✓ Created agents and interview guides")

        db.commit()

        print("\nDevelopment tokens:")
        for user in (superadmin, admin, manager, recruiter):
            print(f"  {user.auth_subject}: {AuthService.create_access_token(str(user.id), str(group.id))}")
        print(f"\nX-Group-Id: {group.id}")

    except Exception as e:
        db.rollback()
        print(f"✗ Error seeding data: {e}")
        raise
    finally:
        db.close()


def main():
    """Main function"""
    print("🌱 Starting database seeding...\n")
    create_tables()
    seed_data()
    print("\n✅ Database seeding completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
