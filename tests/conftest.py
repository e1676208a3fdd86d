"""Pytest configuration and shared fixtures"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from hiring_platform.main import app
from hiring_platform.database import Base, get_db
from hiring_platform.models import VisibilityScope
from hiring_platform.services.auth_service import AuthService
from hiring_platform.services.hierarchy_service import HierarchyService
from hiring_platform.services.persistence_gateway import PersistenceGateway


# In-memory database shared by every connection of the test engine
TEST_DATABASE_URL = "sqlite://"


class Hierarchy:
    """
    Ids of the sample tree used across tests:

        root
        ├── region_a
        │   └── branch_b
        │       └── team_d
        └── region_c
    """

    def __init__(self, **ids):
        self.__dict__.update(ids)


@pytest.fixture
def test_engine():
    """Create a test database engine with working SAVEPOINT support"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    """Create a database session for testing"""
    session = Session(bind=test_engine, autoflush=False, expire_on_commit=False)
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def gateway(db_session) -> PersistenceGateway:
    return PersistenceGateway(db_session)


@pytest.fixture
def service(db_session) -> HierarchyService:
    return HierarchyService(db_session)


@pytest.fixture
def hierarchy(gateway: PersistenceGateway) -> Hierarchy:
    """Sample group with a four-level tree, a sibling region and one user per role"""
    superadmin = gateway.create_user("superadmin", "Sam Super", "sam@example.com", is_superadmin=True)

    group = gateway.create_group("Acme Staffing", "Acme HQ", "Chicago", "IL")
    root_id = group.root_organization_id
    region_a = gateway.create_organization(group.id, root_id, "Region A")
    branch_b = gateway.create_organization(group.id, region_a.id, "Branch B")
    region_c = gateway.create_organization(group.id, root_id, "Region C")
    team_d = gateway.create_organization(group.id, branch_b.id, "Team D")

    admin = gateway.create_user("admin", "Ada Admin")
    gateway.set_membership(admin.id, group.id, is_admin=True)

    manager = gateway.create_user("manager", "Max Manager")
    gateway.set_membership(manager.id, group.id)
    gateway.add_grant(manager.id, region_a.id, include_children=True)

    recruiter = gateway.create_user("recruiter", "Rae Recruiter")
    gateway.set_membership(recruiter.id, group.id)
    gateway.add_grant(recruiter.id, branch_b.id, include_children=False)

    outsider = gateway.create_user("outsider", "Oli Outsider")

    other_group = gateway.create_group("Globex", "Globex HQ")

    return Hierarchy(
        group_id=group.id,
        root=root_id,
        region_a=region_a.id,
        branch_b=branch_b.id,
        region_c=region_c.id,
        team_d=team_d.id,
        superadmin=superadmin.id,
        admin=admin.id,
        manager=manager.id,
        recruiter=recruiter.id,
        outsider=outsider.id,
        other_group_id=other_group.id,
        other_root=other_group.root_organization_id,
    )


@pytest.fixture
def identity_for(service: HierarchyService, hierarchy: Hierarchy):
    """Build the identity of a sample user inside the sample group"""
    def build(user_attr: str, viewing_organization_id=None):
        return service.resolve_identity(getattr(hierarchy, user_attr), hierarchy.group_id, viewing_organization_id)
    return build


@pytest.fixture
def make_agent(service: HierarchyService, identity_for):
    """Create an agent as the group admin"""
    def build(organization_id, display_name, scope=VisibilityScope.ORGANIZATION_ONLY, **fields):
        values = {
            "organization_id": organization_id,
            "display_name": display_name,
            "visibility_scope": scope.value if isinstance(scope, VisibilityScope) else scope,
        }
        values.update(fields)
        return service.create_resource(identity_for("admin"), "agent", values)
    return build


@pytest.fixture
def make_guide(service: HierarchyService, identity_for):
    """Create an interview guide (with questions) as the group admin"""
    def build(organization_id, name, scope=VisibilityScope.ORGANIZATION_ONLY, questions=None, **fields):
        values = {
            "organization_id": organization_id,
            "name": name,
            "visibility_scope": scope.value if isinstance(scope, VisibilityScope) else scope,
        }
        values.update(fields)
        return service.create_resource(identity_for("admin"), "interview_guide", values, questions or [])
    return build


@pytest.fixture
def client(db_session):
    """FastAPI test client sharing the test session"""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(hierarchy: Hierarchy):
    """Create request headers for a sample user acting in the sample group"""
    def build(user_attr: str, organization_id=None, group_id=None):
        token = AuthService.create_access_token(user_id=str(getattr(hierarchy, user_attr)))
        headers = {
            "Authorization": f"Bearer {token}",
            "X-Group-Id": str(group_id or hierarchy.group_id),
        }
        if organization_id is not None:
            headers["X-Organization-Id"] = str(organization_id)
        return headers
    return build
