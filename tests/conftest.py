"""
Shared fixtures for the infrastructure hierarchy tests.

Settings are read when infra_api.core.database is imported, so the test
database URL must be in the environment before any application import.
"""
import os

os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from fakes import InMemoryHierarchyRepository, make_node


@pytest.fixture()
def db():
    """Fresh schema on the shared in-memory SQLite engine, instance types seeded."""
    from infra_api.core.database import Base, SessionLocal, engine
    from infra_api.models import hierarchy, infrastructure  # noqa: F401 register tables
    from infra_api.services.instance_type_seed import instance_type_seed

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    instance_type_seed.seed(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def scenario_repo():
    """7 (School) -> 4 (Supervisor) -> 2 (Area) -> 1 (Direction, root)"""
    from infra_api.models.infrastructure import Area, Direction, InstanceKind, School, Supervisor

    repo = InMemoryHierarchyRepository(
        nodes=[
            make_node(1, None, InstanceKind.DIRECTION, instance_id=10),
            make_node(2, 1, InstanceKind.AREA, instance_id=20),
            make_node(4, 2, InstanceKind.SUPERVISOR, instance_id=40),
            make_node(7, 4, InstanceKind.SCHOOL, instance_id=70),
        ],
        instances=[
            (InstanceKind.DIRECTION, Direction(id=10, name="Direction X", state=True)),
            (InstanceKind.AREA, Area(id=20, name="Area W", state=True)),
            (InstanceKind.SUPERVISOR, Supervisor(id=40, name="Supervisor Y", state=True)),
            (InstanceKind.SCHOOL, School(id=70, name="School Z", state=True)),
        ],
    )
    return repo
