from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from farm_manager.database import Base, get_db, init_db
from farm_manager.main import app
from farm_manager.schemas.farm import FarmCreate
from farm_manager.schemas.inventory import InventoryItemCreate
from farm_manager.services import auth_service, farm_service, inventory_service


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db):
    return auth_service.create_user(db, "joao", "segredo", name="João Silva", role="manager")


@pytest.fixture
def outsider(db):
    return auth_service.create_user(db, "maria", "segredo", name="Maria Souza", role="manager")


@pytest.fixture
def farm(db, owner):
    return farm_service.create_farm(db, FarmCreate(name="Fazenda Boa Vista", location="Uberaba, MG"), owner)


@pytest.fixture
def item(db, farm, owner):
    return inventory_service.create_item(
        db,
        farm.id,
        InventoryItemCreate(
            name="Ração bovina",
            category="feed",
            quantity=Decimal("100"),
            unit="kg",
            minimum_level=Decimal("20"),
        ),
        owner,
    )


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_access_token(user.id, user.username)}"}


@pytest.fixture
def owner_headers(owner):
    return bearer(owner)


@pytest.fixture
def outsider_headers(outsider):
    return bearer(outsider)


@pytest.fixture
def super_admin(db):
    return auth_service.create_user(db, "root", "segredo", name="Root", role="super_admin")


@pytest.fixture
def super_admin_headers(super_admin):
    return bearer(super_admin)
