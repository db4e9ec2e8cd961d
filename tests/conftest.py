import os

os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["SEED_DATA"] = "false"
# the module-level engine is never used by the tests, each test gets its own
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import storefront.data.models  # noqa: F401
from storefront.data.database import Base, get_db, make_engine, make_session_factory
from storefront.data.models import CategoryModel, ProductModel, UserModel
from storefront.main import create_app


@pytest.fixture()
def engine(tmp_path):
    # a file database, so every thread/session gets its own connection
    eng = make_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    """
    One session for service-level tests. SQLite takes the write lock on
    BEGIN, so a test should not keep a transaction open on this session
    while another session (a request, a thread) needs the database.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def users(db):
    admin = UserModel(username="admin", email="admin@cyclepro.com", is_admin=True)
    alice = UserModel(username="alice", email="alice@example.com", first_name="Alice")
    bob = UserModel(username="bob", email="bob@example.com", first_name="Bob")
    db.add_all([admin, alice, bob])
    db.commit()
    return {"admin": admin, "alice": alice, "bob": bob}


@pytest.fixture()
def catalog(db):
    accessories = CategoryModel(name="Accessories", slug="accessories")
    apparel = CategoryModel(name="Apparel", slug="apparel")
    db.add_all([accessories, apparel])
    db.flush()

    products = {
        "bottle": ProductModel(
            name="Insulated Water Bottle", slug="insulated-water-bottle", price=Decimal("25.00"),
            category_id=accessories.id, brand="Camelbak", description="Keeps water cold",
        ),
        "lights": ProductModel(
            name="Ultra Bright Bike Lights", slug="ultra-bright-bike-lights", price=Decimal("50.00"),
            category_id=accessories.id, brand="Light & Motion", is_new=True,
        ),
        "helmet": ProductModel(
            name="Pro Trail Helmet", slug="pro-trail-helmet", price=Decimal("100.00"),
            category_id=accessories.id, brand="Giro", is_featured=True, rating=4.5,
        ),
        "jersey": ProductModel(
            name="Elite Cycling Jersey", slug="elite-cycling-jersey", price=Decimal("89.99"),
            category_id=apparel.id, brand="Rapha", is_featured=True, rating=4.8,
        ),
        "shoes": ProductModel(
            name="Pro Cycling Shoes", slug="pro-cycling-shoes", price=Decimal("149.99"),
            category_id=apparel.id, brand="Shimano", in_stock=False,
        ),
    }
    db.add_all(products.values())
    db.commit()
    products["categories"] = {"accessories": accessories, "apparel": apparel}
    return products


@pytest.fixture()
def app(session_factory):
    app = create_app(use_lifespan=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)

