import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from bvi_dashboard.db import Database
from bvi_dashboard.db_models import Base, Post
from bvi_dashboard.main import create_app
from bvi_dashboard.settings import Settings


@pytest.fixture
def database():
    db = Database("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    db.connect()
    # the service never creates tables; tests stand in for the ingestion pipeline
    Base.metadata.create_all(db.engine)
    yield db
    db.close()


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def add_posts(session):
    def _add(*posts: Post):
        session.add_all(posts)
        session.commit()
        return posts
    return _add


@pytest.fixture
def app(database):
    return create_app(Settings(database_url="sqlite://"), database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
