import os

# Must be set before orderdesk is imported; the engine is built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS"] = "false"

import pytest
from fastapi.testclient import TestClient

from orderdesk.domain.models import Base
from orderdesk.infrastructure.db import engine, SessionLocal


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from orderdesk.main import app
    return TestClient(app)


