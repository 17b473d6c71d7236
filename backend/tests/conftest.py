import io
import os

# In-memory database for the whole test session; must be set before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from client.inventory_client import InventoryClient
from database import Base, get_db
from main import app
from routes.imports import get_import_sessions
from utils.cache import QueryCache
from utils.spreadsheet import ImportSessionStore

ADMIN_EMAIL = "admin@inventory.io"
ADMIN_PASSWORD = "secret123"


def make_xlsx(rows):
    """Workbook bytes with `rows` written from A1 down; None leaves a cell empty."""
    workbook = Workbook()
    sheet = workbook.active
    for r, row in enumerate(rows, start=1):
        for c, value in enumerate(row, start=1):
            if value is not None:
                sheet.cell(row=r, column=c, value=value)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def xlsx():
    return make_xlsx


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def import_sessions():
    return ImportSessionStore()


@pytest.fixture
def test_app(engine, import_sessions):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _get_test_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_import_sessions] = lambda: import_sessions
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def token(test_app):
    with TestClient(test_app) as anon:
        anon.post("/register", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        response = anon.post("/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


@pytest.fixture
def api(test_app, token):
    """Authenticated TestClient (first registered user, so admin)."""
    with TestClient(test_app) as client:
        client.headers.update({"Authorization": f"Bearer {token}"})
        yield client


@pytest.fixture
def cache():
    return QueryCache()


@pytest_asyncio.fixture
async def inventory(test_app, token, cache):
    transport = httpx.ASGITransport(app=test_app)
    async with InventoryClient("http://testserver", token=token, cache=cache, transport=transport) as client:
        yield client
