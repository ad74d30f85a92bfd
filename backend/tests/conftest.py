import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from settleup.database import Base, get_db
from settleup.main import app

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def register(client, email, name, password="testpass123"):
    res = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
    data = res.json()
    return data["user"], {"Authorization": f"Bearer {data['access_token']}"}


@pytest.fixture
def auth_headers(client):
    _, headers = register(client, "test@example.com", "Test User")
    return headers


@pytest.fixture
def me(client, auth_headers):
    return client.get("/api/auth/me", headers=auth_headers).json()


@pytest.fixture
def second_user(client):
    user, _ = register(client, "user2@example.com", "User Two")
    return user


@pytest.fixture
def third_user(client):
    user, _ = register(client, "user3@example.com", "User Three")
    return user


@pytest.fixture
def trio(client, auth_headers, me, second_user, third_user):
    """A group of three; returns (group_id, my_id, second_id, third_id)."""
    res = client.post("/api/groups", json={
        "name": "Trip", "member_ids": [second_user["id"], third_user["id"]]
    }, headers=auth_headers)
    return res.json()["id"], me["id"], second_user["id"], third_user["id"]
