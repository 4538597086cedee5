import asyncio
import os
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

os.environ.setdefault("JWT_SECRET", "tests-secret-key")
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(tempfile.gettempdir()) / f'doccollab-tests-{os.getpid()}.sqlite3'}",
)
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("AUTOSAVE_INTERVAL_SECONDS", "0")

from app.core.db import SessionLocal, reset_models
from app.main import create_app


PASSWORD = "Secret123"


@pytest.fixture
def client():
    asyncio.run(reset_models())
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db_session():
    await reset_models()
    async with SessionLocal() as session:
        yield session


def register(client: TestClient, name: str, email: str) -> dict:
    """Регистрирует пользователя и возвращает его данные вместе с токеном"""
    response = client.post(
        "/auth/register",
        json={"name": name, "email": email, "password": PASSWORD},
    )
    assert response.status_code == 201, response.text

    login = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert login.status_code == 200, login.text
    # тесты передают токен явно, cookie одного пользователя не должна мешать другому
    client.cookies.clear()

    user = response.json()
    user["token"] = login.json()["access_token"]
    user["headers"] = {"Authorization": f"Bearer {user['token']}"}
    return user


@pytest.fixture
def make_user(client):
    def _make_user(name: str, email: str) -> dict:
        return register(client, name, email)
    return _make_user
