"""Shared fixtures: a throwaway SQLite database, users, tokens and clients."""
from __future__ import annotations

import os
from typing import Callable, Iterator
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_neocomm.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from neocomm.database import Base, SessionLocal, engine  # noqa: E402
from neocomm.main import create_app  # noqa: E402
from neocomm.models import Friendship, Message, User  # noqa: E402
from neocomm.services import create_access_token  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(Message))
        session.execute(delete(Friendship))
        session.execute(delete(User))
        session.commit()
    yield


@pytest.fixture
def db() -> Iterator:
    with SessionLocal() as session:
        yield session


@pytest.fixture
def user_factory() -> Callable[..., User]:
    def _factory(username: str, *, email: str | None = None, avatar_url: str | None = None) -> User:
        with SessionLocal() as session:
            user = User(
                username=username,
                email=email or f"{username}-{uuid4().hex[:8]}@example.com",
                hashed_password="test-hash",
                avatar_url=avatar_url,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            return user
    return _factory


@pytest.fixture
def befriend() -> Callable[[User, User], None]:
    def _link(first: User, second: User) -> None:
        with SessionLocal() as session:
            session.add(Friendship(user_a_id=first.id, user_b_id=second.id))
            session.commit()
    return _link


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user.id, username=user.username)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def app() -> FastAPI:
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
