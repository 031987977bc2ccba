from contextlib import asynccontextmanager
from types import SimpleNamespace

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.http_dispatcher import HttpDirectiveDispatcher
from src.adapter.services.relay_dispatcher import BrowserRelayDispatcher
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.credential_verifier import hash_password
from src.depends import (
    get_directive_dispatcher,
    get_unit_of_work,
    get_unit_of_work_factory,
)
from src.domain.entities import Client, User
from tests.fixtures.json_loader import TestDataLoader
from tests.utils.api_helpers import ClientDomains


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db_session):
    """Users alice (password only) and bob (TOTP), clients app_a/app_b/app_c.

    Only ids are handed out: the shared session expires ORM objects on every
    request rollback.
    """
    users = {}
    for name in ("alice", "bob"):
        data = TestDataLoader.user(name)
        user = User(
            username=data["username"],
            password_hash=hash_password(data["password"]),
            totp_secret=data.get("totp_secret"),
        )
        db_session.add(user)
        users[name] = user

    clients = {}
    for name in ("app_a", "app_b", "app_c"):
        client = Client(**TestDataLoader.client(name))
        db_session.add(client)
        clients[name] = client

    await db_session.commit()
    return SimpleNamespace(
        users={name: user.id for name, user in users.items()},
        clients={name: client.id for name, client in clients.items()},
    )


def _build_client(db_session, dispatcher):
    from src.api.app import create_app

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    @asynccontextmanager
    async def unit_of_work_scope():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_unit_of_work_factory] = lambda: unit_of_work_scope
    app.dependency_overrides[get_directive_dispatcher] = lambda: dispatcher

    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def client(db_session, seeded):
    """API client with directives relayed through the browser."""
    async with _build_client(db_session, BrowserRelayDispatcher()) as ac:
        yield ac


@pytest_asyncio.fixture
def domains():
    return ClientDomains()


@pytest_asyncio.fixture
async def http_client(db_session, seeded, domains):
    """API client delivering directives over the back channel."""
    dispatcher = HttpDirectiveDispatcher(
        httpx.AsyncClient(transport=httpx.MockTransport(domains.handler))
    )
    async with _build_client(db_session, dispatcher) as ac:
        yield ac
    await dispatcher.aclose()

