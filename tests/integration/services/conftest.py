import pytest_asyncio

from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.session_locks import KeyedLock
from src.app.services.session_store import SessionStore
from tests.fixtures.clock import FrozenClock, build_issuer


@pytest_asyncio.fixture
def clock():
    return FrozenClock()


@pytest_asyncio.fixture
def issuer(clock):
    return build_issuer(clock)


@pytest_asyncio.fixture
def locks():
    return KeyedLock()


@pytest_asyncio.fixture
async def uow(db_session, seeded):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        yield uow


@pytest_asyncio.fixture
def store(uow, issuer, locks, clock):
    return SessionStore(uow, issuer, locks=locks, clock=clock)
