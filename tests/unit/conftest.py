import pytest
from unittest.mock import AsyncMock, MagicMock

from tests.fixtures.clock import FrozenClock, build_issuer


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_id = AsyncMock()
    uow.users.get_by_username = AsyncMock()
    uow.users.update = AsyncMock()

    uow.clients = MagicMock()
    uow.clients.get_by_id = AsyncMock()
    uow.clients.get_many = AsyncMock(return_value=[])
    uow.clients.create = AsyncMock(side_effect=lambda c: c)
    uow.clients.update = AsyncMock(side_effect=lambda c: c)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock()
    return uow


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def issuer(clock):
    return build_issuer(clock)
