"""
Unit tests for propagation and maintenance use cases
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from libs.result import Error, Return
from src.app.use_cases.maintenance import CollectGarbageUseCase
from src.app.use_cases.propagation import (
    AcknowledgeCommand,
    AcknowledgePropagationUseCase,
    ListPropagationTargetsUseCase,
    RetryPropagationUseCase,
)
from src.domain.entities import (
    PropagationAction,
    PropagationStatus,
    PropagationTarget,
)
from src.domain.errors import ErrorCode


def _target(status=PropagationStatus.dispatched):
    return PropagationTarget(
        id=uuid4(),
        session_id=uuid4(),
        client_id=uuid4(),
        action=PropagationAction.clear_cookie,
        status=status,
        target_url="https://app-b.example.com/sso/cookies/clear",
        attempts=1,
    )


@pytest.mark.asyncio
async def test_acknowledge_commits_and_returns_target(mock_uow):
    target = _target(PropagationStatus.acknowledged)
    coordinator = MagicMock()
    coordinator.acknowledge = AsyncMock(return_value=Return.ok(target))

    result = await AcknowledgePropagationUseCase(mock_uow, coordinator).execute(
        target.id, AcknowledgeCommand(payload="signed-payload", success=True)
    )

    assert result.value.status == "acknowledged"
    assert result.value.target_id == str(target.id)
    coordinator.acknowledge.assert_awaited_once_with(target.id, "signed-payload", True, None)
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_acknowledge_unknown_target(mock_uow):
    coordinator = MagicMock()
    coordinator.acknowledge = AsyncMock(
        return_value=Return.err(Error(ErrorCode.TARGET_NOT_FOUND, "Propagation target not found"))
    )

    result = await AcknowledgePropagationUseCase(mock_uow, coordinator).execute(
        uuid4(), AcknowledgeCommand(payload="signed-payload", success=False, error="cookie rejected")
    )

    assert result.error.code == ErrorCode.TARGET_NOT_FOUND
    mock_uow.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_is_audited(mock_uow):
    target = _target(PropagationStatus.acknowledged)
    target.attempts = 2
    coordinator = MagicMock()
    coordinator.retry = AsyncMock(return_value=Return.ok(target))
    store = MagicMock()

    result = await RetryPropagationUseCase(mock_uow, coordinator, store).execute(target.id)

    assert result.value.attempts == 2
    coordinator.retry.assert_awaited_once_with(target.id, store)
    audit = mock_uow.audit_events.create.call_args[0][0]
    assert audit.action == "propagation_retried"
    assert audit.event_metadata["status"] == "acknowledged"


@pytest.mark.asyncio
async def test_retry_not_retryable(mock_uow):
    coordinator = MagicMock()
    coordinator.retry = AsyncMock(
        return_value=Return.err(Error(ErrorCode.TARGET_NOT_RETRYABLE, "Only failed targets"))
    )

    result = await RetryPropagationUseCase(mock_uow, coordinator, MagicMock()).execute(uuid4())

    assert result.error.code == ErrorCode.TARGET_NOT_RETRYABLE
    mock_uow.audit_events.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_targets_unknown_session(mock_uow):
    mock_uow.sessions = MagicMock()
    mock_uow.sessions.get_by_id = AsyncMock(return_value=None)

    result = await ListPropagationTargetsUseCase(mock_uow, MagicMock()).execute(uuid4())

    assert result.error.code == ErrorCode.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_collect_garbage(mock_uow):
    store = MagicMock()
    store.expire_stale = AsyncMock(return_value=2)
    coordinator = MagicMock()
    coordinator.expire_overdue = AsyncMock(return_value=1)

    result = await CollectGarbageUseCase(mock_uow, store, coordinator, batch_size=10).execute()

    assert result.value == {"sessions_expired": 2, "targets_failed": 1}
    store.expire_stale.assert_awaited_once_with(limit=10)
    coordinator.expire_overdue.assert_awaited_once_with(limit=10)
    mock_uow.commit.assert_awaited_once()
