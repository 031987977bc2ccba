"""
Unit tests for the HTTP back-channel dispatcher
"""

import json
from datetime import datetime
from uuid import uuid4

import httpx
import pytest

from src.adapter.services.http_dispatcher import HttpDirectiveDispatcher
from src.app.services.directive_dispatcher import PropagationDirective
from src.domain.entities import PropagationAction, PropagationStatus
from src.domain.errors import ErrorCode


def _directive(url="https://app-a.example.com/sso/cookies"):
    return PropagationDirective(
        target_id=uuid4(),
        session_id=uuid4(),
        client_id=uuid4(),
        action=PropagationAction.set_cookie,
        url=url,
        payload="signed.payload.value",
        expires_at=datetime(2030, 1, 1),
    )


def _dispatcher(handler):
    return HttpDirectiveDispatcher(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_success_response_is_acknowledged():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        return httpx.Response(204)

    dispatcher = _dispatcher(handler)
    directive = _directive()

    outcome = await dispatcher.dispatch(directive)
    await dispatcher.aclose()

    assert outcome.status == PropagationStatus.acknowledged
    assert outcome.target_id == directive.target_id
    assert str(seen[0].url) == directive.url
    body = json.loads(seen[0].content)
    assert body == {
        "action": "set_cookie",
        "payload": "signed.payload.value",
        "targetId": str(directive.target_id),
    }


@pytest.mark.asyncio
async def test_error_status_is_failed():
    dispatcher = _dispatcher(lambda request: httpx.Response(500))

    outcome = await dispatcher.dispatch(_directive())

    assert outcome.status == PropagationStatus.failed
    assert outcome.error_code == ErrorCode.PROPAGATION_FAILED
    assert "500" in outcome.error


@pytest.mark.asyncio
async def test_unreachable_domain_is_failed():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    dispatcher = _dispatcher(handler)

    outcome = await dispatcher.dispatch(_directive())

    assert outcome.status == PropagationStatus.failed
    assert outcome.error_code == ErrorCode.PROPAGATION_FAILED
    assert outcome.error.startswith("ConnectError")
