"""
Unit tests for PeriodicTask
"""

import asyncio

import pytest

from src.app.services.periodic_task import PeriodicTask


@pytest.mark.asyncio
async def test_run_once_logs_and_swallows_job_failure():
    async def job():
        raise RuntimeError("store down")

    task = PeriodicTask("gc", 1, job)

    await task.run_once()


@pytest.mark.asyncio
async def test_zero_interval_disables_task():
    calls = []

    async def job():
        calls.append(1)

    task = PeriodicTask("rotation", 0, job)
    task.start()

    assert not task.running
    await task.stop()
    assert calls == []


@pytest.mark.asyncio
async def test_loop_keeps_running_after_failure_until_stopped():
    calls = []

    async def job():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first run fails")

    task = PeriodicTask("gc", 0.01, job)
    task.start()
    for _ in range(100):
        if len(calls) >= 3:
            break
        await asyncio.sleep(0.01)
    await task.stop()

    assert len(calls) >= 3
    assert not task.running
