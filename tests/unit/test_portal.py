"""Tests for the background event-loop portal."""

from __future__ import annotations

import asyncio
import threading

import pytest

from tunit.portal import LoopPortal


def test_run_returns_coroutine_result_from_portal_thread():
    async def which_thread() -> str:
        await asyncio.sleep(0)
        return threading.current_thread().name

    with LoopPortal(name="portal-under-test") as portal:
        assert portal.run(which_thread()) == "portal-under-test"


def test_call_runs_function_on_loop():
    with LoopPortal() as portal:
        loop = portal.call(asyncio.get_running_loop)

        assert loop is portal.loop


def test_exceptions_propagate_to_caller():
    async def fail() -> None:
        raise ValueError("from the loop")

    with LoopPortal() as portal, pytest.raises(ValueError, match="from the loop"):
        portal.run(fail())


def test_single_exception_group_is_collapsed():
    async def fail() -> None:
        async with asyncio.TaskGroup() as tg:
            tg.create_task(asyncio.sleep(0))
            raise KeyError("only")

    with LoopPortal() as portal, pytest.raises(KeyError):
        portal.run(fail())


def test_stop_is_idempotent_and_releases_loop():
    portal = LoopPortal()
    portal.start()
    portal.start()
    portal.stop()
    portal.stop()

    with pytest.raises(RuntimeError, match="not started"):
        portal.loop
