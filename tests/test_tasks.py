"""Tests for the fire-and-forget task runner."""

import asyncio
import logging

import pytest

from galleria.lib.tasks import BackgroundTasks


class TestBackgroundTasks:
    @pytest.mark.asyncio
    async def test_runs_submitted_work(self):
        tasks = BackgroundTasks()
        seen = []

        async def work(value):
            await asyncio.sleep(0)
            seen.append(value)

        tasks.submit(work, 1)
        tasks.submit(work, 2)
        assert tasks.pending == 2

        await tasks.drain()

        assert sorted(seen) == [1, 2]
        assert tasks.pending == 0

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, caplog):
        tasks = BackgroundTasks()

        async def boom():
            raise RuntimeError("nope")

        with caplog.at_level(logging.WARNING, logger="galleria.lib.tasks"):
            tasks.submit(boom, name="boom-task")
            await tasks.drain()

        assert "boom-task" in caplog.text
        assert tasks.pending == 0

    @pytest.mark.asyncio
    async def test_drain_waits_for_work_scheduled_while_draining(self):
        tasks = BackgroundTasks()
        seen = []

        async def second():
            seen.append("second")

        async def first():
            tasks.submit(second)
            seen.append("first")

        tasks.submit(first)
        await tasks.drain()

        assert seen == ["first", "second"]

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self):
        await BackgroundTasks().drain()
