"""Tests for CoalescerPool."""

import asyncio
import math
from pathlib import Path

import pytest

from lazywrite.pool import CoalescerPool


class TestCoalescerPoolBasic:
    def test_one_coalescer_per_path(self, writer):
        pool = CoalescerPool(delay=0.05, writer=writer)
        assert pool.get("a.txt") is pool.get("a.txt")
        assert pool.get("a.txt") is not pool.get("b.txt")
        assert pool.active == 2

    def test_path_like_normalized(self, writer):
        pool = CoalescerPool(delay=0.05, writer=writer)
        assert pool.get(Path("a.txt")) is pool.get("a.txt")
        assert Path("a.txt") in pool
        assert "missing.txt" not in pool

    def test_defaults_passed_to_coalescers(self, writer):
        pool = CoalescerPool(delay=0.25, writer=writer, mode=0o600, encoding="latin-1")
        coalescer = pool.get("a.txt")
        assert coalescer.delay == 0.25
        assert coalescer.config.mode == 0o600
        assert coalescer.config.encoding == "latin-1"
        assert coalescer.writer is writer

    def test_negative_delay_raises(self):
        with pytest.raises(ValueError, match="delay must be non-negative"):
            CoalescerPool(delay=-1)

    def test_nan_delay_raises(self):
        with pytest.raises(ValueError, match="delay must be non-negative"):
            CoalescerPool(delay=math.nan)

    def test_repr(self):
        assert repr(CoalescerPool(delay=0.5)) == "CoalescerPool(delay=0.5, active=0)"


class TestCoalescerPoolWrites:
    async def test_independent_paths(self, writer):
        async with CoalescerPool(delay=0.02, writer=writer) as pool:
            pool.request("a.txt", "a1")
            pool.request("b.txt", "b1")
            pool.request("a.txt", "a2")
            await pool.get("a.txt").wait_idle()
            await pool.get("b.txt").wait_idle()

        written = sorted((call.path, call.content) for call in writer.calls)
        assert written == [("a.txt", "a2"), ("b.txt", "b1")]

    async def test_listeners_reach_existing_and_new_coalescers(self, writer):
        pool = CoalescerPool(delay=0.01, writer=writer)
        pool.get("early.txt")
        seen = []
        pool.on_write_success(lambda event: seen.append(event.path))

        pool.request("early.txt", "x")
        pool.request("late.txt", "y")
        await pool.close()

        assert sorted(seen) == ["early.txt", "late.txt"]

    async def test_error_listener(self, make_writer):
        writer = make_writer(error=OSError("disk full"))
        pool = CoalescerPool(delay=0.01, writer=writer)
        errors = []
        pool.on_error(errors.append)

        pool.request("a.txt", "x")
        await pool.close()

        assert [failure.path for failure in errors] == ["a.txt"]

    async def test_close_flushes_everything(self, tmp_path):
        pool = CoalescerPool(delay=10.0)
        pool.request(tmp_path / "a.txt", "alpha")
        pool.request(tmp_path / "b.txt", "beta")
        await pool.close()

        assert pool.active == 0
        assert (tmp_path / "a.txt").read_text() == "alpha"
        assert (tmp_path / "b.txt").read_text() == "beta"


class TestCoalescerPoolClose:
    async def test_request_after_close_raises(self, writer):
        pool = CoalescerPool(delay=0.01, writer=writer)
        pool.request("a.txt", "x")
        await pool.close()

        with pytest.raises(RuntimeError, match="CoalescerPool is closed"):
            pool.request("b.txt", "y")
        with pytest.raises(RuntimeError, match="CoalescerPool is closed"):
            pool.get("a.txt")
        assert pool.closed is True
        assert pool.active == 0
        assert writer.contents == ["x"]

    async def test_close_is_idempotent(self, writer):
        pool = CoalescerPool(delay=0.01, writer=writer)
        pool.request("a.txt", "x")
        await pool.close()
        await pool.close()
        assert writer.contents == ["x"]

    async def test_close_from_listener(self, writer):
        pool = CoalescerPool(delay=0.01, writer=writer)

        @pool.on_write_success
        async def stop(event):
            await pool.close()

        pool.request("a.txt", "x")
        coalescer = pool.get("a.txt")
        await asyncio.wait_for(coalescer.wait_idle(), timeout=1.0)

        assert pool.closed is True
        assert coalescer.closed is True
        assert writer.contents == ["x"]
