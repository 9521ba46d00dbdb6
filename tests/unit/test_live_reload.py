"""
Unit tests for the live reload long-poll loop
"""

import time

import httpx
import pytest

from devmenu.reload.live import LiveReloadLoop, LoopState
from tests.conftest import PollServer, settle, wait_for_condition

ONCHANGE_URL = "http://localhost:8081/onchange"


class LoopHarness:
    """A loop wired to a switchable enabled flag and a change counter."""

    def __init__(self, client: httpx.AsyncClient, **kwargs):
        self.enabled = True
        self.changes = 0
        self.client = client
        self.loop = LiveReloadLoop(
            is_enabled=lambda: self.enabled,
            on_change=self._changed,
            client=client,
            **kwargs
        )

    def _changed(self):
        self.changes += 1

    async def close(self):
        await self.loop.aclose()
        await self.client.aclose()


class TestPollOutcomes:
    """Test what happens after each kind of poll completion."""

    @pytest.mark.asyncio
    async def test_changed_status_reloads_once(self):
        server = PollServer([205])
        harness = LoopHarness(server.client())
        harness.loop.prepare(ONCHANGE_URL)

        harness.loop.start()

        assert await wait_for_condition(lambda: harness.changes == 1)
        await settle()
        assert harness.changes == 1
        assert len(server.requests) == 1
        assert harness.loop.state == LoopState.RELOADING
        assert not harness.loop.in_flight
        await harness.close()

    @pytest.mark.asyncio
    async def test_other_status_polls_again(self):
        server = PollServer([200])
        harness = LoopHarness(server.client())
        harness.loop.prepare(ONCHANGE_URL)

        harness.loop.start()

        assert await wait_for_condition(lambda: len(server.requests) == 2)
        assert harness.changes == 0
        assert harness.loop.in_flight
        assert harness.loop.state == LoopState.POLLING
        await harness.close()

    @pytest.mark.asyncio
    async def test_transport_error_polls_again(self):
        server = PollServer([httpx.ConnectError("connection refused")])
        harness = LoopHarness(server.client())
        harness.loop.prepare(ONCHANGE_URL)

        harness.loop.start()

        assert await wait_for_condition(lambda: len(server.requests) == 2)
        assert harness.changes == 0
        await harness.close()

    @pytest.mark.asyncio
    async def test_non_http_error_polls_again(self):
        """Errors outside httpx.HTTPError must not leave the loop stuck."""
        server = PollServer([RuntimeError("client has been closed"), 205])
        harness = LoopHarness(server.client())
        harness.loop.prepare(ONCHANGE_URL)

        harness.loop.start()

        assert await wait_for_condition(lambda: harness.changes == 1)
        assert len(server.requests) == 2
        assert not harness.loop.in_flight
        assert harness.loop.state == LoopState.RELOADING
        await harness.close()

    @pytest.mark.asyncio
    async def test_requests_hit_onchange(self):
        server = PollServer([205])
        harness = LoopHarness(server.client())
        harness.loop.prepare(ONCHANGE_URL)

        harness.loop.start()
        assert await wait_for_condition(lambda: harness.changes == 1)

        assert str(server.requests[0].url) == ONCHANGE_URL
        assert server.requests[0].method == "GET"
        await harness.close()

    @pytest.mark.asyncio
    async def test_disabled_before_completion_discards_result(self):
        holder = {}

        async def handler(request):
            holder['harness'].enabled = False
            return httpx.Response(205)

        harness = LoopHarness(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        holder['harness'] = harness
        harness.loop.prepare(ONCHANGE_URL)

        harness.loop.start()

        assert await wait_for_condition(lambda: harness.loop.poll_count == 1 and not harness.loop.in_flight)
        await settle()
        assert harness.changes == 0
        assert harness.loop.poll_count == 1
        assert harness.loop.state == LoopState.IDLE
        await harness.close()


class TestLifecycle:
    """Test start, cancel and restart."""

    @pytest.mark.asyncio
    async def test_start_requires_loaded_script(self):
        server = PollServer()
        harness = LoopHarness(server.client())

        harness.loop.start()
        await settle()

        assert not harness.loop.in_flight
        assert server.requests == []
        await harness.close()

    @pytest.mark.asyncio
    async def test_start_requires_url(self):
        server = PollServer()
        harness = LoopHarness(server.client())
        harness.loop.prepare(None)

        harness.loop.start()
        await settle()

        assert server.requests == []
        await harness.close()

    @pytest.mark.asyncio
    async def test_start_requires_enabled(self):
        server = PollServer()
        harness = LoopHarness(server.client())
        harness.enabled = False
        harness.loop.prepare(ONCHANGE_URL)

        harness.loop.start()
        await settle()

        assert server.requests == []
        await harness.close()

    @pytest.mark.asyncio
    async def test_cancel_when_idle_is_noop(self):
        server = PollServer()
        harness = LoopHarness(server.client())

        harness.loop.cancel()

        assert harness.loop.state == LoopState.IDLE
        assert not harness.loop.in_flight
        await harness.close()

    @pytest.mark.asyncio
    async def test_cancel_in_flight_poll(self):
        server = PollServer()
        harness = LoopHarness(server.client())
        harness.loop.prepare(ONCHANGE_URL)
        harness.loop.start()
        assert await wait_for_condition(lambda: len(server.requests) == 1)

        harness.loop.cancel()
        server.release.set()
        await settle()

        assert not harness.loop.in_flight
        assert harness.loop.state == LoopState.IDLE
        assert len(server.requests) == 1
        assert harness.changes == 0
        await harness.close()

    @pytest.mark.asyncio
    async def test_start_while_in_flight_cancels(self):
        server = PollServer()
        harness = LoopHarness(server.client())
        harness.loop.prepare(ONCHANGE_URL)
        harness.loop.start()
        assert await wait_for_condition(lambda: len(server.requests) == 1)

        harness.loop.start()
        await settle()

        assert not harness.loop.in_flight
        assert len(server.requests) == 1
        await harness.close()

    @pytest.mark.asyncio
    async def test_restart_replaces_in_flight_poll(self):
        server = PollServer()
        harness = LoopHarness(server.client())
        harness.loop.prepare(ONCHANGE_URL)
        harness.loop.start()
        assert await wait_for_condition(lambda: len(server.requests) == 1)

        harness.loop.restart()

        assert await wait_for_condition(lambda: len(server.requests) == 2)
        assert harness.loop.in_flight
        await harness.close()


class TestRetryDelay:
    """Test the optional back-off after transport errors."""

    def test_immediate_by_default(self):
        loop = LiveReloadLoop(is_enabled=lambda: True, on_change=lambda: None)
        loop._consecutive_errors = 3
        assert loop._next_delay() == 0.0

    def test_doubles_and_caps(self):
        loop = LiveReloadLoop(is_enabled=lambda: True, on_change=lambda: None,
                              retry_delay=1.0, max_retry_delay=3.0)

        delays = []
        for errors in range(4):
            loop._consecutive_errors = errors
            delays.append(loop._next_delay())

        assert delays == [0.0, 1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_errors_delay_the_next_poll(self):
        server = PollServer([httpx.ConnectError("down"), httpx.ConnectError("down"), 205])
        harness = LoopHarness(server.client(), retry_delay=0.05)
        harness.loop.prepare(ONCHANGE_URL)

        started = time.monotonic()
        harness.loop.start()

        assert await wait_for_condition(lambda: harness.changes == 1)
        assert time.monotonic() - started >= 0.15
        assert len(server.requests) == 3
        await harness.close()

    @pytest.mark.asyncio
    async def test_success_resets_error_count(self):
        server = PollServer([httpx.ConnectError("down"), 200])
        harness = LoopHarness(server.client(), retry_delay=0.01)
        harness.loop.prepare(ONCHANGE_URL)

        harness.loop.start()

        assert await wait_for_condition(lambda: len(server.requests) == 3)
        assert harness.loop._consecutive_errors == 0
        await harness.close()
