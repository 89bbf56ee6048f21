"""Tests for the tracker HTTP server and the HTTP score reporter."""

import asyncio

from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from price_tracker.feed_sink import PriceFeedSink
from price_tracker.reporter import HttpScoreReporter
from price_tracker.server import TrackerServer
from price_tracker.session import SessionController
from price_tracker.tracker import PriceTracker
from price_tracker.types import FeedHealth
from price_tracker.util import now_ms


def make_server(connected: bool = True):
    controller = SessionController(PriceFeedSink(), countdown_seconds=3)
    tracker = PriceTracker(controller, symbol="BTCUSDT", queue_size=10)
    server = TrackerServer(tracker, feed_health=FeedHealth(connected=connected))
    return server, tracker


class TestTrackerServer:
    """Tests for TrackerServer endpoints."""

    def test_get_state(self):
        """GET /state returns the snapshot."""
        async def scenario():
            server, tracker = make_server()
            tracker.controller.on_sample(64000.0)
            async with TestClient(TestServer(server.build_app())) as client:
                resp = await client.get("/state")
                return resp.status, await resp.json()

        status, body = asyncio.run(scenario())
        assert status == 200
        assert body["symbol"] == "BTCUSDT"
        assert body["current_price"] == 64000.0
        assert body["history"] == [64000.0]
        assert body["state"] == "IDLE"
        assert body["baseline_price"] is None

    def test_get_state_history_tail(self):
        """GET /state?tail=N returns only the newest N samples."""
        async def scenario():
            server, tracker = make_server()
            for price in [1.0, 2.0, 3.0]:
                tracker.controller.on_sample(price)
            async with TestClient(TestServer(server.build_app())) as client:
                resp = await client.get("/state", params={"tail": "1"})
                body = await resp.json()
                bad = [
                    (await client.get("/state", params={"tail": value})).status
                    for value in ["-1", "x"]
                ]
                return resp.status, body, bad

        status, body, bad = asyncio.run(scenario())
        assert status == 200
        assert body["history"] == [3.0]
        assert body["history_offset"] == 2
        assert bad == [400, 400]

    def test_start_session_is_queued(self):
        """POST /session/start enqueues a start event."""
        async def scenario():
            server, tracker = make_server()
            async with TestClient(TestServer(server.build_app())) as client:
                resp = await client.post("/session/start")
                return resp.status, tracker.queue.qsize()

        status, queued = asyncio.run(scenario())
        assert status == 202
        assert queued == 1

    def test_set_turn(self):
        """POST /turn accepts an integer or null."""
        async def scenario():
            server, tracker = make_server()
            async with TestClient(TestServer(server.build_app())) as client:
                ok = await client.post("/turn", json={"turn": 4})
                cleared = await client.post("/turn", json={"turn": None})
                return ok.status, cleared.status, tracker.queue.qsize()

        ok, cleared, queued = asyncio.run(scenario())
        assert ok == 202
        assert cleared == 202
        assert queued == 2

    def test_set_turn_rejects_bad_body(self):
        """Invalid bodies get 400 and queue nothing."""
        async def scenario():
            server, tracker = make_server()
            statuses = []
            async with TestClient(TestServer(server.build_app())) as client:
                for body in [b"{oops", b"[]", b'{"turn": "7"}', b'{"turn": true}', b"{}"]:
                    resp = await client.post("/turn", data=body)
                    statuses.append(resp.status)
            return statuses, tracker.queue.qsize()

        statuses, queued = asyncio.run(scenario())
        assert statuses == [400] * 5
        assert queued == 0

    def test_health(self):
        """GET /health is 200 only with a connected, fresh feed."""
        async def scenario():
            results = []
            for connected, fresh in [(True, True), (True, False), (False, True)]:
                server, tracker = make_server(connected=connected)
                if fresh:
                    tracker.controller.sink.on_sample(1.0, ts_local_ms=now_ms())
                async with TestClient(TestServer(server.build_app())) as client:
                    resp = await client.get("/health")
                    results.append((resp.status, (await resp.json())["healthy"]))
            return results

        assert asyncio.run(scenario()) == [(200, True), (503, False), (503, False)]


class TestHttpScoreReporter:
    """Tests for HttpScoreReporter against a local scoring endpoint."""

    def test_report_posts_json(self):
        """report() posts {"turn", "result"} in the background."""
        received = []

        async def handle_score(request: web.Request) -> web.Response:
            received.append(await request.json())
            return web.json_response({"ok": True})

        async def scenario():
            app = web.Application()
            app.router.add_post("/score", handle_score)
            async with TestServer(app) as scoring:
                reporter = HttpScoreReporter(str(scoring.make_url("/score")))
                reporter.report(7, 0)
                await reporter.aclose()

        asyncio.run(scenario())
        assert received == [{"turn": 7, "result": 0}]

    def test_post_failure_returns_false(self):
        """A rejecting scoring service is logged, not raised."""
        async def handle_score(request: web.Request) -> web.Response:
            return web.Response(status=500)

        async def scenario():
            app = web.Application()
            app.router.add_post("/score", handle_score)
            async with TestServer(app) as scoring:
                reporter = HttpScoreReporter(str(scoring.make_url("/score")))
                ok = await reporter.post(3, 1)
                await reporter.aclose()
                return ok

        assert asyncio.run(scenario()) is False
