"""HTTP server for the tracker: state for renderers and the start action."""

import logging
from typing import Optional

from aiohttp import web
import orjson

from .tracker import PriceTracker
from .types import FeedHealth

logger = logging.getLogger(__name__)


def _json(data: dict, status: int = 200) -> web.Response:
    return web.Response(
        status=status,
        content_type="application/json",
        body=orjson.dumps(data),
    )


class TrackerServer:
    """
    HTTP server in front of the PriceTracker.

    Endpoints:
    - GET /state - Latest TrackerSnapshot as JSON (?tail=N for the last N samples)
    - POST /session/start - Start a session at the current price
    - POST /turn - Set the turn identifier, body {"turn": int | null}
    - GET /health - Feed health
    """

    def __init__(
        self,
        tracker: PriceTracker,
        feed_health: Optional[FeedHealth] = None,
        host: str = "0.0.0.0",
        port: int = 8080,
    ):
        """
        Initialize the server.

        Args:
            tracker: PriceTracker to read from and submit actions to
            feed_health: Health of the feed client, if one is running
            host: Host to bind to
            port: Port to bind to
        """
        self.tracker = tracker
        self.feed_health = feed_health
        self.host = host
        self.port = port

        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    async def handle_get_state(self, request: web.Request) -> web.Response:
        """
        Handle GET /state

        Query: ?tail=N limits the history to its last N samples.
        """
        tail = None
        if "tail" in request.query:
            try:
                tail = int(request.query["tail"])
            except ValueError:
                tail = -1
            if tail < 0:
                return _json({"error": "tail must be a non-negative integer"}, status=400)

        return _json(self.tracker.snapshot().to_dict(history_tail=tail))

    async def handle_start_session(self, request: web.Request) -> web.Response:
        """
        Handle POST /session/start.

        The start is queued; the session exists once the tracker has
        processed it and a current price was available.
        """
        if not self.tracker.request_start():
            return _json({"error": "Tracker busy"}, status=503)
        return _json({"ok": True}, status=202)

    async def handle_set_turn(self, request: web.Request) -> web.Response:
        """
        Handle POST /turn

        Body: {"turn": 7} or {"turn": null}
        """
        try:
            data = orjson.loads(await request.read())
        except orjson.JSONDecodeError as e:
            return _json({"error": f"Invalid JSON: {e}"}, status=400)

        if not isinstance(data, dict) or "turn" not in data:
            return _json({"error": "Body must be an object with a 'turn' field"}, status=400)

        turn = data["turn"]
        if turn is not None and (isinstance(turn, bool) or not isinstance(turn, int)):
            return _json({"error": "turn must be an integer or null"}, status=400)

        if not self.tracker.request_turn(turn):
            return _json({"error": "Tracker busy"}, status=503)
        return _json({"ok": True, "turn": turn}, status=202)

    async def handle_health(self, request: web.Request) -> web.Response:
        """Handle GET /health."""
        sink = self.tracker.controller.sink
        connected = self.feed_health.connected if self.feed_health else False
        stale = sink.is_stale()

        healthy = connected and not stale
        health_data = {
            "healthy": healthy,
            "connected": connected,
            "stale": stale,
            "age_ms": sink.age_ms(),
            "samples": len(sink),
            "dropped": sink.dropped,
            "reconnect_count": self.feed_health.reconnect_count if self.feed_health else 0,
        }
        return _json(health_data, status=200 if healthy else 503)

    def build_app(self) -> web.Application:
        """Create the aiohttp application with all routes."""
        app = web.Application()
        app.router.add_get("/state", self.handle_get_state)
        app.router.add_post("/session/start", self.handle_start_session)
        app.router.add_post("/turn", self.handle_set_turn)
        app.router.add_get("/health", self.handle_health)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.build_app()

        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        logger.info(f"Tracker server started on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()

        logger.info("Tracker server stopped")
