"""Shared fixtures and helpers for the locator tests."""

from datetime import datetime
import json
from pathlib import Path

import pytest

from locator.browser import LocalStorage
from locator.content_store import ContentStore
from locator.data_fetcher import LocalTransport, Transport
from locator.event_loop import EventLoop
from locator.geolocation import DeniedGeolocator, FixedGeolocator
from locator.main import Application, build_application
from locator.page_view import PageView
from locator.web_app import render_shell

DATA_FILE = Path(__file__).resolve().parent.parent / "data" / "services.json"
SAMPLE_CONTENT = json.loads(DATA_FILE.read_text(encoding="utf-8"))

TILE_URL = "https://tiles.example.com/{z}/{x}/{y}.png"

# Monday morning, while the breakfast service (08:00-11:00) is open.
FIXED_NOW = datetime(2025, 10, 13, 9, 30)

USER_POSITION = (59.3400, 18.0700)


def sample_store() -> ContentStore:
    return ContentStore.from_dict(SAMPLE_CONTENT)


def sample_shell() -> str:
    return render_shell(sample_store(), TILE_URL)


def sample_view(viewport_width: int = 1280) -> PageView:
    return PageView(sample_shell(), viewport_width=viewport_width)


def make_app(
    transport: Transport | None = None,
    storage: LocalStorage | None = None,
    position: tuple[float, float] | None = None,
    denied: bool = False,
    viewport_width: int = 1280,
) -> Application:
    loop = EventLoop()
    geolocator = None
    if position is not None:
        geolocator = FixedGeolocator(loop, *position)
    elif denied:
        geolocator = DeniedGeolocator(loop)
    return build_application(
        sample_shell(),
        transport or LocalTransport(sample_store()),
        storage=storage,
        geolocator=geolocator,
        viewport_width=viewport_width,
        tile_url=TILE_URL,
        loop=loop,
        clock=lambda: FIXED_NOW,
    )


def started_app(**kwargs) -> Application:
    app = make_app(**kwargs)
    app.controller.init()
    app.loop.run_until_idle()
    return app


class StubTransport:
    """Answers every action from a fixed table and records the calls."""

    def __init__(self, responses: dict[str, dict]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, action: str, params: dict) -> dict:
        self.calls.append((action, dict(params)))
        return self.responses.get(action, {"success": False, "data": "unknown"})


@pytest.fixture
def loop() -> EventLoop:
    return EventLoop()
