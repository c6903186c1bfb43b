from argparse import ArgumentParser
from dataclasses import dataclass
from datetime import datetime
import json
import logging
from pathlib import Path
import sys
from typing import Callable

if __package__ in (None, ""):
    sys.path.append(str(Path(__file__).resolve().parent.parent))

import requests
import uvicorn

from locator.app_controller import AppController
from locator.browser import BrowserHistory, LocalStorage
from locator.config import Settings
from locator.content_store import ContentStore
from locator.data_fetcher import DataFetcher, HttpTransport, LocalTransport, Transport
from locator.event_loop import EventLoop
from locator.geolocation import FixedGeolocator, Geolocator
from locator.map_controller import MapController
from locator.navigation import NavigationStateManager
from locator.page_view import PageView
from locator.renderer import Renderer
from locator.web_app import create_app, render_shell

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Application:
    loop: EventLoop
    view: PageView
    storage: LocalStorage
    history: BrowserHistory
    map_controller: MapController
    navigation: NavigationStateManager
    fetcher: DataFetcher
    renderer: Renderer
    controller: AppController


def build_application(
    shell: str,
    transport: Transport,
    storage: LocalStorage | None = None,
    geolocator: Geolocator | None = None,
    viewport_width: int = 1280,
    tile_url: str | None = None,
    loop: EventLoop | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> Application:
    """Wire one headless client session around a page shell."""
    loop = loop or EventLoop()
    view = PageView(shell, viewport_width=viewport_width)
    if storage is None:
        storage = LocalStorage()
    history = BrowserHistory()

    map_options = {"tile_url": tile_url} if tile_url else {}
    map_controller = MapController(
        loop,
        geolocator=geolocator,
        alert=view.alert,
        size_provider=view.map_size,
        **map_options,
    )
    navigation = NavigationStateManager(view, storage, history, map_controller)
    fetcher = DataFetcher(transport, loop)
    renderer = Renderer(view, clock=clock)
    controller = AppController(view, navigation, map_controller, fetcher, renderer, loop, geolocator=geolocator)
    return Application(loop, view, storage, history, map_controller, navigation, fetcher, renderer, controller)


def serve(settings: Settings) -> None:
    app = create_app(settings.data_file, tile_url=settings.tile_url)
    uvicorn.run(app, host=settings.host, port=settings.port)


def render_page(
    settings: Settings,
    output: Path,
    category: int | None = None,
    post: int | None = None,
    query: str | None = None,
    position: tuple[float, float] | None = None,
    remote: bool = False,
) -> dict[str, object]:
    """Boot a headless session, replay the requested navigation and save the page."""
    if remote:
        response = requests.get(f"{settings.base_url}/", timeout=15)
        response.raise_for_status()
        shell = response.text
        transport: Transport = HttpTransport(settings.base_url)
    else:
        store = ContentStore.load(settings.data_file)
        shell = render_shell(store, settings.tile_url)
        transport = LocalTransport(store)

    loop = EventLoop()
    geolocator = FixedGeolocator(loop, *position) if position else None
    app = build_application(
        shell,
        transport,
        storage=LocalStorage(settings.storage_file),
        geolocator=geolocator,
        viewport_width=settings.viewport_width,
        tile_url=settings.tile_url,
        loop=loop,
    )
    app.controller.init()
    loop.run_until_idle()

    if category is not None:
        app.controller.click(f'.service_cat_list_details[data-cat-id="{category}"]')
        loop.run_until_idle()
    if post is not None:
        app.controller.on_post_click(post, cat_id=category or 0)
        loop.run_until_idle()
    if query:
        app.controller.search(query)
        loop.run_until_idle()

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(app.view.html(), encoding="utf-8")

    center = app.map_controller.get_center()
    summary: dict[str, object] = {
        "page": app.navigation.current_page.value,
        "center": list(center) if center else None,
        "zoom": app.map_controller.get_zoom(),
        "markers": len(app.map_controller.markers),
        "alerts": list(app.view.alerts),
    }
    logger.info("Rendered %s page to %s", summary["page"], output)
    return summary


def _position(value: str) -> tuple[float, float]:
    lat, _, lng = value.partition(",")
    return float(lat), float(lng)


def main() -> int:
    parser = ArgumentParser(description="Service locator utility CLI")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("serve", help="Run the content backend and page shell")
    render = sub.add_parser("render-page", help="Render the page after replaying a navigation headlessly")
    render.add_argument("--output", type=Path, default=Path("output") / "page.html", help="Where to write the HTML")
    render.add_argument("--category", type=int, default=None, help="Open this category id")
    render.add_argument("--post", type=int, default=None, help="Open this post id")
    render.add_argument("--search", default=None, help="Type this query into the search box")
    render.add_argument("--position", type=_position, default=None, help="Device position as LAT,LNG")
    render.add_argument("--remote", action="store_true", help="Talk to a running backend at LOCATOR_BASE_URL")
    args = parser.parse_args()

    settings = Settings.from_env()
    if args.command == "serve":
        serve(settings)
        return 0
    if args.command == "render-page":
        summary = render_page(
            settings,
            args.output,
            category=args.category,
            post=args.post,
            query=args.search,
            position=args.position,
            remote=args.remote,
        )
        print(json.dumps(summary, indent=2, ensure_ascii=False))
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
