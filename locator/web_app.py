from __future__ import annotations

import json
import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.templating import Jinja2Templates

from locator import ajax
from locator.config import BASE_DIR, DEFAULT_TILE_URL
from locator.content_store import ContentStore
from locator.renderer import TEMPLATES_DIR

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = BASE_DIR / "data" / "services.json"
TEMPLATES = Jinja2Templates(directory=str(TEMPLATES_DIR))

# Rendered size of each map slot, read back by the headless client.
MAP_SIZES = {
    "home": (1280, 600),
    "category": (1280, 420),
    "single": (1280, 320),
}


def page_context(
    store: ContentStore, tile_url: str = DEFAULT_TILE_URL, title: str = "Trygga platser"
) -> dict[str, object]:
    return {
        "title": title,
        "categories": store.top_level_categories(),
        "tile_url": tile_url,
        "map_sizes": MAP_SIZES,
    }


def render_shell(store: ContentStore, tile_url: str = DEFAULT_TILE_URL) -> str:
    """The page shell without a request, for in-process clients."""
    return TEMPLATES.get_template("index.html").render(**page_context(store, tile_url))


def create_app(data_file: Path, tile_url: str = DEFAULT_TILE_URL) -> FastAPI:
    app = FastAPI(title="Service Locator")
    app.state.data_file = data_file
    app.state.store = ContentStore.load(data_file)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/")
    def home(request: Request):
        context = {"request": request, **page_context(app.state.store, tile_url)}
        return TEMPLATES.TemplateResponse(request=request, name="index.html", context=context)

    @app.post("/ajax")
    async def ajax_endpoint(request: Request) -> dict[str, object]:
        try:
            payload = await request.json()
        except json.JSONDecodeError as error:
            raise HTTPException(status_code=400, detail="Request body must be JSON") from error
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Request body must be a JSON object")

        action = str(payload.pop("action", "") or "")
        try:
            response = ajax.dispatch(app.state.store, action, payload)
        except ValueError as error:
            logger.info("Rejected ajax call: %s", error)
            raise HTTPException(status_code=400, detail=str(error)) from error
        logger.debug("ajax %s -> success=%s", action, response["success"])
        return response

    return app
