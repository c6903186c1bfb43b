"""Owner of the single map surface.

Every camera change and every marker placement goes through ``MapController``.
Operations called before ``init_map`` are silent no-ops.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from locator.config import DEFAULT_CENTER, DEFAULT_TILE_URL, DEFAULT_ZOOM, TILE_ATTRIBUTION
from locator.event_loop import EventLoop
from locator.geo import coordinates_of
from locator.geolocation import Geolocator
from locator.icons import USER_ICON, icon_for
from locator.models import Location, parse_coordinate
from locator.surface import LatLngBounds, LocateControl, MapSurface, Marker, TileLayer, ZoomControl

logger = logging.getLogger(__name__)

ANIMATION_DURATION = 1.5
EASE_LINEARITY = 0.25
CENTERED_THRESHOLD_DEG = 0.0005
NEARBY_SPAN_DEG = 0.005
BOUNDS_PADDING_PX = 80
BOUNDS_MAX_ZOOM = 15
NEARBY_ZOOM = 15
SINGLE_POINT_ZOOM = 16
LOCATE_ZOOM = 15
INVALIDATE_DELAY = 0.2

USER_POPUP_HTML = "<b>You are here!</b>"
LOCATE_ERROR_MESSAGE = "Unable to retrieve your location."
LOCATE_UNSUPPORTED_MESSAGE = "Geolocation is not supported by your browser."

LocationLike = Location | Mapping[str, object]


class MapController:
    def __init__(
        self,
        loop: EventLoop,
        geolocator: Geolocator | None = None,
        alert: Callable[[str], None] | None = None,
        size_provider: Callable[[], tuple[int, int]] | None = None,
        tile_url: str = DEFAULT_TILE_URL,
        container_id: str = "main-map",
    ) -> None:
        self.loop = loop
        self.geolocator = geolocator
        self.alert = alert or (lambda message: logger.warning("Alert: %s", message))
        self.size_provider = size_provider
        self.tile_url = tile_url
        self.container_id = container_id
        self.surface: MapSurface | None = None
        self.markers: list[Marker] = []
        self.user_marker: Marker | None = None

    def init_map(self) -> MapSurface:
        if self.surface is not None:
            return self.surface

        surface = MapSurface(
            container_id=self.container_id,
            loop=self.loop,
            center=DEFAULT_CENTER,
            zoom=DEFAULT_ZOOM,
            size_provider=self.size_provider,
        )
        surface.add_control(ZoomControl(position="bottomright"))
        surface.add_control(LocateControl(on_activate=self._locate))
        surface.add_layer(TileLayer(self.tile_url, attribution=TILE_ATTRIBUTION, tile_size=512, zoom_offset=-1))
        self.surface = surface
        logger.debug("Map surface created in #%s", self.container_id)
        return surface

    def _locate(self) -> None:
        if self.geolocator is None:
            self.alert(LOCATE_UNSUPPORTED_MESSAGE)
            return

        def on_success(lat: float, lng: float) -> None:
            if self.surface is not None:
                self.surface.set_view((lat, lng), LOCATE_ZOOM)

        def on_error(message: str) -> None:
            logger.info("Locate request failed: %s", message)
            self.alert(LOCATE_ERROR_MESSAGE)

        self.geolocator.get_current_position(on_success, on_error)

    # camera

    def get_center(self) -> tuple[float, float] | None:
        return self.surface.get_center() if self.surface is not None else None

    def get_zoom(self) -> int | None:
        return self.surface.get_zoom() if self.surface is not None else None

    def set_view(self, lat: float, lng: float, zoom: int = DEFAULT_ZOOM, animate: bool = False) -> None:
        if self.surface is None:
            return
        if animate:
            self.surface.fly_to((lat, lng), zoom, ANIMATION_DURATION, EASE_LINEARITY)
        else:
            self.surface.set_view((lat, lng), zoom)

    def is_centered(self, lat: float, lng: float, zoom: int) -> bool:
        if self.surface is None:
            return False
        center_lat, center_lng = self.surface.get_center()
        return (
            abs(center_lat - lat) < CENTERED_THRESHOLD_DEG
            and abs(center_lng - lng) < CENTERED_THRESHOLD_DEG
            and abs(self.surface.get_zoom() - zoom) < 1
        )

    def fly_to(
        self,
        lat: float,
        lng: float,
        zoom: int = SINGLE_POINT_ZOOM,
        on_end: Callable[[], Any] | None = None,
    ) -> bool:
        """Animate to the target unless the camera is already there. Returns True when animating."""
        if self.surface is None:
            return False
        if self.is_centered(lat, lng, zoom):
            return False
        self.surface.fly_to((lat, lng), zoom, ANIMATION_DURATION, EASE_LINEARITY, on_end=on_end)
        return True

    def fly_to_bounds(
        self,
        locations: Iterable[LocationLike] | None,
        user_location: tuple[object, object] | None = None,
    ) -> None:
        if self.surface is None:
            return

        points = [coords for coords in (coordinates_of(item) for item in locations or []) if coords is not None]
        if user_location is not None:
            user_lat, user_lng = parse_coordinate(user_location[0]), parse_coordinate(user_location[1])
            if user_lat is not None and user_lng is not None:
                points.append((user_lat, user_lng))

        bounds = LatLngBounds.from_points(points)
        if bounds is None or not bounds.is_valid():
            return

        if len(points) == 1:
            self.fly_to(points[0][0], points[0][1], SINGLE_POINT_ZOOM)
        elif bounds.lat_span < NEARBY_SPAN_DEG and bounds.lng_span < NEARBY_SPAN_DEG:
            center_lat, center_lng = bounds.center
            self.surface.set_view((center_lat, center_lng), NEARBY_ZOOM)
        else:
            self.surface.fly_to_bounds(
                bounds,
                padding=BOUNDS_PADDING_PX,
                duration=ANIMATION_DURATION,
                ease_linearity=EASE_LINEARITY,
                max_zoom=BOUNDS_MAX_ZOOM,
            )

    # markers

    def add_user_marker(self, lat: float, lng: float) -> Marker | None:
        if self.surface is None:
            return None
        if self.user_marker is not None:
            self.surface.remove_layer(self.user_marker)

        marker = Marker(lat, lng, USER_ICON).bind_popup(USER_POPUP_HTML)
        self.surface.add_layer(marker)
        self.user_marker = marker
        return marker

    def clear_markers(self) -> None:
        if self.surface is not None:
            for marker in self.markers:
                self.surface.remove_layer(marker)
        self.markers = []

    def add_markers(
        self,
        locations: Iterable[LocationLike] | None,
        on_click: Callable[[Any], Any] | None = None,
    ) -> list[Marker]:
        if self.surface is None:
            return []

        self.clear_markers()
        for location in locations or []:
            coords = coordinates_of(location)
            if coords is None:
                continue
            slug = location.cat_slug if isinstance(location, Location) else str(location.get("cat_slug") or "")
            marker = Marker(coords[0], coords[1], icon_for(slug))
            if on_click is not None:
                marker.on_click = _bind_click(on_click, location)
            self.surface.add_layer(marker)
            self.markers.append(marker)
        return list(self.markers)

    # layout

    def invalidate_size(self, on_done: Callable[[], Any] | None = None) -> None:
        if self.surface is None:
            return
        surface = self.surface

        def recalculate() -> None:
            surface.invalidate_size()
            if on_done is not None:
                on_done()

        self.loop.call_later(INVALIDATE_DELAY, recalculate)


def _bind_click(callback: Callable[[Any], Any], location: LocationLike) -> Callable[[], Any]:
    return lambda: callback(location)
