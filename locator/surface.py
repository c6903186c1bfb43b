"""Headless model of the interactive map widget.

The surface keeps the camera, the pixel size of its container, its layers and
controls. Animated transitions are recorded and complete through the event
loop after their duration; the camera itself is committed to the destination
as soon as a transition starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Any, Callable, Iterable

from locator.event_loop import EventLoop
from locator.icons import IconDescriptor

logger = logging.getLogger(__name__)

TILE_SIZE = 256
MIN_ZOOM = 0
MAX_ZOOM = 19
MAX_LATITUDE = 85.0511287798


@dataclass(slots=True)
class LatLngBounds:
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_points(cls, points: Iterable[tuple[float, float]]) -> "LatLngBounds | None":
        bounds: LatLngBounds | None = None
        for lat, lng in points:
            if bounds is None:
                bounds = cls(lat, lng, lat, lng)
            else:
                bounds.extend(lat, lng)
        return bounds

    def extend(self, lat: float, lng: float) -> None:
        self.south = min(self.south, lat)
        self.north = max(self.north, lat)
        self.west = min(self.west, lng)
        self.east = max(self.east, lng)

    @property
    def lat_span(self) -> float:
        return abs(self.north - self.south)

    @property
    def lng_span(self) -> float:
        return abs(self.east - self.west)

    @property
    def center(self) -> tuple[float, float]:
        return (self.south + self.north) / 2, (self.west + self.east) / 2

    def is_valid(self) -> bool:
        return all(math.isfinite(value) for value in (self.south, self.west, self.north, self.east))


def project(lat: float, lng: float, zoom: float) -> tuple[float, float]:
    """Spherical Web-Mercator projection to pixel coordinates at ``zoom``."""
    scale = TILE_SIZE * 2**zoom
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    sin_lat = math.sin(math.radians(lat))
    x = scale * (lng + 180.0) / 360.0
    y = scale * (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi))
    return x, y


def unproject(x: float, y: float, zoom: float) -> tuple[float, float]:
    scale = TILE_SIZE * 2**zoom
    lng = x / scale * 360.0 - 180.0
    n = math.pi - 2 * math.pi * y / scale
    lat = math.degrees(math.atan(math.sinh(n)))
    return lat, lng


@dataclass(slots=True)
class TileLayer:
    url_template: str
    attribution: str = ""
    tile_size: int = 512
    zoom_offset: int = -1


@dataclass(eq=False, slots=True)
class Marker:
    lat: float
    lng: float
    icon: IconDescriptor
    popup_html: str | None = None
    on_click: Callable[[], Any] | None = None

    def bind_popup(self, html: str) -> "Marker":
        self.popup_html = html
        return self

    def click(self) -> None:
        if self.on_click is not None:
            self.on_click()


@dataclass(slots=True)
class ZoomControl:
    position: str = "bottomright"


@dataclass(slots=True)
class LocateControl:
    on_activate: Callable[[], None]
    position: str = "bottomright"
    css_class: str = "leaflet-control leaflet-control-custom"

    def activate(self) -> None:
        self.on_activate()


@dataclass(frozen=True, slots=True)
class Transition:
    kind: str
    lat: float
    lng: float
    zoom: int
    duration: float
    ease_linearity: float


@dataclass(eq=False)
class MapSurface:
    container_id: str
    loop: EventLoop
    center: tuple[float, float]
    zoom: int
    size_provider: Callable[[], tuple[int, int]] | None = None
    size: tuple[int, int] = (800, 600)
    layers: list[Any] = field(default_factory=list)
    controls: list[Any] = field(default_factory=list)
    transitions: list[Transition] = field(default_factory=list)
    size_invalidations: int = 0

    def __post_init__(self) -> None:
        if self.size_provider is not None:
            self.size = self.size_provider()

    # camera

    def get_center(self) -> tuple[float, float]:
        return self.center

    def get_zoom(self) -> int:
        return self.zoom

    def set_view(self, center: tuple[float, float], zoom: int) -> None:
        self.center = (float(center[0]), float(center[1]))
        self.zoom = self._clamp_zoom(zoom)

    def fly_to(
        self,
        center: tuple[float, float],
        zoom: int,
        duration: float,
        ease_linearity: float,
        on_end: Callable[[], Any] | None = None,
    ) -> Transition:
        transition = Transition("fly_to", float(center[0]), float(center[1]), self._clamp_zoom(zoom), duration, ease_linearity)
        return self._start(transition, on_end)

    def fly_to_bounds(
        self,
        bounds: LatLngBounds,
        padding: int,
        duration: float,
        ease_linearity: float,
        max_zoom: int = MAX_ZOOM,
        on_end: Callable[[], Any] | None = None,
    ) -> Transition:
        zoom = self.get_bounds_zoom(bounds, padding, max_zoom)
        nw = project(bounds.north, bounds.west, zoom)
        se = project(bounds.south, bounds.east, zoom)
        lat, lng = unproject((nw[0] + se[0]) / 2, (nw[1] + se[1]) / 2, zoom)
        transition = Transition("fly_to_bounds", lat, lng, zoom, duration, ease_linearity)
        return self._start(transition, on_end)

    def get_bounds_zoom(self, bounds: LatLngBounds, padding: int = 0, max_zoom: int = MAX_ZOOM) -> int:
        upper = min(max_zoom, MAX_ZOOM)
        width = self.size[0] - 2 * padding
        height = self.size[1] - 2 * padding
        if width <= 0 or height <= 0:
            return MIN_ZOOM

        nw = project(bounds.north, bounds.west, 0)
        se = project(bounds.south, bounds.east, 0)
        dx = abs(se[0] - nw[0])
        dy = abs(se[1] - nw[1])
        if dx == 0 and dy == 0:
            return upper

        scale = min(width / dx if dx else math.inf, height / dy if dy else math.inf)
        zoom = math.floor(math.log2(scale))
        return max(MIN_ZOOM, min(upper, zoom))

    def _start(self, transition: Transition, on_end: Callable[[], Any] | None) -> Transition:
        self.transitions.append(transition)
        self.center = (transition.lat, transition.lng)
        self.zoom = transition.zoom
        logger.debug(
            "%s to (%.5f, %.5f) z%s over %.2fs", transition.kind, transition.lat, transition.lng, transition.zoom, transition.duration
        )
        if on_end is not None:
            self.loop.call_later(transition.duration, on_end)
        return transition

    def _clamp_zoom(self, zoom: float) -> int:
        return int(max(MIN_ZOOM, min(MAX_ZOOM, zoom)))

    # layout

    def invalidate_size(self) -> None:
        if self.size_provider is not None:
            self.size = self.size_provider()
        self.size_invalidations += 1

    # layers and controls

    def add_layer(self, layer: Any) -> None:
        if not self.has_layer(layer):
            self.layers.append(layer)

    def remove_layer(self, layer: Any) -> None:
        self.layers = [item for item in self.layers if item is not layer]

    def has_layer(self, layer: Any) -> bool:
        return any(item is layer for item in self.layers)

    def add_control(self, control: Any) -> None:
        self.controls.append(control)

    @property
    def markers(self) -> list[Marker]:
        return [layer for layer in self.layers if isinstance(layer, Marker)]

    @property
    def tile_layers(self) -> list[TileLayer]:
        return [layer for layer in self.layers if isinstance(layer, TileLayer)]
