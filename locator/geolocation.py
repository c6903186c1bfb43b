from __future__ import annotations

from typing import Callable, Protocol

from locator.event_loop import EventLoop

SuccessCallback = Callable[[float, float], None]
ErrorCallback = Callable[[str], None]


class Geolocator(Protocol):
    def get_current_position(self, on_success: SuccessCallback, on_error: ErrorCallback) -> None: ...


class FixedGeolocator:
    """Reports a configured device position after ``delay`` seconds."""

    def __init__(self, loop: EventLoop, lat: float, lng: float, delay: float = 0.0) -> None:
        self.loop = loop
        self.lat = lat
        self.lng = lng
        self.delay = delay
        self.requests = 0

    def get_current_position(self, on_success: SuccessCallback, on_error: ErrorCallback) -> None:
        self.requests += 1
        self.loop.call_later(self.delay, on_success, self.lat, self.lng)


class DeniedGeolocator:
    def __init__(self, loop: EventLoop, message: str = "User denied Geolocation") -> None:
        self.loop = loop
        self.message = message
        self.requests = 0

    def get_current_position(self, on_success: SuccessCallback, on_error: ErrorCallback) -> None:
        self.requests += 1
        self.loop.call_soon(on_error, self.message)
