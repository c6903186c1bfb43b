"""Request layer between the application and the content backend.

Requests are fire-and-forget: each call returns a ``Pending`` handle whose
``done``/``fail`` callbacks run on the event loop. Responses are normalized
into ``locator.models`` types here and nowhere else.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Generic, Protocol, TypeVar

import requests

from locator import ajax
from locator.content_store import ContentStore
from locator.event_loop import EventLoop
from locator.models import Location, SubcategoryListing

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Transport(Protocol):
    def __call__(self, action: str, params: dict[str, object]) -> dict[str, Any]: ...


class HttpTransport:
    def __init__(self, base_url: str, session: requests.Session | None = None, timeout: float = 15.0) -> None:
        self.url = f"{base_url.rstrip('/')}/ajax"
        self.session = session or requests.Session()
        self.timeout = timeout

    def __call__(self, action: str, params: dict[str, object]) -> dict[str, Any]:
        response = self.session.post(self.url, json={"action": action, **params}, timeout=self.timeout)
        response.raise_for_status()
        return response.json()


class LocalTransport:
    """Answers requests in-process from a content store."""

    def __init__(self, store: ContentStore) -> None:
        self.store = store

    def __call__(self, action: str, params: dict[str, object]) -> dict[str, Any]:
        return ajax.dispatch(self.store, action, params)


@dataclass(frozen=True)
class Envelope(Generic[T]):
    success: bool
    data: T | Any


class Pending(Generic[T]):
    def __init__(self, loop: EventLoop) -> None:
        self.loop = loop
        self._on_done: list[Callable[[Envelope[T]], Any]] = []
        self._on_fail: list[Callable[[Exception], Any]] = []
        self._outcome: tuple[bool, Any] | None = None

    def done(self, callback: Callable[[Envelope[T]], Any]) -> "Pending[T]":
        if self._outcome is None:
            self._on_done.append(callback)
        elif self._outcome[0]:
            self.loop.call_soon(callback, self._outcome[1])
        return self

    def fail(self, callback: Callable[[Exception], Any]) -> "Pending[T]":
        if self._outcome is None:
            self._on_fail.append(callback)
        elif not self._outcome[0]:
            self.loop.call_soon(callback, self._outcome[1])
        return self

    @property
    def settled(self) -> bool:
        return self._outcome is not None

    def resolve(self, envelope: Envelope[T]) -> None:
        self._outcome = (True, envelope)
        for callback in self._on_done:
            callback(envelope)

    def reject(self, error: Exception) -> None:
        self._outcome = (False, error)
        for callback in self._on_fail:
            callback(error)


def _locations(data: object) -> list[Location]:
    return [Location.from_payload(item) for item in data or []]


class DataFetcher:
    def __init__(self, transport: Transport, loop: EventLoop) -> None:
        self.transport = transport
        self.loop = loop

    def _request(self, action: str, params: dict[str, object], convert: Callable[[Any], T]) -> Pending[T]:
        pending: Pending[T] = Pending(self.loop)
        self.loop.call_soon(self._perform, pending, action, params, convert)
        return pending

    def _perform(
        self,
        pending: Pending[T],
        action: str,
        params: dict[str, object],
        convert: Callable[[Any], T],
    ) -> None:
        try:
            payload = self.transport(action, params)
            ok = bool(payload.get("success"))
            data = payload.get("data")
            envelope: Envelope[T] = Envelope(success=ok, data=convert(data) if ok else data)
        except (requests.RequestException, ValueError, TypeError, AttributeError) as error:
            logger.warning("Request %s failed: %s", action, error)
            pending.reject(error)
            return
        pending.resolve(envelope)

    def get_all_locations(self) -> Pending[list[Location]]:
        return self._request("get_all_posts_locations", {}, _locations)

    def get_category_posts(self, cat_id: int) -> Pending[list[Location]]:
        return self._request("load_category_posts", {"cat_id": cat_id}, _locations)

    def get_subcategories_by_parent(self, parent_id: int) -> Pending[SubcategoryListing]:
        return self._request("get_subcategories_by_parent", {"parent_id": parent_id}, SubcategoryListing.from_payload)

    def get_single_post(self, post_id: int, cat_id: int = 0) -> Pending[Location]:
        return self._request("load_single_post_data", {"post_id": post_id, "cat_id": cat_id}, Location.from_payload)

    def get_subcategory_posts_multiple(self, subcat_ids: list[int]) -> Pending[list[Location]]:
        return self._request("load_subcategory_posts_multiple", {"subcat_ids": list(subcat_ids)}, _locations)

    def search(self, query: str) -> Pending[list[Location]]:
        return self._request("custom_search", {"s": query}, _locations)

    def get_location_details(self, post_id: int) -> Pending[Location]:
        return self._request("get_location_details", {"post_id": post_id}, Location.from_payload)
