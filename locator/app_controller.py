"""Application orchestrator.

Wires user interaction to the navigation state machine, the data facade, the
map controller and the renderer. The controller owns the session state: the
cached device position, the home camera snapshot and the request tokens that
make the latest request of each kind win.
"""

from __future__ import annotations

from collections import defaultdict
import logging
from typing import Any, Callable, Final

from bs4 import Tag

from locator.config import FALLBACK_CENTER, FALLBACK_ZOOM
from locator.data_fetcher import DataFetcher, Envelope, Pending
from locator.event_loop import EventLoop
from locator.geo import closest, coordinates_of
from locator.geolocation import Geolocator
from locator.map_controller import MapController
from locator.models import CameraView, Location, SubcategoryListing, parse_coordinate
from locator.navigation import GO_HOME, LOAD_CATEGORY, NavigationStateManager, Page
from locator.page_view import PageView
from locator.renderer import Renderer
from locator.surface import Marker

logger = logging.getLogger(__name__)

HOME_ZOOM: Final = 13
CATEGORY_ZOOM: Final = 13
POST_ZOOM: Final = 16
SEARCH_RESULT_ZOOM: Final = 15
HIGHLIGHT_SECONDS: Final = 1.5
MIN_QUERY_LENGTH: Final = 3

DIRECTIONS_URL: Final = (
    "https://www.google.com/maps/dir/?api=1&origin={origin}&destination={destination}&travelmode=walking"
)
DIRECTIONS_PENDING_MESSAGE: Final = "Fetching your location... please try again in a moment."


def _data(tag: Tag, name: str) -> str:
    return str(tag.get(f"data-{name}", "") or "")


def _data_int(tag: Tag, name: str) -> int:
    value = _data(tag, name).strip()
    return int(value) if value.isdigit() else 0


class AppController:
    def __init__(
        self,
        view: PageView,
        navigation: NavigationStateManager,
        map_controller: MapController,
        fetcher: DataFetcher,
        renderer: Renderer,
        loop: EventLoop,
        geolocator: Geolocator | None = None,
    ) -> None:
        self.view = view
        self.navigation = navigation
        self.map_controller = map_controller
        self.fetcher = fetcher
        self.renderer = renderer
        self.loop = loop
        self.geolocator = geolocator

        self.user_lat: float | None = None
        self.user_lng: float | None = None
        self.original_home_view: CameraView | None = None
        self._tokens: defaultdict[str, int] = defaultdict(int)
        self._page_markers: list[Location] = []
        self._page_marker_click: Callable[[Location], Any] | None = None
        self._search_markers_shown = False

        navigation.history.on_popstate(self.on_popstate)

    # startup

    def init(self) -> None:
        self.setup_geolocation()
        self.initialize_homepage()

    def setup_geolocation(self) -> None:
        if self.geolocator is None:
            logger.info("Geolocation is not available, using the fallback center")
            return
        self.geolocator.get_current_position(self._on_position, self._on_position_error)

    def _on_position(self, lat: float, lng: float) -> None:
        self.user_lat, self.user_lng = lat, lng
        logger.debug("Device position cached: %s, %s", lat, lng)

    def _on_position_error(self, message: str) -> None:
        logger.warning("Geolocation error: %s", message)

    @property
    def user_location(self) -> tuple[float, float] | None:
        if self.user_lat is None or self.user_lng is None:
            return None
        return self.user_lat, self.user_lng

    def initialize_homepage(self) -> None:
        saved = self.navigation.restore_state()
        if saved.page is Page.CATEGORY and saved.cat_id is not None:
            self.load_category(saved.cat_id, push_history=False)
        elif saved.page is Page.SINGLE and saved.post_id is not None:
            self.load_single_post(saved.post_id, push_history=False)
        else:
            self.load_homepage()

    # request tokens

    def _issue(self, operation: str) -> int:
        self._tokens[operation] += 1
        return self._tokens[operation]

    def _is_latest(self, operation: str, token: int) -> bool:
        latest = self._tokens[operation]
        if token != latest:
            logger.debug("Dropping stale %s response (request %d, latest %d)", operation, token, latest)
            return False
        return True

    def _track(
        self,
        operation: str,
        pending: Pending[Any],
        on_done: Callable[[Envelope[Any]], None],
        on_fail: Callable[[Exception], None] | None = None,
    ) -> None:
        token = self._issue(operation)

        def done(envelope: Envelope[Any]) -> None:
            if self._is_latest(operation, token):
                on_done(envelope)

        def fail(error: Exception) -> None:
            if on_fail is not None and self._is_latest(operation, token):
                on_fail(error)

        pending.done(done).fail(fail)

    # page markers

    def _place_page_markers(
        self,
        locations: list[Location],
        on_click: Callable[[Location], Any] | None = None,
    ) -> list[Marker]:
        self._page_markers = list(locations)
        self._page_marker_click = on_click
        self._search_markers_shown = False
        return self.map_controller.add_markers(locations, on_click=on_click)

    def _clear_page_markers(self) -> None:
        self._page_markers = []
        self._page_marker_click = None
        self._search_markers_shown = False
        self.map_controller.clear_markers()

    def _restore_page_markers(self) -> None:
        if not self._search_markers_shown:
            return
        self._search_markers_shown = False
        self.map_controller.add_markers(self._page_markers, on_click=self._page_marker_click)

    # home

    def load_homepage(self) -> None:
        self.navigation.show_page(Page.HOME)
        self.map_controller.init_map()

        def on_done(envelope: Envelope[list[Location]]) -> None:
            if envelope.success:
                self.display_markers_on_homepage(envelope.data)
            else:
                logger.warning("Location listing was rejected: %s", envelope.data)

        def on_fail(error: Exception) -> None:
            self.map_controller.set_view(FALLBACK_CENTER[0], FALLBACK_CENTER[1], FALLBACK_ZOOM)

        self._track("homepage", self.fetcher.get_all_locations(), on_done, on_fail)

    def display_markers_on_homepage(self, locations: list[Location]) -> None:
        user = self.user_location
        if user is not None:
            self.map_controller.add_user_marker(*user)
            view = CameraView(user[0], user[1], HOME_ZOOM)
        else:
            view = CameraView(FALLBACK_CENTER[0], FALLBACK_CENTER[1], FALLBACK_ZOOM)
        self.map_controller.set_view(view.lat, view.lng, view.zoom)
        if self.original_home_view is None:
            self.original_home_view = view

        placed = self._place_page_markers(locations, on_click=self.on_marker_click)
        logger.info("Placed %d of %d homepage locations", len(placed), len(locations))

    def on_marker_click(self, location: Location) -> None:
        coords = coordinates_of(location)
        if coords is not None:
            self.map_controller.fly_to(coords[0], coords[1], POST_ZOOM)
        self.navigation.show_location_info()
        self.renderer.render_location_info_popup(location)

    def on_close_location_info(self) -> None:
        self.navigation.hide_location_info()
        if self.view.has_class(".close-location", "close-compact"):
            self.view.add_class(".search-wrapper", "compact")
            self.view.remove_class(".close-location", "close-compact")

        view = self.original_home_view
        if self.navigation.current_page is Page.HOME and view is not None:
            self.map_controller.fly_to(view.lat, view.lng, view.zoom)

    # category

    def on_category_click(self, cat_id: int, cat_slug: str = "", cat_name: str = "", cat_image: str = "") -> None:
        self.navigation.show_page(Page.CATEGORY)
        self.renderer.render_category_header_instant(cat_slug, cat_name, cat_image)
        self.load_category(cat_id, push_history=True)

    def load_category(self, cat_id: int, push_history: bool = True) -> None:
        self.navigation.show_page(Page.CATEGORY)
        self.navigation.save_state(Page.CATEGORY, cat_id=cat_id)
        if push_history:
            self.navigation.push_history(Page.CATEGORY, cat_id=cat_id)

        self.renderer.show_category_loader()
        self.map_controller.init_map()
        self._clear_page_markers()
        # A filter response still in flight belongs to the previous listing.
        self._issue("filter")

        def on_done(envelope: Envelope[list[Location]]) -> None:
            if envelope.success and envelope.data:
                self.display_category_posts(envelope.data, cat_id)
                self.load_category_subcategories(cat_id)
            else:
                logger.info("Category %s has no posts", cat_id)
                self.renderer.hide_category_loader()

        def on_fail(error: Exception) -> None:
            self.renderer.hide_category_loader()

        self._track("category", self.fetcher.get_category_posts(cat_id), on_done, on_fail)

    def display_category_posts(self, posts: list[Location], cat_id: int | None) -> None:
        self.renderer.hide_category_loader()
        self.renderer.render_category_posts(posts, cat_id)
        if posts:
            self.renderer.render_category_header(posts[0])

        self._place_page_markers(posts, on_click=self._on_category_marker_click)
        user = self.user_location
        if user is not None:
            self.map_controller.add_user_marker(*user)

        token = self._tokens["category"]
        self.map_controller.invalidate_size(on_done=lambda: self._center_category(posts, token))

    def _center_category(self, posts: list[Location], token: int) -> None:
        if self.navigation.current_page is not Page.CATEGORY or not self._is_latest("category", token):
            return
        reference = self.user_location or FALLBACK_CENTER
        target = closest(posts, reference[0], reference[1])
        coords = coordinates_of(target) if target is not None else None
        if coords is not None:
            self.map_controller.fly_to(coords[0], coords[1], CATEGORY_ZOOM)

    def load_category_subcategories(self, cat_id: int) -> None:
        def on_done(envelope: Envelope[SubcategoryListing]) -> None:
            if envelope.success and envelope.data.items:
                self.renderer.render_subcategory_dropdown(envelope.data.items)

        self._track("subcategory", self.fetcher.get_subcategories_by_parent(cat_id), on_done)

    def _on_category_marker_click(self, post: Location) -> None:
        self.move_post_to_top(post.id)

    def move_post_to_top(self, post_id: int) -> None:
        card = self.view.find(f'#category-posts [data-post-id="{post_id}"]')
        if card is None:
            return
        lat, lng = parse_coordinate(card.get("data-lat")), parse_coordinate(card.get("data-lng"))
        if lat is not None and lng is not None:
            self.map_controller.fly_to(lat, lng, POST_ZOOM)
        if self.renderer.highlight_post(post_id):
            self.loop.call_later(HIGHLIGHT_SECONDS, self.renderer.clear_highlight, post_id)

    def on_category_card_click(self, lat: object, lng: object) -> None:
        parsed_lat, parsed_lng = parse_coordinate(lat), parse_coordinate(lng)
        if parsed_lat is not None and parsed_lng is not None:
            self.map_controller.fly_to(parsed_lat, parsed_lng, POST_ZOOM)

    def on_subcategory_filter(self) -> None:
        selected = self.renderer.selected_subcategory_ids()
        if not selected:
            cat_id = self.navigation.remembered_cat_id()
            if cat_id is not None:
                self.load_category(cat_id, push_history=False)
            return

        self.renderer.show_category_loader()

        def on_done(envelope: Envelope[list[Location]]) -> None:
            self.renderer.hide_category_loader()
            if envelope.success:
                self.renderer.render_category_posts(envelope.data, self.navigation.remembered_cat_id())
                self._place_page_markers(envelope.data, on_click=self._on_category_marker_click)

        def on_fail(error: Exception) -> None:
            self.renderer.hide_category_loader()

        self._track("filter", self.fetcher.get_subcategory_posts_multiple(selected), on_done, on_fail)

    # single

    def on_post_click(
        self,
        post_id: int,
        cat_id: int = 0,
        cat_slug: str = "",
        cat_name: str = "",
        cat_image: str = "",
    ) -> None:
        self.navigation.show_page(Page.SINGLE)
        self.renderer.render_single_header_instant(cat_slug, cat_name, cat_image)
        self.load_single_post(post_id, push_history=True, cat_id=cat_id)

    def load_single_post(self, post_id: int, push_history: bool = True, cat_id: int = 0) -> None:
        self.navigation.show_page(Page.SINGLE)
        self.navigation.save_state(Page.SINGLE, post_id=post_id)
        if push_history:
            self.navigation.push_history(Page.SINGLE, post_id=post_id)

        self.renderer.show_single_post_loader()
        self.map_controller.init_map()
        self._clear_page_markers()

        def on_done(envelope: Envelope[Location]) -> None:
            if envelope.success:
                self.display_single_post(envelope.data)
            else:
                logger.warning("Post %s could not be loaded: %s", post_id, envelope.data)
                self.renderer.hide_single_post_loader()

        def on_fail(error: Exception) -> None:
            self.renderer.hide_single_post_loader()

        self._track("single", self.fetcher.get_single_post(post_id, cat_id), on_done, on_fail)

    def display_single_post(self, post: Location) -> None:
        self.renderer.hide_single_post_loader()
        self.renderer.render_single_header(post)
        self.renderer.render_groups_schedule_popup(post)
        self.renderer.render_single_post(post)

        self._place_page_markers([post])
        coords = post.coordinates
        if coords is None:
            self.map_controller.invalidate_size()
            return

        token = self._tokens["single"]

        def center() -> None:
            if self.navigation.current_page is Page.SINGLE and self._is_latest("single", token):
                self.map_controller.fly_to(coords[0], coords[1], POST_ZOOM)

        self.map_controller.invalidate_size(on_done=center)

    def on_group_selection_change(self) -> str:
        return self.renderer.render_group_selection_label(self.renderer.selected_group_names())

    # back navigation

    def on_back_click(self) -> None:
        self._navigate_back(push_history=True)

    def on_popstate(self, state: dict[str, Any] | None) -> None:
        logger.debug("History moved back to %r", state)
        self._navigate_back(push_history=False)

    def _navigate_back(self, push_history: bool) -> None:
        result = self.navigation.go_back()
        if result.action == LOAD_CATEGORY and result.cat_id is not None:
            self.load_category(result.cat_id, push_history=push_history)
        elif result.action == GO_HOME:
            self.load_homepage()

    # directions

    def on_directions_click(self, lat: object, lng: object) -> str | None:
        user = self.user_location
        if user is None:
            self.view.alert(DIRECTIONS_PENDING_MESSAGE)
            return None
        dest_lat, dest_lng = parse_coordinate(lat), parse_coordinate(lng)
        if dest_lat is None or dest_lng is None:
            logger.warning("Directions requested without a destination (%r, %r)", lat, lng)
            return None
        url = DIRECTIONS_URL.format(origin=f"{user[0]},{user[1]}", destination=f"{dest_lat},{dest_lng}")
        self.view.open_url(url)
        return url

    # menus

    def on_menu_open(self) -> None:
        self.navigation.toggle_menu("open")

    def on_dropdown_toggle(self, selector: str) -> None:
        self.navigation.toggle_dropdown(selector)

    # search

    def search(self, query: str) -> None:
        query = query.strip()
        self.view.set_attr("#custom-search-input", "value", query)
        if len(query) < MIN_QUERY_LENGTH:
            # Invalidate any request still in flight.
            self._issue("search")
            self._reset_search()
            return

        def on_done(envelope: Envelope[list[Location]]) -> None:
            self.renderer.clear_search_results()
            self.view.hide(".location-info-wrap")
            if not envelope.success:
                self.renderer.render_no_results()
                self._restore_page_markers()
                self.view.show(".service_cat")
                return

            self.view.add_class(".search-wrapper", "compact")
            self.view.show(".back-search-btn")
            self.view.hide(".service_cat")
            self.renderer.render_search_results(envelope.data)
            if not self.view.is_mobile:
                self.map_controller.add_markers(envelope.data, on_click=self._on_search_marker_click)
                self._search_markers_shown = True
                self.map_controller.invalidate_size()

        self._track("search", self.fetcher.search(query), on_done)

    def _reset_search(self) -> None:
        self.view.hide(".location-info-wrap")
        self.view.remove_class(".search-wrapper", "compact")
        self.view.hide(".back-search-btn")
        self.renderer.clear_search_results()
        self.view.show(".service_cat")
        self._restore_page_markers()

    def _on_search_marker_click(self, location: Location) -> None:
        coords = coordinates_of(location)
        if coords is not None:
            self.map_controller.fly_to(coords[0], coords[1], POST_ZOOM)

    def on_search_result_click(self, post_id: int, lat: object = None, lng: object = None) -> None:
        parsed_lat, parsed_lng = parse_coordinate(lat), parse_coordinate(lng)
        if parsed_lat is not None and parsed_lng is not None:
            self.map_controller.fly_to(parsed_lat, parsed_lng, SEARCH_RESULT_ZOOM)

        self.view.add_class("#main-map", "search-media-map")
        self.view.add_class(".close-location", "close-compact")
        self.view.remove_class(".search-wrapper", "compact")
        self.view.hide(".search-data")
        self.view.hide(".menu-head-wrap")
        self.view.show(".location-info-wrap")
        self.renderer.render_location_loading()

        def on_done(envelope: Envelope[Location]) -> None:
            if not envelope.success:
                self.renderer.render_location_failure()
                return
            location = envelope.data
            self.renderer.render_location_info_popup(location)
            coords = location.coordinates
            if coords is not None:
                self.map_controller.fly_to(coords[0], coords[1], SEARCH_RESULT_ZOOM)

        def on_fail(error: Exception) -> None:
            self.renderer.render_location_failure()

        self._track("details", self.fetcher.get_location_details(post_id), on_done, on_fail)

    def clear_search(self) -> None:
        self.search("")

    def on_back_search(self) -> None:
        if self.view.exists(".location-info-wrap"):
            self.view.hide(".location-info-wrap")
            self.view.remove_class(".close-location", "close-compact")
        self.search("")

    # DOM event routing

    def click(self, selector: str) -> bool:
        """Dispatch a click on the first element matching ``selector``."""
        tag = self.view.find(selector)
        if tag is None:
            logger.warning("Nothing to click at %s", selector)
            return False
        for route, handler in self._click_routes():
            if tag.css.match(route):
                handler(tag)
                return True
        logger.debug("No click handler for %s", selector)
        return False

    def _click_routes(self) -> list[tuple[str, Callable[[Tag], None]]]:
        return [
            (".back-btn", lambda tag: self.on_back_click()),
            (
                ".service_cat_list_details",
                lambda tag: self.on_category_click(
                    _data_int(tag, "cat-id"), _data(tag, "cat-slug"), _data(tag, "cat-name"), _data(tag, "cat-image")
                ),
            ),
            (
                ".category_card_link, .read-more-link",
                lambda tag: self.on_post_click(
                    _data_int(tag, "post-id"),
                    _data_int(tag, "cat-id"),
                    _data(tag, "cat-slug"),
                    _data(tag, "cat-name"),
                    _data(tag, "cat-image"),
                ),
            ),
            (
                ".btn_icon, .bo-btn-direction",
                lambda tag: self.on_directions_click(_data(tag, "lat"), _data(tag, "lang")),
            ),
            (".close-location, .close-icon", lambda tag: self.on_close_location_info()),
            (".open-menu-cat", lambda tag: self.on_menu_open()),
            (".dropdown-toggle, .dropdown-toggle-single", self._toggle_dropdown_of),
            (
                ".search-result",
                lambda tag: self.on_search_result_click(
                    _data_int(tag, "postid"), _data(tag, "lat"), _data(tag, "long")
                ),
            ),
            ("#clear-search", lambda tag: self.clear_search()),
            (".back-search-btn", lambda tag: self.on_back_search()),
        ]

    def _toggle_dropdown_of(self, tag: Tag) -> None:
        dropdown = tag.find_parent(class_=["custom-dropdown", "custom-dropdown-single"])
        if dropdown is None:
            return
        if dropdown.get("id"):
            self.on_dropdown_toggle(f"#{dropdown['id']}")
        else:
            self.on_dropdown_toggle(f".{dropdown['class'][0]}")

    def set_checked(self, selector: str, checked: bool = True) -> bool:
        """Tick or untick a checkbox and fire its change handler."""
        tag = self.view.find(selector)
        if tag is None:
            logger.warning("No checkbox at %s", selector)
            return False
        if checked:
            tag["checked"] = ""
        elif tag.has_attr("checked"):
            del tag["checked"]

        if tag.css.match("#subcategory-container input[type='checkbox']"):
            self.on_subcategory_filter()
        elif tag.css.match(".dropdown-item-single input[type='checkbox']"):
            self.on_group_selection_change()
        return True
