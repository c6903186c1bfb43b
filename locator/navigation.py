"""Page state machine: Home, Category(cat_id) and Single(post_id).

Transitions are requested by the application controller; this module decides
what is visible, where the map lives, what is persisted and what goes into
the browser history.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Final

from locator.browser import BrowserHistory, LocalStorage
from locator.map_controller import MapController
from locator.page_view import PageView

logger = logging.getLogger(__name__)


class Page(str, Enum):
    HOME = "home"
    CATEGORY = "category"
    SINGLE = "single"


PAGE_CONTAINERS: Final = {
    Page.HOME: "homepage",
    Page.CATEGORY: "category-page",
    Page.SINGLE: "single-post-page",
}
MAP_SLOTS: Final = {
    Page.HOME: "home-map-container",
    Page.CATEGORY: "category-map-container",
    Page.SINGLE: "single-map-container",
}
MAP_NODE_ID: Final = "main-map"
LAYOUT_ROOTS: Final = ".layout-root"
SINGLE_ITEM_CLASS: Final = "single-item"
DROPDOWNS: Final = ".custom-dropdown, .custom-dropdown-single"

STORAGE_PAGE: Final = "currentPage"
STORAGE_CAT_ID: Final = "currentCatId"
STORAGE_POST_ID: Final = "currentPostId"

LOAD_CATEGORY: Final = "loadCategory"
GO_HOME: Final = "home"
NO_ACTION: Final = "none"


@dataclass(frozen=True, slots=True)
class NavigationState:
    page: Page
    cat_id: int | None = None
    post_id: int | None = None


@dataclass(frozen=True, slots=True)
class BackAction:
    action: str
    cat_id: int | None = None


def _stored_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class NavigationStateManager:
    def __init__(
        self,
        view: PageView,
        storage: LocalStorage,
        history: BrowserHistory,
        map_controller: MapController,
    ) -> None:
        self.view = view
        self.storage = storage
        self.history = history
        self.map_controller = map_controller
        self.current_page = Page.HOME

    def _hide_all_pages(self) -> None:
        for container in PAGE_CONTAINERS.values():
            self.view.hide(f"#{container}")

    def show_page(self, page: Page) -> None:
        self.view.show_only(PAGE_CONTAINERS[page], among=list(PAGE_CONTAINERS.values()))
        self.view.toggle_class(LAYOUT_ROOTS, SINGLE_ITEM_CLASS, page is Page.SINGLE)
        if self.view.relocate(MAP_NODE_ID, MAP_SLOTS[page]):
            logger.debug("Moved map into #%s", MAP_SLOTS[page])
            self.map_controller.invalidate_size()
        self.current_page = page

    def save_state(self, page: Page, cat_id: int | None = None, post_id: int | None = None) -> None:
        # catId/postId are left in place on Home so that back-navigation from a
        # single post can still find its category.
        self.storage.set_item(STORAGE_PAGE, page.value)
        if cat_id:
            self.storage.set_item(STORAGE_CAT_ID, cat_id)
        if post_id:
            self.storage.set_item(STORAGE_POST_ID, post_id)
        self.current_page = page

    def restore_state(self) -> NavigationState:
        self._hide_all_pages()
        saved_page = self.storage.get_item(STORAGE_PAGE)

        if saved_page == Page.CATEGORY.value:
            cat_id = _stored_int(self.storage.get_item(STORAGE_CAT_ID))
            if cat_id is not None:
                return NavigationState(Page.CATEGORY, cat_id=cat_id)
        elif saved_page == Page.SINGLE.value:
            post_id = _stored_int(self.storage.get_item(STORAGE_POST_ID))
            if post_id is not None:
                return NavigationState(Page.SINGLE, post_id=post_id)

        if saved_page not in (None, Page.HOME.value):
            logger.info("Stored page %r is incomplete, starting on home", saved_page)
        self.show_page(Page.HOME)
        return NavigationState(Page.HOME)

    def push_history(self, page: Page, cat_id: int | None = None, post_id: int | None = None) -> None:
        state: dict[str, object] = {"page": page.value}
        if cat_id is not None:
            state["catId"] = cat_id
        if post_id is not None:
            state["postId"] = post_id
        self.history.push_state(state)

    def remembered_cat_id(self) -> int | None:
        return _stored_int(self.storage.get_item(STORAGE_CAT_ID))

    def go_back(self) -> BackAction:
        back_button = self.view.find(".back-btn")
        cat_slug = back_button.get("data-cat-slug", "") if back_button is not None else ""
        self._hide_all_pages()
        self.view.remove(".filter-wrap")
        self.view.remove("#subcategory-container")
        if cat_slug:
            self.view.remove_class("#category-header, #single-post-header", cat_slug)

        if self.current_page is Page.SINGLE:
            cat_id = self.remembered_cat_id()
            if cat_id is not None:
                return BackAction(LOAD_CATEGORY, cat_id=cat_id)
            self.show_page(Page.HOME)
            self.save_state(Page.HOME)
            return BackAction(GO_HOME)
        if self.current_page is Page.CATEGORY:
            self.show_page(Page.HOME)
            self.save_state(Page.HOME)
            return BackAction(GO_HOME)

        self.show_page(self.current_page)
        return BackAction(NO_ACTION)

    # menus

    def toggle_menu(self, state: str | None = None) -> None:
        if state == "open":
            self.view.add_class(".sidebar-menu", "active")
        elif state == "close":
            self.view.remove_class(".sidebar-menu", "active")
        else:
            self.view.toggle_class(".sidebar-menu", "active")

    def toggle_dropdown(self, selector: str) -> None:
        self.view.toggle_exclusive(DROPDOWNS, selector, "active")

    def close_all_dropdowns(self) -> None:
        self.view.remove_class(DROPDOWNS, "active")

    # location info overlay

    def handle_mobile_menu_visibility(self) -> None:
        if self.view.is_mobile:
            self.view.hide(".menu-head-wrap")
        else:
            self.view.show(".menu-head-wrap")

    def show_location_info(self) -> None:
        self.handle_mobile_menu_visibility()
        self.view.add_class(f"#{MAP_NODE_ID}", "media-map")
        self.view.hide(".service_cat")
        self.view.show(".location-info-wrap")

    def hide_location_info(self) -> None:
        # Search results, when present, were what the overlay covered.
        if self.view.exists(".search-data"):
            self.view.hide(".service_cat")
            self.view.show(".search-data")
        else:
            self.view.show(".service_cat")
        self.view.show(".menu-head-wrap")
        self.view.hide(".location-info-wrap")
        self.view.remove_class(f"#{MAP_NODE_ID}", "media-map")
        self.view.remove_class(f"#{MAP_NODE_ID}", "search-media-map")

    @property
    def location_info_visible(self) -> bool:
        return self.view.is_visible(".location-info-wrap")
