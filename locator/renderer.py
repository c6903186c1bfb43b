"""HTML rendering into the page view.

Markup lives in Jinja2 templates under ``templates/``. The renderer only
writes into the ``PageView``; it never touches the map.
"""

from __future__ import annotations

from datetime import datetime
import logging
from pathlib import Path
from typing import Callable, Final, Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import escape

from locator.icons import HYGIENE_SLUG
from locator.models import Location, Subcategory
from locator.opening_hours import OpeningStatus, display_rows, today_status
from locator.page_view import PageView

logger = logging.getLogger(__name__)

TEMPLATES_DIR: Final = Path(__file__).resolve().parent / "templates"

LISTING_PLACEHOLDER: Final = "/wp-content/uploads/2025/10/SSM_png-2.svg"
SINGLE_PLACEHOLDER: Final = "/wp-content/uploads/2025/10/SSM_single_png.svg"
SEARCH_PLACEHOLDER: Final = "/wp-content/uploads/2025/10/SSM_png_search.svg"

CLOSE_ICON: Final = "/wp-content/uploads/2025/12/close.png"
BACK_ICON: Final = "/wp-content/uploads/2025/10/back-white.svg"
BACK_TO_HOME_LABEL: Final = "Tillbaka till startsidan"
BACK_TO_CATEGORY_LABEL: Final = "Tillbaka till kategori"

DEFAULT_POPUP_ICON: Final = "/wp-content/uploads/2025/10/restaurant.svg"
POPUP_ICONS: Final = {
    "mat-gemenskap": "/wp-content/uploads/2025/09/restaurant.svg",
    HYGIENE_SLUG: "/wp-content/uploads/2025/10/restaurant-3.svg",
    "stod-vagledning": "/wp-content/uploads/2025/10/restaurant-4.svg",
    "sang-vila": "/wp-content/uploads/2025/10/restaurant-2.svg",
}

GROUP_LABEL_DEFAULT: Final = "Öppettider för målgrupp"
GROUP_LABEL_PREFIX: Final = "Öppettider för: "

INSTANT_FLAG: Final = "data-instant-rendered"
HIGHLIGHT_CLASS: Final = "selected-highlight"
CATEGORY_LOADER: Final = "category-posts-loader"
SINGLE_LOADER: Final = "single-post-loader"


def build_environment(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def group_selection_label(selected: Iterable[str]) -> str:
    names = [name.strip() for name in selected if name and name.strip()]
    if not names:
        return GROUP_LABEL_DEFAULT
    return GROUP_LABEL_PREFIX + ", ".join(names)


class Renderer:
    def __init__(
        self,
        view: PageView,
        environment: Environment | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.view = view
        self.env = environment or build_environment()
        self.clock = clock

    def _render(self, name: str, **context: object) -> str:
        return self.env.get_template(name).render(**context)

    def _status(self, location: Location) -> OpeningStatus:
        return today_status(location.opening_hours_grouped, self.clock())

    # category page

    def render_category_posts(self, posts: list[Location], cat_id: int | None) -> None:
        cards = [{"post": post, "status": self._status(post)} for post in posts]
        markup = self._render(
            "category_cards.html",
            cards=cards,
            cat_id="" if cat_id is None else cat_id,
            placeholder=LISTING_PLACEHOLDER,
        )
        self.view.set_html("#category-posts", markup)

    def _archive_header(
        self, cat_slug: str, cat_name: str, cat_image: str, eager: bool, back_label: str, back_icon: str
    ) -> str:
        return self._render(
            "archive_header.html",
            cat_slug=cat_slug,
            cat_name=cat_name,
            cat_image=cat_image,
            back_label=back_label,
            back_icon=back_icon,
            eager=eager,
        )

    def render_category_header(self, post: Location) -> None:
        self.view.add_class("#category-header", post.cat_slug)
        markup = self._archive_header(post.cat_slug, post.cat_name, post.cat_image, False, BACK_TO_HOME_LABEL, CLOSE_ICON)
        self.view.set_html("#category-header", markup)

    def render_category_header_instant(self, cat_slug: str, cat_name: str, cat_image: str = "") -> None:
        """Header drawn straight from the clicked link, before any response arrives."""
        self.view.remove_class("#category-header")
        self.view.add_class("#category-header", cat_slug)
        markup = self._archive_header(cat_slug, cat_name, cat_image, True, BACK_TO_HOME_LABEL, CLOSE_ICON)
        self.view.set_html("#category-header", markup)

    def render_subcategory_dropdown(self, subcategories: list[Subcategory]) -> None:
        self.view.remove(".filter-wrap")
        self.view.remove("#subcategory-container")
        if not subcategories:
            return
        self.view.insert_after("#category-header", self._render("subcategory_dropdown.html", subcategories=subcategories))

    def selected_subcategory_ids(self) -> list[int]:
        selected = []
        for checkbox in self.view.find_all("#subcategory-container input[type='checkbox']"):
            value = str(checkbox.get("value", "")).strip()
            if checkbox.has_attr("checked") and value.isdigit():
                selected.append(int(value))
        return selected

    def show_category_loader(self) -> None:
        self.view.set_html("#category-posts", self._render("loader.html", class_name=CATEGORY_LOADER))

    def hide_category_loader(self) -> None:
        self.view.remove(f"#category-posts .{CATEGORY_LOADER}")

    def highlight_post(self, post_id: int) -> bool:
        """Move the card to the top of the listing and mark it selected."""
        selector = f'#category-posts [data-post-id="{post_id}"]'
        if not self.view.prepend_child("#category-posts", selector):
            return False
        self.view.add_class(selector, HIGHLIGHT_CLASS)
        return True

    def clear_highlight(self, post_id: int) -> None:
        self.view.remove_class(f'#category-posts [data-post-id="{post_id}"]', HIGHLIGHT_CLASS)

    # single page

    def render_single_header_instant(self, cat_slug: str, cat_name: str, cat_image: str = "") -> None:
        self.view.remove_class("#single-post-header")
        self.view.add_class("#single-post-header", cat_slug)
        markup = self._archive_header(cat_slug, cat_name, cat_image, True, BACK_TO_HOME_LABEL, CLOSE_ICON)
        self.view.set_html("#single-post-header", markup)
        self.view.set_attr("#single-post-header", INSTANT_FLAG, "true")

    def render_single_header(self, post: Location) -> None:
        """Draw the header from the response unless it was already drawn from the link."""
        header = self.view.find("#single-post-header")
        if header is not None and header.has_attr(INSTANT_FLAG):
            del header[INSTANT_FLAG]
            return
        self.view.remove_class("#single-post-header")
        self.view.add_class("#single-post-header", post.cat_slug)
        markup = self._archive_header(
            post.cat_slug, post.cat_name, post.cat_image, False, BACK_TO_CATEGORY_LABEL, BACK_ICON
        )
        self.view.set_html("#single-post-header", markup)

    def render_groups_schedule_popup(self, post: Location) -> None:
        self.view.remove(".time-overlay")
        if not post.groups_schedule:
            return
        self.view.insert_after("#single-post-header", self._render("groups_popup.html", groups=post.groups_schedule))

    def render_single_post(self, post: Location) -> None:
        markup = self._render(
            "single_post.html",
            post=post,
            today=self._status(post),
            hours_rows=display_rows(post.opening_hours_grouped),
            group_label=GROUP_LABEL_DEFAULT,
            placeholder=SINGLE_PLACEHOLDER,
        )
        self.view.set_html("#single-posts", markup)

    def show_single_post_loader(self) -> None:
        self.view.set_html("#single-posts", self._render("loader.html", class_name=SINGLE_LOADER))

    def hide_single_post_loader(self) -> None:
        self.view.remove(f"#single-posts .{SINGLE_LOADER}")

    def selected_group_names(self) -> list[str]:
        names = []
        for item in self.view.find_all(".dropdown-item-single"):
            checkbox = item.select_one("input[type='checkbox']")
            label = item.select_one(".label-text-single")
            if checkbox is not None and checkbox.has_attr("checked") and label is not None:
                names.append(label.get_text(strip=True))
        return names

    def render_group_selection_label(self, selected: Iterable[str]) -> str:
        label = group_selection_label(selected)
        self.view.set_html(".dropdown-toggle-single", str(escape(label)))
        return label

    # location info overlay

    def render_location_info_popup(self, location: Location) -> None:
        self.view.show(".main-img-logo")
        self.view.set_attr(".main-img-logo img", "src", location.image or SEARCH_PLACEHOLDER)
        self.view.set_html(".location-info-content", f"<p>{escape(location.title)}</p>")
        self.view.set_attr(".location-info-image img", "src", POPUP_ICONS.get(location.cat_slug, DEFAULT_POPUP_ICON))
        self.view.set_html(".opening-time", self._render("status.html", value=self._status(location)))
        self.view.set_html(".location-street", str(escape(location.address)))
        self.view.set_html(".facility-area", self._render("facility_images.html", facilities=location.facilities))
        self.view.set_html(
            ".location-info-btns",
            self._render("location_buttons.html", location=location, hygiene_slug=HYGIENE_SLUG),
        )

    def render_location_loading(self) -> None:
        self.view.set_html(".location-info-content", "<p>Loading...</p>")
        self.view.set_html(".facility-area", "")
        self.view.set_html(".opening-time", "")

    def render_location_failure(self) -> None:
        self.view.set_html(".location-info-content", "<p>Failed to load data.</p>")

    # search

    def render_search_results(self, results: list[Location]) -> None:
        markup = self._render("search_results.html", results=results, placeholder=SEARCH_PLACEHOLDER)
        self.view.set_html("#search-results", markup)

    def render_no_results(self) -> None:
        self.view.set_html("#search-results", "<p>No results found</p>")

    def clear_search_results(self) -> None:
        self.view.set_html("#search-results", "")
