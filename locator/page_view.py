"""Presentation layer over the page shell.

The shell is rendered from ``templates/index.html`` and kept as a BeautifulSoup
tree. Navigation and rendering code change the page only through this class.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag

from locator.config import MOBILE_MAX_WIDTH

logger = logging.getLogger(__name__)

DEFAULT_MAP_SIZE = (800, 600)


def _fragment(markup: str) -> list[object]:
    return list(BeautifulSoup(markup, "html.parser").contents)


class PageView:
    def __init__(self, markup: str, viewport_width: int = 1280) -> None:
        self.soup = BeautifulSoup(markup, "lxml")
        self.viewport_width = viewport_width
        self.alerts: list[str] = []
        self.opened_urls: list[str] = []

    @property
    def is_mobile(self) -> bool:
        return self.viewport_width <= MOBILE_MAX_WIDTH

    def html(self) -> str:
        return str(self.soup)

    # lookup

    def find(self, selector: str) -> Tag | None:
        return self.soup.select_one(selector)

    def find_all(self, selector: str) -> list[Tag]:
        return self.soup.select(selector)

    def exists(self, selector: str) -> bool:
        return self.find(selector) is not None

    def text(self, selector: str) -> str:
        tag = self.find(selector)
        return tag.get_text(" ", strip=True) if tag is not None else ""

    # visibility

    def show(self, selector: str) -> None:
        for tag in self.find_all(selector):
            if tag.has_attr("hidden"):
                del tag["hidden"]

    def hide(self, selector: str) -> None:
        for tag in self.find_all(selector):
            tag["hidden"] = ""

    def show_only(self, element_id: str, among: list[str]) -> None:
        for other in among:
            self.hide(f"#{other}")
        self.show(f"#{element_id}")

    def is_visible(self, selector: str) -> bool:
        tag = self.find(selector)
        if tag is None:
            return False
        node: Tag | None = tag
        while node is not None and node.name != "[document]":
            if node.has_attr("hidden"):
                return False
            node = node.parent
        return True

    # classes

    def has_class(self, selector: str, css_class: str) -> bool:
        tag = self.find(selector)
        return tag is not None and css_class in tag.get("class", [])

    def add_class(self, selector: str, css_class: str) -> None:
        if not css_class:
            return
        for tag in self.find_all(selector):
            classes = list(tag.get("class", []))
            if css_class not in classes:
                classes.append(css_class)
            tag["class"] = classes

    def remove_class(self, selector: str, css_class: str | None = None) -> None:
        """Drop ``css_class``, or every class when it is None."""
        for tag in self.find_all(selector):
            if css_class is None:
                if tag.has_attr("class"):
                    del tag["class"]
                continue
            classes = [name for name in tag.get("class", []) if name != css_class]
            if classes:
                tag["class"] = classes
            elif tag.has_attr("class"):
                del tag["class"]

    def toggle_class(self, selector: str, css_class: str, on: bool | None = None) -> None:
        for tag in self.find_all(selector):
            present = css_class in tag.get("class", [])
            wanted = (not present) if on is None else on
            if wanted and not present:
                tag["class"] = list(tag.get("class", [])) + [css_class]
            elif not wanted and present:
                tag["class"] = [name for name in tag.get("class", []) if name != css_class]

    def toggle_exclusive(self, group_selector: str, selector: str, css_class: str) -> None:
        """Toggle ``css_class`` on one element and remove it from the rest of its group."""
        target = self.find(selector)
        for tag in self.find_all(group_selector):
            if tag is target:
                continue
            classes = [name for name in tag.get("class", []) if name != css_class]
            tag["class"] = classes
        if target is not None:
            self.toggle_class(selector, css_class)

    def set_attr(self, selector: str, name: str, value: str) -> None:
        for tag in self.find_all(selector):
            tag[name] = value

    # content

    def set_html(self, selector: str, markup: str) -> None:
        for tag in self.find_all(selector):
            tag.clear()
            for node in _fragment(markup):
                tag.append(node)

    def insert_after(self, selector: str, markup: str) -> None:
        anchor = self.find(selector)
        if anchor is None:
            return
        for node in _fragment(markup):
            anchor.insert_after(node)
            anchor = node

    def prepend_child(self, parent_selector: str, child_selector: str) -> bool:
        parent = self.find(parent_selector)
        child = self.find(child_selector)
        if parent is None or child is None:
            return False
        child.extract()
        parent.insert(0, child)
        return True

    def remove(self, selector: str) -> None:
        for tag in self.find_all(selector):
            tag.decompose()

    # map hosting

    def parent_id(self, node_id: str) -> str | None:
        node = self.soup.find(id=node_id)
        if node is None or node.parent is None:
            return None
        return node.parent.get("id")

    def relocate(self, node_id: str, container_id: str) -> bool:
        """Move the node into the container. Returns False when nothing had to move."""
        node = self.soup.find(id=node_id)
        target = self.soup.find(id=container_id)
        if node is None or target is None:
            logger.warning("Cannot move #%s into #%s: element missing", node_id, container_id)
            return False
        if node.parent is target:
            return False
        node.extract()
        target.append(node)
        return True

    def map_size(self, node_id: str = "main-map") -> tuple[int, int]:
        node = self.soup.find(id=node_id)
        container = node.parent if node is not None else None
        if container is None:
            return DEFAULT_MAP_SIZE
        try:
            return int(container.get("data-width", DEFAULT_MAP_SIZE[0])), int(
                container.get("data-height", DEFAULT_MAP_SIZE[1])
            )
        except ValueError:
            return DEFAULT_MAP_SIZE

    # browser chrome

    def alert(self, message: str) -> None:
        logger.warning("Alert shown: %s", message)
        self.alerts.append(message)

    def open_url(self, url: str) -> None:
        logger.info("Opening %s", url)
        self.opened_urls.append(url)
