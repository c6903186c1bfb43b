"""Read-only content store backing the ajax endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Category:
    id: int
    name: str
    slug: str
    parent: int = 0
    image: str = ""


@dataclass(slots=True)
class Service:
    id: int
    title: str
    lat: str | float | None = None
    long: str | float | None = None
    street_name: str = ""
    description: str = ""
    categories: list[int] = field(default_factory=list)
    weekly_hour: list[dict[str, object]] = field(default_factory=list)
    facilities: list[dict[str, object]] = field(default_factory=list)
    groups_schedule: list[dict[str, object]] = field(default_factory=list)
    group_selection: list[str] = field(default_factory=list)
    service_link: str = ""
    image: str = ""
    link: str = ""


class ContentStore:
    def __init__(self, categories: list[Category], services: list[Service]) -> None:
        self.categories = categories
        self.services = services
        self._categories_by_id = {category.id: category for category in categories}

    @classmethod
    def load(cls, path: Path) -> "ContentStore":
        if not path.exists():
            logger.warning("Content file %s not found, serving an empty store", path)
            return cls([], [])
        payload = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(payload)

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "ContentStore":
        categories = [Category(**item) for item in payload.get("categories", [])]
        services = [Service(**item) for item in payload.get("services", [])]
        return cls(categories, services)

    def category(self, cat_id: int) -> Category | None:
        return self._categories_by_id.get(cat_id)

    def service(self, post_id: int) -> Service | None:
        return next((service for service in self.services if service.id == post_id), None)

    def top_level_categories(self) -> list[Category]:
        return [category for category in self.categories if category.parent == 0]

    def children(self, parent_id: int) -> list[Category]:
        return [category for category in self.categories if category.parent == parent_id]

    def descendant_ids(self, cat_id: int) -> set[int]:
        found = {cat_id}
        frontier = [cat_id]
        while frontier:
            current = frontier.pop()
            for child in self.children(current):
                if child.id not in found:
                    found.add(child.id)
                    frontier.append(child.id)
        return found

    def terms_of(self, service: Service) -> list[Category]:
        return [self._categories_by_id[cat_id] for cat_id in service.categories if cat_id in self._categories_by_id]

    def post_category(self, service: Service, preferred_id: int = 0) -> Category | None:
        """Preferred category if the service has it, else its first top-level one, else its first."""
        terms = self.terms_of(service)
        if not terms:
            return None
        if preferred_id > 0:
            for term in terms:
                if term.id == preferred_id:
                    return term
        for term in terms:
            if term.parent == 0:
                return term
        return terms[0]

    def services_in(self, cat_ids: list[int], include_children: bool = True) -> list[Service]:
        wanted: set[int] = set()
        for cat_id in cat_ids:
            wanted |= self.descendant_ids(cat_id) if include_children else {cat_id}
        return [service for service in self.services if wanted.intersection(service.categories)]
