"""Action handlers answering with ``{"success": bool, "data": ...}`` envelopes.

Shared by the HTTP backend and the in-process transport.
"""

from __future__ import annotations

import html
import re
from typing import Callable, Final

from locator.content_store import Category, ContentStore, Service
from locator.icons import HYGIENE_SLUG
from locator.models import parse_coordinate
from locator.opening_hours import group_weekly_hours

HYGIENE_LOGO: Final = "/wp-content/uploads/2025/11/stockholms-stad-logo-png_seeklogo-402794-1.png"

GROUP_ICONS: Final = {
    "barn": ("/wp-content/uploads/2025/10/child_friendly.svg", "Barn/unga"),
    "familj": ("/wp-content/uploads/2025/10/family_restroom.svg", "Familj"),
    "kvinnor": ("/wp-content/uploads/2025/10/woman.svg", "Kvinnor"),
    "man": ("/wp-content/uploads/2025/10/man.svg", "Män"),
    "vuxna": ("/wp-content/uploads/2025/10/wc.svg", "Vuxna"),
    "senior": ("/wp-content/uploads/2025/10/elderly.svg", "Senior"),
}

Envelope = dict[str, object]
Handler = Callable[[ContentStore, dict[str, object]], Envelope]


def success(data: object) -> Envelope:
    return {"success": True, "data": data}


def error(message: str) -> Envelope:
    return {"success": False, "data": message}


def _int_param(params: dict[str, object], name: str) -> int:
    try:
        return int(str(params.get(name, 0) or 0))
    except ValueError:
        return 0


def sanitize_service_link(link: str) -> str:
    if link and not re.match(r"^https?://", link):
        return f"https://{link}"
    return link


def service_image(service: Service, cat_slug: str) -> str:
    if cat_slug == HYGIENE_SLUG:
        return HYGIENE_LOGO
    return service.image


def service_category_html(service: Service) -> str:
    tags = []
    for value in service.group_selection:
        if value not in GROUP_ICONS:
            continue
        url, label = GROUP_ICONS[value]
        tags.append(
            f'<div class="tag {html.escape(value)}"><img src="{html.escape(url)}" alt="{html.escape(label)}">'
            f"<span>{html.escape(label)}</span></div>"
        )
    return "".join(tags)


def _facilities(service: Service) -> list[dict[str, object]]:
    return [
        {"facilitity_image": {"url": item.get("image", "")}, "facilitity_text": item.get("text", "")}
        for item in service.facilities
    ]


def _grouped_hours(service: Service) -> list[dict[str, object]]:
    return [{"days": group.days, "hours": group.hours} for group in group_weekly_hours(service.weekly_hour)]


def _category_fields(category: Category | None) -> dict[str, str]:
    return {
        "cat_slug": category.slug if category else "",
        "cat_name": category.name if category else "",
        "cat_image": category.image if category else "",
    }


def _listing_item(store: ContentStore, service: Service, preferred_cat: int = 0) -> dict[str, object]:
    category = store.post_category(service, preferred_cat)
    fields = _category_fields(category)
    return {
        "id": service.id,
        "title": service.title,
        "image": service_image(service, fields["cat_slug"]),
        "street_name": service.street_name,
        "repeater_data": _facilities(service),
        "opening_hours_grouped": _grouped_hours(service),
        "lat": service.lat,
        "long": service.long,
        **fields,
    }


def get_all_posts_locations(store: ContentStore, params: dict[str, object]) -> Envelope:
    locations = []
    for service in store.services:
        if parse_coordinate(service.lat) is None or parse_coordinate(service.long) is None:
            continue
        slugs = {term.slug for term in store.terms_of(service)}
        if slugs == {HYGIENE_SLUG}:
            continue
        category = store.post_category(service)
        cat_slug = category.slug if category else ""
        locations.append(
            {
                "id": service.id,
                "lat": service.lat,
                "lng": service.long,
                "title": service.title,
                "address": service.street_name,
                "repeater_data": _facilities(service),
                "link": service.link,
                "cat_slug": cat_slug,
                "image": service_image(service, cat_slug),
                "opening_hours_grouped": _grouped_hours(service),
            }
        )
    return success(locations)


def load_category_posts(store: ContentStore, params: dict[str, object]) -> Envelope:
    cat_id = _int_param(params, "cat_id")
    if not cat_id:
        return error("Invalid category ID")
    services = sorted(store.services_in([cat_id]), key=lambda value: value.id)
    return success([_listing_item(store, service, cat_id) for service in services])


def get_subcategories_by_parent(store: ContentStore, params: dict[str, object]) -> Envelope:
    parent_id = _int_param(params, "parent_id")
    if not parent_id:
        return success([])
    category = store.category(parent_id)
    data = [{"id": child.id, "name": child.name} for child in store.children(parent_id)]
    return success({"data": data, "cat_name": category.name if category else ""})


def load_single_post_data(store: ContentStore, params: dict[str, object]) -> Envelope:
    if "post_id" not in params:
        return error("Missing post_id")
    service = store.service(_int_param(params, "post_id"))
    if service is None:
        return error("Post not found")
    category = store.post_category(service, _int_param(params, "cat_id"))
    fields = _category_fields(category)
    return success(
        {
            "id": service.id,
            "title": service.title,
            "image": service_image(service, fields["cat_slug"]),
            "content": service.description,
            "address": service.street_name,
            "service_link": sanitize_service_link(service.service_link),
            "repeater_data": _facilities(service),
            "service_category_html": service_category_html(service),
            "groups_schedule": service.groups_schedule,
            "opening_hours_grouped": _grouped_hours(service),
            "lat": service.lat,
            "long": service.long,
            **fields,
        }
    )


def load_subcategory_posts_multiple(store: ContentStore, params: dict[str, object]) -> Envelope:
    raw_ids = params.get("subcat_ids") or []
    subcat_ids = [int(value) for value in raw_ids if str(value).strip().isdigit()]
    if not subcat_ids:
        return success([])
    services = store.services_in(subcat_ids, include_children=False)
    return success([_listing_item(store, service) for service in services])


def custom_search(store: ContentStore, params: dict[str, object]) -> Envelope:
    query = str(params.get("s") or "").strip().casefold()
    if not query:
        return error("No results found")

    title_hits = [service for service in store.services if query in service.title.casefold()]
    content_hits = [
        service
        for service in store.services
        if service not in title_hits and query in service.description.casefold()
    ]
    results = []
    for service in title_hits + content_hits:
        category = store.post_category(service)
        cat_slug = category.slug if category else ""
        results.append(
            {
                "id": service.id,
                "title": service.title,
                "image": service_image(service, cat_slug),
                "address": service.street_name,
                "lat": service.lat,
                "long": service.long,
                "repeater_data": _facilities(service),
                "opening_hours_grouped": _grouped_hours(service),
                "link": service.link,
                "cat_slug": cat_slug,
            }
        )
    if not results:
        return error("No results found")
    return success(results)


def get_location_details(store: ContentStore, params: dict[str, object]) -> Envelope:
    if "post_id" not in params:
        return error("Missing post_id")
    service = store.service(_int_param(params, "post_id"))
    if service is None:
        return error("Post not found")
    category = store.post_category(service)
    cat_slug = category.slug if category else ""
    return success(
        {
            "id": service.id,
            "title": service.title,
            "image": service_image(service, cat_slug),
            "address": service.street_name,
            "lat": service.lat,
            "long": service.long,
            "repeater_data": _facilities(service),
            "opening_hours_grouped": _grouped_hours(service),
            "cat_slug": cat_slug,
        }
    )


ACTIONS: Final[dict[str, Handler]] = {
    "get_all_posts_locations": get_all_posts_locations,
    "load_category_posts": load_category_posts,
    "get_subcategories_by_parent": get_subcategories_by_parent,
    "load_single_post_data": load_single_post_data,
    "load_subcategory_posts_multiple": load_subcategory_posts_multiple,
    "custom_search": custom_search,
    "get_location_details": get_location_details,
}


def dispatch(store: ContentStore, action: str, params: dict[str, object]) -> Envelope:
    handler = ACTIONS.get(action)
    if handler is None:
        raise ValueError(f"Unknown action: {action}")
    return handler(store, params)
