from pathlib import Path

import pytest

from tests.conftest import SAMPLE_CONTENT, sample_store

from locator import ajax
from locator.content_store import Category, ContentStore, Service


def test_store_load_missing_file_is_empty(tmp_path: Path) -> None:
    store = ContentStore.load(tmp_path / "missing.json")

    assert store.categories == []
    assert store.services == []


def test_store_hierarchy() -> None:
    store = sample_store()

    assert [category.slug for category in store.top_level_categories()] == [
        "mat-gemenskap",
        "hygien",
        "stod-vagledning",
        "sang-vila",
    ]
    assert store.descendant_ids(1) == {1, 11, 12}
    assert [service.id for service in store.services_in([1])] == [101, 102, 103]
    assert [service.id for service in store.services_in([11], include_children=False)] == [101]


def test_post_category_prefers_requested_then_top_level() -> None:
    store = sample_store()
    service = store.service(101)

    assert store.post_category(service, 11).slug == "frukost"
    assert store.post_category(service).slug == "mat-gemenskap"
    assert store.post_category(Service(id=1, title="x")) is None


def test_homepage_locations_skip_hygiene_only_and_missing_coordinates() -> None:
    envelope = ajax.dispatch(sample_store(), "get_all_posts_locations", {})

    assert envelope["success"] is True
    assert [item["id"] for item in envelope["data"]] == [101, 102, 103, 301]
    first = envelope["data"][0]
    assert first["lng"] == "18.0649"
    assert first["cat_slug"] == "mat-gemenskap"
    assert first["opening_hours_grouped"][0] == {
        "days": ["Måndag", "Tisdag", "Onsdag", "Torsdag", "Fredag"],
        "hours": "08:00-11:00",
    }


def test_category_posts_include_children_and_use_long() -> None:
    envelope = ajax.dispatch(sample_store(), "load_category_posts", {"cat_id": "1"})

    assert [item["id"] for item in envelope["data"]] == [101, 102, 103]
    assert envelope["data"][0]["long"] == "18.0649"
    assert envelope["data"][0]["cat_slug"] == "mat-gemenskap"


def test_category_posts_reject_missing_id() -> None:
    assert ajax.dispatch(sample_store(), "load_category_posts", {}) == {
        "success": False,
        "data": "Invalid category ID",
    }


def test_hygiene_posts_use_the_city_logo() -> None:
    envelope = ajax.dispatch(sample_store(), "load_category_posts", {"cat_id": 2})

    assert envelope["data"][0]["image"] == ajax.HYGIENE_LOGO


def test_subcategories_by_parent() -> None:
    store = sample_store()

    envelope = ajax.dispatch(store, "get_subcategories_by_parent", {"parent_id": 1})
    assert envelope["data"] == {"data": [{"id": 11, "name": "Frukost"}, {"id": 12, "name": "Lunch"}], "cat_name": "Mat & gemenskap"}

    assert ajax.dispatch(store, "get_subcategories_by_parent", {})["data"] == []
    assert ajax.dispatch(store, "get_subcategories_by_parent", {"parent_id": 3})["data"]["data"] == []


def test_single_post_data() -> None:
    envelope = ajax.dispatch(sample_store(), "load_single_post_data", {"post_id": 101, "cat_id": 1})

    data = envelope["data"]
    assert data["service_link"] == "https://www.stadsmissionen.se"
    assert data["cat_slug"] == "mat-gemenskap"
    assert data["groups_schedule"][0]["group_name"] == "Kvinnor"
    assert 'class="tag kvinnor"' in data["service_category_html"]
    assert 'class="tag vuxna"' in data["service_category_html"]
    assert data["repeater_data"] == [
        {"facilitity_image": {"url": "/wp-content/uploads/2025/10/wifi.svg"}, "facilitity_text": "Wifi"}
    ]


@pytest.mark.parametrize(
    "params, message",
    [({}, "Missing post_id"), ({"post_id": 999}, "Post not found")],
)
def test_single_post_errors(params, message) -> None:
    assert ajax.dispatch(sample_store(), "load_single_post_data", params) == {"success": False, "data": message}


def test_sanitize_service_link() -> None:
    assert ajax.sanitize_service_link("example.org") == "https://example.org"
    assert ajax.sanitize_service_link("http://example.org") == "http://example.org"
    assert ajax.sanitize_service_link("") == ""


def test_subcategory_posts_multiple() -> None:
    store = sample_store()

    envelope = ajax.dispatch(store, "load_subcategory_posts_multiple", {"subcat_ids": ["11", "12", "x"]})
    assert [item["id"] for item in envelope["data"]] == [101, 102]

    assert ajax.dispatch(store, "load_subcategory_posts_multiple", {"subcat_ids": []})["data"] == []


def test_search_matches_titles_before_descriptions() -> None:
    store = ContentStore(
        [Category(id=1, name="Mat", slug="mat-gemenskap")],
        [
            Service(id=1, title="Kvällsmat", description="Soppa", categories=[1]),
            Service(id=2, title="Lunch", description="Varm soppa varje dag", categories=[1]),
            Service(id=3, title="Soppkök", categories=[1]),
        ],
    )

    envelope = ajax.dispatch(store, "custom_search", {"s": "SOPP"})

    assert [item["id"] for item in envelope["data"]] == [3, 1, 2]
    assert envelope["data"][0]["cat_slug"] == "mat-gemenskap"


def test_search_without_hits_or_query() -> None:
    store = sample_store()

    assert ajax.dispatch(store, "custom_search", {"s": "zzzz"}) == {"success": False, "data": "No results found"}
    assert ajax.dispatch(store, "custom_search", {"s": "  "})["success"] is False


def test_location_details() -> None:
    envelope = ajax.dispatch(sample_store(), "get_location_details", {"post_id": "301"})

    assert envelope["data"]["title"] == "Rådgivning Fridhemsplan"
    assert envelope["data"]["cat_slug"] == "stod-vagledning"
    assert ajax.dispatch(sample_store(), "get_location_details", {})["success"] is False


def test_unknown_action_raises() -> None:
    with pytest.raises(ValueError, match="Unknown action"):
        ajax.dispatch(sample_store(), "drop_tables", {})


def test_sample_content_is_consistent() -> None:
    category_ids = {category["id"] for category in SAMPLE_CONTENT["categories"]}
    for service in SAMPLE_CONTENT["services"]:
        assert set(service["categories"]) <= category_ids
