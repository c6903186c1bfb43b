import pytest

from locator.models import Facility, Location, SubcategoryListing, parse_coordinate


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("59.3326", 59.3326),
        (18.0649, 18.0649),
        (" -33.9 ", -33.9),
        ("0", None),
        (0, None),
        ("", None),
        ("abc", None),
        (None, None),
        (True, None),
        ("nan", None),
        ("inf", None),
    ],
)
def test_parse_coordinate(raw, expected) -> None:
    assert parse_coordinate(raw) == expected


def test_location_from_payload_accepts_long_and_street_name() -> None:
    location = Location.from_payload(
        {"id": "7", "lat": "59.3", "long": "18.1", "title": "Soppkök", "street_name": "Götgatan 1"}
    )

    assert location.id == 7
    assert location.coordinates == (59.3, 18.1)
    assert location.address == "Götgatan 1"


def test_location_from_payload_prefers_lng_over_long() -> None:
    location = Location.from_payload({"id": 1, "lat": "59.3", "lng": "18.2", "long": "18.9"})

    assert location.lng == 18.2


def test_location_from_payload_parses_nested_lists() -> None:
    location = Location.from_payload(
        {
            "id": 1,
            "opening_hours_grouped": [{"days": ["Måndag"], "hours": "08:00-11:00"}],
            "repeater_data": [{"facilitity_image": {"url": "/wifi.svg"}, "facilitity_text": "Wifi"}],
            "groups_schedule": [
                {"group_name": "Kvinnor", "opening_days": [{"day": "Måndag", "open": "08:00", "close": "09:00"}]}
            ],
        }
    )

    assert location.opening_hours_grouped[0].hours == "08:00-11:00"
    assert location.facilities == [Facility(image_url="/wifi.svg", text="Wifi")]
    assert location.groups_schedule[0].opening_days[0].close == "09:00"
    assert location.coordinates is None


def test_facility_accepts_plain_string_image() -> None:
    assert Facility.from_payload({"facilitity_image": "/a.svg"}).image_url == "/a.svg"


def test_subcategory_listing_tolerates_empty_list_payload() -> None:
    listing = SubcategoryListing.from_payload([])

    assert listing.items == []
    assert listing.cat_name == ""


def test_subcategory_listing_reads_items_and_parent_name() -> None:
    listing = SubcategoryListing.from_payload({"data": [{"id": "11", "name": "Frukost"}], "cat_name": "Mat"})

    assert [(item.id, item.name) for item in listing.items] == [(11, "Frukost")]
    assert listing.cat_name == "Mat"
