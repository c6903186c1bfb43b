from __future__ import annotations

from dataclasses import asdict, dataclass, field
import math


def parse_coordinate(value: object) -> float | None:
    """Parse a stored coordinate; ``None`` when missing, non-numeric, non-finite or zero.

    The content store writes ``0`` (or an empty string) for unset coordinates,
    so zero is treated the same as missing.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(parsed) or parsed == 0:
        return None
    return parsed


def _text(value: object) -> str:
    if value is None or value is False:
        return ""
    return str(value)


def _int_or_none(value: object) -> int | None:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


@dataclass(slots=True)
class OpeningHoursGroup:
    days: list[str]
    hours: str

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "OpeningHoursGroup":
        days = payload.get("days") or []
        return cls(days=[_text(day) for day in days], hours=_text(payload.get("hours")))


@dataclass(slots=True)
class Facility:
    image_url: str
    text: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "Facility":
        # upstream field names are spelled "facilitity_*"
        image = payload.get("facilitity_image", payload.get("image"))
        if isinstance(image, dict):
            image = image.get("url")
        text = payload.get("facilitity_text", payload.get("text"))
        return cls(image_url=_text(image), text=_text(text))


@dataclass(slots=True)
class GroupOpeningDay:
    day: str
    open: str
    close: str


@dataclass(slots=True)
class GroupSchedule:
    group_name: str
    opening_days: list[GroupOpeningDay] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "GroupSchedule":
        days = [
            GroupOpeningDay(day=_text(item.get("day")), open=_text(item.get("open")), close=_text(item.get("close")))
            for item in payload.get("opening_days") or []
        ]
        return cls(group_name=_text(payload.get("group_name")), opening_days=days)


@dataclass(slots=True)
class Location:
    id: int
    lat: float | None = None
    lng: float | None = None
    title: str = ""
    address: str = ""
    image: str = ""
    content: str = ""
    cat_slug: str = ""
    cat_name: str = ""
    cat_image: str = ""
    service_link: str = ""
    link: str = ""
    service_category_html: str = ""
    opening_hours_grouped: list[OpeningHoursGroup] = field(default_factory=list)
    facilities: list[Facility] = field(default_factory=list)
    groups_schedule: list[GroupSchedule] = field(default_factory=list)

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.lat is None or self.lng is None:
            return None
        return self.lat, self.lng

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "Location":
        # Category and search endpoints send "long", the homepage endpoint sends "lng".
        raw_lng = payload.get("lng")
        if raw_lng in (None, ""):
            raw_lng = payload.get("long")
        address = payload.get("address") or payload.get("street_name")
        return cls(
            id=_int_or_none(payload.get("id")) or 0,
            lat=parse_coordinate(payload.get("lat")),
            lng=parse_coordinate(raw_lng),
            title=_text(payload.get("title")),
            address=_text(address),
            image=_text(payload.get("image")),
            content=_text(payload.get("content")),
            cat_slug=_text(payload.get("cat_slug")),
            cat_name=_text(payload.get("cat_name")),
            cat_image=_text(payload.get("cat_image")),
            service_link=_text(payload.get("service_link")),
            link=_text(payload.get("link")),
            service_category_html=_text(payload.get("service_category_html")),
            opening_hours_grouped=[
                OpeningHoursGroup.from_payload(item) for item in payload.get("opening_hours_grouped") or []
            ],
            facilities=[Facility.from_payload(item) for item in payload.get("repeater_data") or []],
            groups_schedule=[GroupSchedule.from_payload(item) for item in payload.get("groups_schedule") or []],
        )

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(slots=True)
class Subcategory:
    id: int
    name: str


@dataclass(slots=True)
class SubcategoryListing:
    items: list[Subcategory]
    cat_name: str = ""

    @classmethod
    def from_payload(cls, payload: object) -> "SubcategoryListing":
        if not isinstance(payload, dict):
            return cls(items=[])
        items = [
            Subcategory(id=_int_or_none(item.get("id")) or 0, name=_text(item.get("name")))
            for item in payload.get("data") or []
        ]
        return cls(items=items, cat_name=_text(payload.get("cat_name")))


@dataclass(frozen=True, slots=True)
class CameraView:
    lat: float
    lng: float
    zoom: int
