from __future__ import annotations

from dataclasses import dataclass
from typing import Final

HYGIENE_SLUG: Final = "hygien"

PIN_PATH = (
    "M15.9998 1.4707C20.0033 1.4707 23.8408 3.0932 26.6687 5.97754C29.4962 8.86164 31.0837 12.7712 "
    "31.0837 16.8457C31.0837 22.6 25.5 31.2 18.6697 42.0342L15.9998 45.2246L13.3298 42.0342C6.5 31.2 "
    "0.916748 22.6 0.916748 16.8457C0.916748 12.7712 2.50337 8.86162 5.33081 5.97754C8.15861 3.09318 "
    "11.9963 1.47079 15.9998 1.4707ZM15.9998 12.0332C13.4 12.0332 11.2917 14.1912 11.2917 16.8457C11.2917 "
    "19.5002 13.4 21.6582 15.9998 21.6582C18.6 21.6582 20.7087 19.5002 20.7087 16.8457C20.7087 14.1912 "
    "18.6 12.0332 15.9998 12.0332Z"
)

GENERIC_PIN_SVG = (
    '<svg width="32" height="46" viewBox="0 0 32 46" fill="none" xmlns="http://www.w3.org/2000/svg">'
    f'<path d="{PIN_PATH}" fill="#D72C19" stroke="black"/></svg>'
)

TOILET_PIN_SVG = (
    '<svg width="50" height="50" viewBox="0 0 50 50" fill="none" xmlns="http://www.w3.org/2000/svg">'
    '<path d="M24.583 3.5293C32.9 3.5293 39.667 10.3 39.667 18.6123C39.667 29.4 28.1 42.3 24.583 46.4424'
    'C21.1 42.3 9.5 29.4 9.5 18.6123C9.5 10.3 16.3 3.5293 24.583 3.5293Z" fill="#C7C7C7" stroke="black"/>'
    '<rect x="18" y="13.0293" width="4.33846" height="9.4" rx="1" fill="#171717"/>'
    '<path d="M18 23.1523H32.4615C32.4615 25.0162 30.6538 26.7677 28.3038 27.3749C27.4 27.4908 27.4 28.2379 '
    '27.4 28.2379C27.4 28.937 28.4048 29.6984 29.2299 30.0216C29.8047 30.2466 30.2923 31.3908 30.2923 31.8293H20.1692'
    'C20.1692 31.3908 20.6568 30.2466 21.2316 30.0216C22.0567 29.6984 23.0615 28.937 23.0615 28.2379C23.0615 27.5388 '
    '22.3385 27.3749 22.3385 27.3749C19.7734 26.625 18 25.0162 18 23.1523Z" fill="#171717"/></svg>'
)


@dataclass(frozen=True, slots=True)
class IconDescriptor:
    kind: str
    class_name: str
    html: str = ""
    icon_url: str = ""
    icon_size: tuple[int, int] = (32, 45)
    icon_anchor: tuple[int, int] = (16, 45)
    popup_anchor: tuple[int, int] | None = None

    @property
    def tag(self) -> str:
        """Category tag carried next to the base marker class, used only for styling."""
        _, _, tag = self.class_name.partition(" ")
        return tag


USER_ICON = IconDescriptor(
    kind="user",
    class_name="user-location-marker",
    icon_url="/wp-content/uploads/2025/10/user-location.svg",
    icon_size=(40, 40),
    icon_anchor=(20, 20),
    popup_anchor=(0, -20),
)


def icon_for(category_slug: str | None) -> IconDescriptor:
    slug = (category_slug or "").strip()
    if slug == HYGIENE_SLUG:
        return IconDescriptor(kind="toilet", class_name=f"custom-marker-toilet {slug}", html=TOILET_PIN_SVG)
    return IconDescriptor(kind="pin", class_name=f"custom-marker {slug}".strip(), html=GENERIC_PIN_SVG)
