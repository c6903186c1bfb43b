from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Final

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_CENTER: Final = (59.3293, 18.0686)
DEFAULT_ZOOM: Final = 13
# Stockholm Central, used whenever the device position is unknown.
FALLBACK_CENTER: Final = (59.33024608264878, 18.058248426091545)
FALLBACK_ZOOM: Final = 12

DEFAULT_TILE_URL = "https://api.maptiler.com/maps/streets/{z}/{x}/{y}.png?key={key}"
TILE_ATTRIBUTION = '&copy; <a href="https://www.maptiler.com/">MapTiler</a>'

MOBILE_MAX_WIDTH: Final = 768


@dataclass(slots=True)
class Settings:
    data_file: Path
    storage_file: Path | None
    base_url: str
    tile_url: str
    host: str
    port: int
    viewport_width: int

    @classmethod
    def from_env(cls, base_dir: Path = BASE_DIR) -> "Settings":
        load_env_file(base_dir)
        storage = os.getenv("LOCATOR_STORAGE_FILE", "").strip()
        tile_key = os.getenv("MAPTILER_KEY", "").strip()
        return cls(
            data_file=Path(os.getenv("LOCATOR_DATA_FILE", str(base_dir / "data" / "services.json"))),
            storage_file=Path(storage) if storage else None,
            base_url=os.getenv("LOCATOR_BASE_URL", "http://127.0.0.1:8000").rstrip("/"),
            tile_url=os.getenv("LOCATOR_TILE_URL", "").strip() or DEFAULT_TILE_URL.replace("{key}", tile_key),
            host=os.getenv("LOCATOR_HOST", "127.0.0.1"),
            port=_int_env("LOCATOR_PORT", 8000),
            viewport_width=_int_env("LOCATOR_VIEWPORT_WIDTH", 1280),
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def load_env_file(base_dir: Path, filename: str = ".env") -> None:
    """Copy KEY=VALUE lines from ``base_dir/.env`` into the environment.

    Variables that are already set win over the file.
    """
    env_path = base_dir / filename
    if not env_path.exists():
        return
    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.removeprefix("export ").strip()
        if key:
            os.environ.setdefault(key, value.strip().strip('"').strip("'"))
