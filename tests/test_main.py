import json
from pathlib import Path
import sys
from unittest.mock import MagicMock, patch

from tests.conftest import DATA_FILE, TILE_URL, sample_shell, sample_store

from locator import main as cli
from locator.config import Settings
from locator.data_fetcher import LocalTransport


def _settings(tmp_path: Path, storage: bool = False) -> Settings:
    return Settings(
        data_file=DATA_FILE,
        storage_file=tmp_path / "storage.json" if storage else None,
        base_url="http://backend:8000",
        tile_url=TILE_URL,
        host="127.0.0.1",
        port=8000,
        viewport_width=1280,
    )


def test_render_home_page(tmp_path: Path) -> None:
    output = tmp_path / "out" / "page.html"

    summary = cli.render_page(_settings(tmp_path), output)

    assert output.exists()
    assert 'id="main-map"' in output.read_text(encoding="utf-8")
    assert summary["page"] == "home"
    assert summary["markers"] == 4
    assert summary["zoom"] == 12
    assert summary["alerts"] == []


def test_render_category_with_position(tmp_path: Path) -> None:
    summary = cli.render_page(_settings(tmp_path), tmp_path / "page.html", category=1, position=(59.316, 18.072))

    assert summary["page"] == "category"
    assert summary["center"] == [59.3151, 18.0718]
    assert summary["zoom"] == 13
    assert summary["markers"] == 3


def test_render_single_post(tmp_path: Path) -> None:
    output = tmp_path / "page.html"

    summary = cli.render_page(_settings(tmp_path), output, category=1, post=101)

    assert summary["page"] == "single"
    assert summary["zoom"] == 16
    assert "Stadsmissionens frukost" in output.read_text(encoding="utf-8")


def test_render_search(tmp_path: Path) -> None:
    output = tmp_path / "page.html"

    summary = cli.render_page(_settings(tmp_path), output, query="soppa")

    assert summary["markers"] == 1
    assert 'class="search-result"' in output.read_text(encoding="utf-8")


def test_render_persists_page_state(tmp_path: Path) -> None:
    settings = _settings(tmp_path, storage=True)
    cli.render_page(settings, tmp_path / "first.html", category=3)

    summary = cli.render_page(settings, tmp_path / "second.html")

    assert summary["page"] == "category"
    assert json.loads((tmp_path / "storage.json").read_text(encoding="utf-8"))["currentCatId"] == "3"


def test_render_remote_uses_backend(tmp_path: Path) -> None:
    shell_response = MagicMock(text=sample_shell())
    with (
        patch("locator.main.requests.get", return_value=shell_response) as get,
        patch("locator.main.HttpTransport", return_value=LocalTransport(sample_store())) as transport,
    ):
        summary = cli.render_page(_settings(tmp_path), tmp_path / "page.html", category=2, remote=True)

    get.assert_called_once_with("http://backend:8000/", timeout=15)
    shell_response.raise_for_status.assert_called_once()
    transport.assert_called_once_with("http://backend:8000")
    assert summary["page"] == "category"
    assert summary["markers"] == 1


def test_main_render_page_command(tmp_path: Path, capsys) -> None:
    output = tmp_path / "page.html"
    argv = ["locator", "render-page", "--output", str(output), "--category", "3", "--position", "59.34,18.07"]
    with (
        patch.object(sys, "argv", argv),
        patch("locator.main.Settings.from_env", return_value=_settings(tmp_path)),
    ):
        assert cli.main() == 0

    printed = json.loads(capsys.readouterr().out)
    assert printed["page"] == "category"
    assert printed["center"] == [59.3323, 18.0296]
    assert output.exists()


def test_main_serve_command(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    with (
        patch.object(sys, "argv", ["locator", "serve"]),
        patch("locator.main.Settings.from_env", return_value=settings),
        patch("locator.main.uvicorn.run") as run,
    ):
        assert cli.main() == 0

    app = run.call_args.args[0]
    assert run.call_args.kwargs == {"host": "127.0.0.1", "port": 8000}
    assert app.title == "Service Locator"


def test_position_argument() -> None:
    assert cli._position("59.34,18.07") == (59.34, 18.07)
