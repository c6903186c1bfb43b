import json
from pathlib import Path

from locator.browser import BrowserHistory, LocalStorage


def test_storage_keeps_values_as_strings() -> None:
    storage = LocalStorage()

    storage.set_item("lastCategoryId", 12)

    assert storage.get_item("lastCategoryId") == "12"
    assert storage.get_item("missing") is None
    assert len(storage) == 1


def test_storage_persists_to_file(tmp_path: Path) -> None:
    path = tmp_path / "state" / "storage.json"
    storage = LocalStorage(path)

    storage.set_item("currentPage", "category")
    storage.set_item("lastCategoryId", "3")
    storage.remove_item("lastCategoryId")

    assert json.loads(path.read_text(encoding="utf-8")) == {"currentPage": "category"}
    assert LocalStorage(path).get_item("currentPage") == "category"


def test_storage_ignores_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")

    assert len(LocalStorage(path)) == 0

    path.write_text("[1, 2]", encoding="utf-8")
    assert len(LocalStorage(path)) == 0


def test_storage_clear(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path / "storage.json")
    storage.set_item("a", "1")

    storage.clear()

    assert len(storage) == 0
    assert json.loads((tmp_path / "storage.json").read_text(encoding="utf-8")) == {}


def test_history_push_and_back_notifies_listeners() -> None:
    history = BrowserHistory()
    seen: list[object] = []
    history.on_popstate(seen.append)

    history.push_state({"page": "category", "catId": 1})
    history.push_state({"page": "single", "catId": 1})
    assert history.length == 3

    history.back()
    assert history.state == {"page": "category", "catId": 1}
    history.back()
    history.back()

    assert seen == [{"page": "category", "catId": 1}, None]
    assert history.length == 1


def test_history_copies_pushed_state() -> None:
    history = BrowserHistory()
    state = {"page": "category"}

    history.push_state(state)
    state["page"] = "single"

    assert history.state == {"page": "category"}
