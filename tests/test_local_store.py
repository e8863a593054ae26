from pathlib import Path

import yaml

from vms.services.local_store import LocalStore


def test_items_survive_reload(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.yaml"
    store = LocalStore(str(path))
    store.contractor_id = "c-42"
    store.last_score = 75
    store.set_item("theme", "dark")

    reloaded = LocalStore(str(path))

    assert reloaded.contractor_id == "c-42"
    assert reloaded.last_score == 75
    assert reloaded.get_item("theme") == "dark"
    assert yaml.safe_load(path.read_text(encoding="utf-8"))["contractorId"] == "c-42"


def test_remove_and_clear(tmp_path: Path) -> None:
    path = tmp_path / "state.yaml"
    store = LocalStore(str(path))
    store.contractor_id = "c-42"
    store.last_score = 10

    store.last_score = None
    store.contractor_id = None
    assert LocalStore(str(path)).get_item("lastScore") is None
    assert LocalStore(str(path)).contractor_id is None

    store.set_item("other", 1)
    store.clear()
    assert LocalStore(str(path)).get_item("other") is None


def test_missing_empty_or_malformed_file(tmp_path: Path) -> None:
    assert LocalStore(str(tmp_path / "absent.yaml")).contractor_id is None

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert LocalStore(str(empty)).last_score is None

    malformed = tmp_path / "list.yaml"
    malformed.write_text("- just\n- a list\n", encoding="utf-8")
    assert LocalStore(str(malformed)).get_item("contractorId") is None


def test_in_memory_store() -> None:
    store = LocalStore()
    assert store.contractor_id is None
    store.contractor_id = "abc"
    assert store.contractor_id == "abc"
    store.remove_item("contractorId")
    assert store.contractor_id is None
