"""PreferencesStore persistence."""

import json

from src.nurse_visits.preferences import PreferencesStore


def test_defaults_without_file(tmp_path):
    store = PreferencesStore(tmp_path / "prefs.json")
    assert store.dark_mode is False
    assert store.user_email is None


def test_changes_are_written_through(tmp_path):
    path = tmp_path / "state" / "prefs.json"
    store = PreferencesStore(path)

    store.set_dark_mode(True)
    store.remember_email(" nurse@school.ac.th ")

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved == {"dark_mode": True, "user_email": "nurse@school.ac.th"}
    reopened = PreferencesStore(path)
    assert reopened.dark_mode is True
    assert reopened.user_email == "nurse@school.ac.th"


def test_toggle_and_forget(tmp_path):
    store = PreferencesStore(tmp_path / "prefs.json")
    store.remember_email("nurse@school.ac.th")
    assert store.toggle_dark_mode() is True
    assert store.toggle_dark_mode() is False
    store.forget_email()
    assert store.user_email is None


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")
    store = PreferencesStore(path)
    assert store.dark_mode is False


def test_snapshot_is_a_copy(tmp_path):
    store = PreferencesStore(tmp_path / "prefs.json")
    snapshot = store.preferences
    snapshot.dark_mode = True
    assert store.dark_mode is False
