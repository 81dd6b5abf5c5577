"""Unit tests for the persisted SettingsStore."""

import json
import pytest

from voicedrop.storage.settings_store import SettingsStore, TRANSCRIBED_TEXT_KEY


@pytest.mark.unit
class TestSettingsStore:

    def test_missing_file_returns_default(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")

        assert store.get_string(TRANSCRIBED_TEXT_KEY) is None
        assert store.get_string(TRANSCRIBED_TEXT_KEY, "") == ""

    def test_value_survives_reload(self, tmp_path):
        path = tmp_path / "settings.json"
        SettingsStore(path).set_string(TRANSCRIBED_TEXT_KEY, "hello world")

        assert SettingsStore(path).get_string(TRANSCRIBED_TEXT_KEY) == "hello world"
        assert json.loads(path.read_text()) == {"TranscribedText": "hello world"}

    def test_overwrite_keeps_last_value(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")
        store.set_string(TRANSCRIBED_TEXT_KEY, "first")
        store.set_string(TRANSCRIBED_TEXT_KEY, "second")

        assert store.get_string(TRANSCRIBED_TEXT_KEY) == "second"
        assert [p.name for p in tmp_path.iterdir()] == ["settings.json"]

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        store = SettingsStore(path)

        assert store.get_string(TRANSCRIBED_TEXT_KEY, "") == ""
        store.set_string(TRANSCRIBED_TEXT_KEY, "recovered")
        assert SettingsStore(path).get_string(TRANSCRIBED_TEXT_KEY) == "recovered"

    def test_invalid_utf8_is_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_bytes(b'{"TranscribedText": "\xff\xfe"}')

        store = SettingsStore(path)

        assert store.get_string(TRANSCRIBED_TEXT_KEY) is None
        store.set_string(TRANSCRIBED_TEXT_KEY, "recovered")
        assert SettingsStore(path).get_string(TRANSCRIBED_TEXT_KEY) == "recovered"

    def test_unreadable_path_is_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.mkdir()

        assert SettingsStore(path).get_string(TRANSCRIBED_TEXT_KEY, "") == ""

    def test_non_string_value_reads_as_default(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({TRANSCRIBED_TEXT_KEY: 42}))

        assert SettingsStore(path).get_string(TRANSCRIBED_TEXT_KEY, "") == ""
