"""
Unit tests for settings and note storage.
"""

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../backend"))

from models import AutolinkSettings, GlossaryEntry
from storage import NoteStorage, SettingsStorage


@pytest.mark.unit
class TestSettingsStorage:
    """Test suite for the JSON settings record."""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = SettingsStorage(tmp_path / "settings.json").load()

        assert settings.autoscan_check_interval == 2000
        assert settings.autoscan_active_document is True
        assert settings.ignore_headers is True
        assert settings.links == []

    def test_partial_record_merges_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"ignore_headers": False}), encoding="utf-8")

        settings = SettingsStorage(path).load()
        assert settings.ignore_headers is False
        assert settings.autoscan_check_interval == 2000
        assert settings.autoscan_active_document is True

    def test_unreadable_record_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        assert SettingsStorage(path).load().links == []

    def test_invalid_interval_falls_back(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"autoscan_check_interval": "soon"}), encoding="utf-8")
        assert SettingsStorage(path).load().autoscan_check_interval == 2000

        path.write_text(json.dumps({"autoscan_check_interval": -5}), encoding="utf-8")
        assert SettingsStorage(path).load().autoscan_check_interval == 2000

    def test_non_boolean_flags_fall_back(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(
            json.dumps({"autoscan_active_document": "false", "ignore_headers": 0}),
            encoding="utf-8",
        )

        settings = SettingsStorage(path).load()
        assert settings.autoscan_active_document is True
        assert settings.ignore_headers is True

    def test_boolean_flags_are_kept(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(
            json.dumps({"autoscan_active_document": False, "ignore_headers": False}),
            encoding="utf-8",
        )

        settings = SettingsStorage(path).load()
        assert settings.autoscan_active_document is False
        assert settings.ignore_headers is False

    def test_links_are_normalised_on_load(self, tmp_path):
        path = tmp_path / "settings.json"
        raw_links = [
            {"link": "Cats", "aliases": ["cat", "cat", ""]},
            {"link": "Dogs", "aliases": []},
            {"target": "Cats", "aliases": ["cats"]},
            {"link": "", "aliases": ["orphan"]},
        ]
        path.write_text(json.dumps({"links": raw_links}), encoding="utf-8")

        links = SettingsStorage(path).load().links
        assert [(e.target, e.aliases) for e in links] == [("Cats", ["cat", "cats"])]

    def test_save_round_trip_uses_link_key(self, tmp_path):
        path = tmp_path / "settings.json"
        storage = SettingsStorage(path)
        settings = AutolinkSettings(
            autoscan_check_interval=500,
            autoscan_active_document=False,
            links=[GlossaryEntry(target="page#section", aliases=["sect"])],
        )

        storage.save(settings)

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["links"] == [{"link": "page#section", "aliases": ["sect"]}]
        assert storage.load() == settings
        assert not (tmp_path / "settings.json.tmp").exists()


@pytest.mark.unit
class TestNoteStorage:
    """Test suite for markdown note storage."""

    def test_save_and_get(self, tmp_path):
        notes = NoteStorage(root=tmp_path)
        notes.save_note("folder/My Note", "I have a cat.")

        record = notes.get_note("/folder/My Note.md")
        assert record.id == "folder/My Note"
        assert record.content == "I have a cat."
        assert (tmp_path / "folder" / "My Note.md").exists()

    def test_missing_note(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            NoteStorage(root=tmp_path).get_note("missing")

    def test_ids_cannot_escape_vault(self, tmp_path):
        notes = NoteStorage(root=tmp_path / "vault")

        with pytest.raises(FileNotFoundError):
            notes.save_note("../outside", "x")
        with pytest.raises(FileNotFoundError):
            notes.get_note("")

    def test_list_notes(self, tmp_path):
        notes = NoteStorage(root=tmp_path)
        notes.save_note("b", "")
        notes.save_note("a/c", "")

        assert notes.list_notes() == ["a/c", "b"]
