"""Backend application state shared by request handlers and the autoscan loop."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from autoscan import AutoscanMonitor
from config import AutolinkerConfig, load_config
from glossary import GlossaryIndex
from services import AutolinkService
from storage import NoteStorage, SettingsStorage

logger = logging.getLogger(__name__)


class AutolinkerAppState:
    """Holds the autolink service, the active note and the autoscan monitor."""

    def __init__(self, config: Optional[AutolinkerConfig] = None, service: Optional[AutolinkService] = None):
        self.lock = threading.RLock()
        self.config = config or load_config()
        self.service = service or self._build_service(self.config)
        self.monitor = AutoscanMonitor(self.service.settings.autoscan_check_interval)
        self._active_note_id: Optional[str] = None

    def current(self) -> AutolinkService:
        return self.service

    @property
    def active_note_id(self) -> Optional[str]:
        with self.lock:
            return self._active_note_id

    def set_active_note(self, note_id: Optional[str]) -> None:
        with self.lock:
            self._active_note_id = note_id or None

    def check_interval(self) -> int:
        return self.service.settings.autoscan_check_interval

    def autoscan_tick(self) -> bool:
        """Scan the active note if it has settled; returns True when a scan ran."""
        with self.lock:
            settings = self.service.settings
            note_id = self._active_note_id
            if not settings.autoscan_active_document or not note_id:
                return False

            try:
                record = self.service.notes.get_note(note_id)
            except FileNotFoundError:
                return False

            self.monitor.check_interval = settings.autoscan_check_interval
            if not self.monitor.observe(note_id, len(record.content)):
                return False

            updated = self.service.autolink_note(note_id)
            self.monitor.mark_scanned(len(updated.content))
            return True

    def _build_service(self, config: AutolinkerConfig) -> AutolinkService:
        settings_storage = SettingsStorage(config.settings_path)
        glossary = GlossaryIndex(settings_storage)
        notes = NoteStorage(root=config.vault_dir)
        logger.info(
            "Loaded %d glossary entries from %s", len(glossary.entries), settings_storage.path
        )
        return AutolinkService(glossary=glossary, notes=notes)
