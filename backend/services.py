"""Service layer for coordinating the glossary, the rewriter and note storage."""

from __future__ import annotations

import logging
from typing import Optional

from glossary import GlossaryIndex, GlossaryInputError
from models import AliasChange, CommandResult, NoteRecord, SelectionResult
from rewriter import parse_link, rewrite
from storage import NoteStorage, SettingsStorage

logger = logging.getLogger(__name__)

LINK_NOT_SELECTED = "Link not selected"


class AutolinkService:
    """Host-facing commands: scanning text and editing the glossary from links."""

    def __init__(
        self,
        glossary: GlossaryIndex | None = None,
        notes: NoteStorage | None = None,
    ):
        self.glossary = glossary or GlossaryIndex(SettingsStorage())
        self.notes = notes or NoteStorage()

    @property
    def settings(self):
        return self.glossary.settings

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------
    def scan_full(self, document_text: str) -> str:
        aliases = self.glossary.ordered_aliases()
        return rewrite(document_text, aliases, skip_headers=self.settings.ignore_headers)

    def scan_selection(self, selection_text: str) -> str:
        aliases = self.glossary.ordered_aliases()
        return rewrite(selection_text, aliases, skip_headers=self.settings.ignore_headers)

    def autolink_selection(self, document: str, start: int, end: int) -> SelectionResult:
        """Rewrite ``document[start:end]`` in place and move the cursor past it."""
        start = max(0, min(start, len(document)))
        end = max(start, min(end, len(document)))

        replacement = self.scan_selection(document[start:end])
        updated = document[:start] + replacement + document[end:]

        cursor = start + len(replacement)
        if cursor + 1 <= len(updated):
            cursor += 1
        return SelectionResult(document=updated, replacement=replacement, cursor=cursor)

    def autolink_note(self, note_id: str) -> NoteRecord:
        record = self.notes.get_note(note_id)
        updated = self.scan_full(record.content)
        if updated == record.content:
            return record
        logger.info("Autolinked note %s", record.id)
        return self.notes.save_note(record.id, updated)

    # ------------------------------------------------------------------
    # Glossary commands driven by a selected link
    # ------------------------------------------------------------------
    def add_from_selection(self, selection: str) -> CommandResult:
        target, alias = self._selected_link(selection)
        return self.add_alias(target, alias)

    def add_alias(self, target: str, alias: str) -> CommandResult:
        change = self.glossary.add_alias(target, alias)
        if change == AliasChange.DUPLICATE:
            return CommandResult(False, "Alias already exists", change)
        if change == AliasChange.APPENDED:
            return CommandResult(True, f"Alias {alias} added to existing link {target}", change)
        return CommandResult(True, f"Alias {alias} added to link {target}", change)

    def remove_from_selection(self, selection: str) -> CommandResult:
        target, alias = self._selected_link(selection)
        return self.remove_alias(target, alias)

    def remove_alias(self, target: str, alias: str) -> CommandResult:
        change = self.glossary.remove_alias(target, alias)
        if change == AliasChange.NOT_FOUND:
            return CommandResult(False, f"Alias {alias} not found for link {target}", change)
        if change == AliasChange.ENTRY_REMOVED:
            return CommandResult(True, f"Link {target} removed due to 0 aliases", change)
        return CommandResult(True, f"Alias {alias} removed from link {target}", change)

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------
    def update_settings(
        self,
        autoscan_check_interval: Optional[int] = None,
        autoscan_active_document: Optional[bool] = None,
        ignore_headers: Optional[bool] = None,
    ):
        return self.glossary.update_options(
            autoscan_check_interval=autoscan_check_interval,
            autoscan_active_document=autoscan_active_document,
            ignore_headers=ignore_headers,
        )

    def _selected_link(self, selection: str):
        parsed = parse_link(selection)
        if parsed is None:
            raise GlossaryInputError(LINK_NOT_SELECTED)
        return parsed
