"""Glossary of link targets and their aliases, with the longest-first alias cache."""

from __future__ import annotations

import copy
import json
import logging
from typing import List, Optional, Sequence, Tuple

from models import AliasChange, AliasLink, AutolinkSettings, GlossaryEntry
from storage import SettingsStorage

logger = logging.getLogger(__name__)


class GlossaryInputError(ValueError):
    """User-supplied glossary input could not be used; nothing was changed."""


def parse_alias_list(raw: str) -> List[str]:
    """Parse a JSON array of alias strings as typed into the settings surface."""
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise GlossaryInputError(f"Aliases must be a JSON array of strings: {exc}") from exc

    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise GlossaryInputError("Aliases must be a JSON array of strings")

    aliases: List[str] = []
    for alias in value:
        if alias and alias not in aliases:
            aliases.append(alias)
    return aliases


class GlossaryIndex:
    """Owns the glossary and derives the alias list used for matching.

    Every mutation is applied to a copy of the settings record, persisted, and
    only then swapped in; a failed save leaves the live glossary untouched.
    ``ordered_aliases`` rebuilds lazily into a fresh tuple, so a reader holding
    the previous tuple never sees a partial list.
    """

    def __init__(self, storage: SettingsStorage, settings: Optional[AutolinkSettings] = None):
        self.storage = storage
        self.settings = settings if settings is not None else storage.load()
        self._ordered: Tuple[AliasLink, ...] = ()
        self._dirty = True

    @property
    def entries(self) -> List[GlossaryEntry]:
        return self.settings.links

    @property
    def dirty(self) -> bool:
        return self._dirty

    # ------------------------------------------------------------------
    # Alias commands
    # ------------------------------------------------------------------
    def add_alias(self, target: str, alias: str) -> AliasChange:
        target = self._require_target(target)
        self._require_alias(alias)

        draft = self._draft()
        entry = _find_in(draft.links, target)
        if entry is not None:
            if alias in entry.aliases:
                logger.info("Alias %r already exists for %r", alias, target)
                return AliasChange.DUPLICATE
            entry.aliases.append(alias)
            change = AliasChange.APPENDED
        else:
            draft.links.append(GlossaryEntry(target=target, aliases=[alias]))
            change = AliasChange.ADDED

        self._commit(draft)
        logger.info("Alias %r added to link %r", alias, target)
        return change

    def remove_alias(self, target: str, alias: str) -> AliasChange:
        draft = self._draft()
        entry = _find_in(draft.links, target)
        if entry is None or alias not in entry.aliases:
            return AliasChange.NOT_FOUND

        entry.aliases.remove(alias)
        change = AliasChange.REMOVED
        if not entry.aliases:
            draft.links.remove(entry)
            change = AliasChange.ENTRY_REMOVED

        self._commit(draft)
        logger.info("Alias %r removed from link %r (%s)", alias, target, change.value)
        return change

    # ------------------------------------------------------------------
    # Settings surface
    # ------------------------------------------------------------------
    def add_entry(self, target: str, raw_aliases: str) -> GlossaryEntry:
        target = self._require_target(target)
        aliases = parse_alias_list(raw_aliases)
        if not aliases:
            raise GlossaryInputError("At least one alias is required")

        draft = self._draft()
        entry = _find_in(draft.links, target)
        if entry is None:
            entry = GlossaryEntry(target=target)
            draft.links.append(entry)
        entry.aliases.extend(alias for alias in aliases if alias not in entry.aliases)

        self._commit(draft)
        logger.info("Link %r now has %d aliases", target, len(entry.aliases))
        return entry

    def replace_aliases(self, target: str, raw_aliases: str) -> Optional[GlossaryEntry]:
        """Swap an entry's alias set; returns None when the entry was dropped."""
        draft = self._draft()
        entry = _find_in(draft.links, target)
        if entry is None:
            raise KeyError(target)
        aliases = parse_alias_list(raw_aliases)

        if aliases:
            entry.aliases = aliases
        else:
            draft.links.remove(entry)
            entry = None

        self._commit(draft)
        return entry

    def remove_entry(self, target: str) -> None:
        draft = self._draft()
        entry = _find_in(draft.links, target)
        if entry is None:
            raise KeyError(target)
        draft.links.remove(entry)
        self._commit(draft)
        logger.info("Link %r removed", target)

    def update_options(
        self,
        autoscan_check_interval: Optional[int] = None,
        autoscan_active_document: Optional[bool] = None,
        ignore_headers: Optional[bool] = None,
    ) -> AutolinkSettings:
        if autoscan_check_interval is not None and autoscan_check_interval <= 0:
            raise GlossaryInputError("Check interval must be a positive number of milliseconds")

        draft = self._draft()
        if autoscan_check_interval is not None:
            draft.autoscan_check_interval = autoscan_check_interval
        if autoscan_active_document is not None:
            draft.autoscan_active_document = autoscan_active_document
        if ignore_headers is not None:
            draft.ignore_headers = ignore_headers

        self._commit(draft)
        return draft

    def search(self, query: str = "") -> List[GlossaryEntry]:
        needle = (query or "").lower()
        if not needle:
            return list(self.entries)
        return [entry for entry in self.entries if needle in entry.target.lower()]

    def find(self, target: str) -> Optional[GlossaryEntry]:
        return _find_in(self.entries, target)

    # ------------------------------------------------------------------
    # Derived alias list
    # ------------------------------------------------------------------
    def ordered_aliases(self) -> Tuple[AliasLink, ...]:
        if self._dirty:
            self._ordered = build_ordered_aliases(self.entries)
            self._dirty = False
        return self._ordered

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _draft(self) -> AutolinkSettings:
        return copy.deepcopy(self.settings)

    def _commit(self, draft: AutolinkSettings) -> None:
        """Persist ``draft`` and only then make it the live settings."""
        self.storage.save(draft)
        self.settings = draft
        self._dirty = True

    def _require_target(self, target: str) -> str:
        target = (target or "").strip()
        if not target:
            raise GlossaryInputError("Link target must not be empty")
        return target

    def _require_alias(self, alias: str) -> None:
        if not alias:
            raise GlossaryInputError("Alias must not be empty")


def _find_in(entries: Sequence[GlossaryEntry], target: str) -> Optional[GlossaryEntry]:
    target = (target or "").strip()
    for entry in entries:
        if entry.target == target:
            return entry
    return None


def build_ordered_aliases(entries: Sequence[GlossaryEntry]) -> Tuple[AliasLink, ...]:
    flattened = [
        AliasLink(alias=alias, target=entry.target)
        for entry in entries
        for alias in entry.aliases
        if alias
    ]
    flattened.sort(key=lambda link: len(link.alias), reverse=True)
    return tuple(flattened)
