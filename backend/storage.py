"""Filesystem-backed storage for autolinker settings and markdown notes."""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from models import DEFAULT_CHECK_INTERVAL_MS, AutolinkSettings, GlossaryEntry, NoteRecord

logger = logging.getLogger(__name__)


class SettingsStorage:
    """Single JSON settings record holding options and the glossary."""

    def __init__(self, path: Optional[Path] = None):
        default = Path(__file__).resolve().parent / "storage" / "settings.json"
        self.path = Path(path) if path else default
        self.path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load(self) -> AutolinkSettings:
        """Read persisted settings, taking defaults for anything missing."""
        raw: Dict[str, Any] = {}
        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as handle:
                    raw = json.load(handle) or {}
            except (OSError, ValueError) as exc:
                logger.warning("Could not read settings from %s: %s", self.path, exc)
                raw = {}
            if not isinstance(raw, dict):
                logger.warning("Ignoring malformed settings record in %s", self.path)
                raw = {}

        return AutolinkSettings(
            autoscan_check_interval=self._read_interval(raw.get("autoscan_check_interval")),
            autoscan_active_document=self._read_flag(raw.get("autoscan_active_document"), True),
            ignore_headers=self._read_flag(raw.get("ignore_headers"), True),
            links=self._read_links(raw.get("links") or []),
        )

    def save(self, settings: AutolinkSettings) -> None:
        payload = {
            "autoscan_check_interval": settings.autoscan_check_interval,
            "autoscan_active_document": settings.autoscan_active_document,
            "ignore_headers": settings.ignore_headers,
            "links": [
                {"link": entry.target, "aliases": list(entry.aliases)}
                for entry in settings.links
            ],
        }

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _read_interval(self, value: Any) -> int:
        try:
            interval = int(value)
        except (TypeError, ValueError):
            return DEFAULT_CHECK_INTERVAL_MS
        return interval if interval > 0 else DEFAULT_CHECK_INTERVAL_MS

    def _read_flag(self, value: Any, default: bool) -> bool:
        return value if isinstance(value, bool) else default

    def _read_links(self, raw_links: Any) -> List[GlossaryEntry]:
        """Normalise persisted entries: unique targets, no empty or repeated aliases."""
        entries: Dict[str, GlossaryEntry] = {}
        if not isinstance(raw_links, list):
            return []

        for raw in raw_links:
            if not isinstance(raw, dict):
                continue
            target = str(raw.get("link") or raw.get("target") or "").strip()
            if not target:
                continue
            entry = entries.setdefault(target, GlossaryEntry(target=target))
            aliases = raw.get("aliases") or []
            if isinstance(aliases, str):
                aliases = [aliases]
            for alias in aliases:
                if isinstance(alias, str) and alias and alias not in entry.aliases:
                    entry.aliases.append(alias)

        return [entry for entry in entries.values() if entry.aliases]


class NoteStorage:
    """Markdown notes in a vault directory, addressed by path-style ids."""

    def __init__(self, root: Optional[Path] = None):
        base_dir = Path(root) if root else Path(__file__).resolve().parent / "storage" / "vault"
        base_dir.mkdir(parents=True, exist_ok=True)
        self.notes_dir = base_dir.resolve()

    def list_notes(self) -> List[str]:
        ids = [
            path.relative_to(self.notes_dir).with_suffix("").as_posix()
            for path in self.notes_dir.rglob("*.md")
        ]
        return sorted(ids)

    def get_note(self, note_id: str) -> NoteRecord:
        path = self._path_for(note_id)
        if not path.exists():
            raise FileNotFoundError(f"Note not found: {note_id}")
        return NoteRecord(
            id=self._normalize_id(note_id),
            content=path.read_text(encoding="utf-8"),
            updated_at=path.stat().st_mtime,
        )

    def save_note(self, note_id: str, content: str) -> NoteRecord:
        path = self._path_for(note_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return NoteRecord(id=self._normalize_id(note_id), content=content, updated_at=time.time())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _normalize_id(self, raw_id: str) -> str:
        normalized = raw_id.strip().strip("/")
        if normalized.endswith(".md"):
            normalized = normalized[: -len(".md")]
        return normalized

    def _path_for(self, note_id: str) -> Path:
        normalized = self._normalize_id(note_id)
        if not normalized:
            raise FileNotFoundError(f"Note not found: {note_id}")
        path = (self.notes_dir / f"{normalized}.md").resolve()
        if self.notes_dir not in path.parents:
            raise FileNotFoundError(f"Note not found: {note_id}")
        return path
