"""Shared backend models for the autolinker."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_CHECK_INTERVAL_MS = 2000


def _timestamp() -> float:
    return time.time()


@dataclass
class GlossaryEntry:
    """A link target and the display terms that should resolve to it."""

    target: str
    aliases: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AliasLink:
    """One (alias, target) pair of the flattened, longest-first alias list."""

    alias: str
    target: str


@dataclass
class AutolinkSettings:
    """Persisted options plus the glossary itself."""

    autoscan_check_interval: int = DEFAULT_CHECK_INTERVAL_MS
    autoscan_active_document: bool = True
    ignore_headers: bool = True
    links: List[GlossaryEntry] = field(default_factory=list)


@dataclass
class NoteRecord:
    """A markdown note in the vault."""

    id: str
    content: str = ""
    updated_at: float = field(default_factory=_timestamp)


class AliasChange(str, Enum):
    ADDED = "added"
    APPENDED = "appended"
    DUPLICATE = "duplicate"
    REMOVED = "removed"
    ENTRY_REMOVED = "entry_removed"
    NOT_FOUND = "not_found"


@dataclass
class CommandResult:
    """Outcome of a glossary command, carrying the user-facing notice."""

    success: bool
    message: str
    change: Optional[AliasChange] = None


@dataclass
class SelectionResult:
    document: str
    replacement: str
    cursor: int


# API payloads

class GlossaryEntryPayload(BaseModel):
    target: str
    aliases: List[str] = Field(default_factory=list)


class GlossaryResponsePayload(BaseModel):
    total: int
    entries: List[GlossaryEntryPayload] = Field(default_factory=list)


class SettingsPayload(BaseModel):
    autoscan_check_interval: int
    autoscan_active_document: bool
    ignore_headers: bool


class CommandResponsePayload(BaseModel):
    success: bool
    message: str
    change: Optional[AliasChange] = None


class AutolinkResponsePayload(BaseModel):
    text: str
    changed: bool
    links_added: int = 0


class SelectionResponsePayload(BaseModel):
    text: str
    replacement: str
    cursor: int


class NoteContentPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    note_id: str = Field(alias="note_id")
    content: str


# Request payloads

class AutolinkRequest(BaseModel):
    text: str


class SelectionAutolinkRequest(BaseModel):
    text: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)


class LinkSelectionRequest(BaseModel):
    selection: str


class AliasRequest(BaseModel):
    target: str
    alias: str


class EntryRequest(BaseModel):
    """Aliases arrive as the raw JSON array typed into the settings surface."""

    target: str
    aliases: str


class RemoveEntryRequest(BaseModel):
    target: str


class UpdateSettingsRequest(BaseModel):
    autoscan_check_interval: Optional[int] = None
    autoscan_active_document: Optional[bool] = None
    ignore_headers: Optional[bool] = None


class UpdateNoteRequest(BaseModel):
    content: str


class ActiveNoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    note_id: Optional[str] = Field(default=None, alias="note_id")
