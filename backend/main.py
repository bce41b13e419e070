"""FastAPI entrypoint for the autolinker backend."""

from __future__ import annotations

import asyncio
import traceback
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app_state import AutolinkerAppState
from autoscan import AutoscanLoop
from config import configure_logging, load_config
from glossary import GlossaryInputError
from models import (
    ActiveNoteRequest,
    AliasRequest,
    AutolinkRequest,
    AutolinkResponsePayload,
    CommandResponsePayload,
    CommandResult,
    EntryRequest,
    GlossaryEntryPayload,
    GlossaryResponsePayload,
    LinkSelectionRequest,
    NoteContentPayload,
    RemoveEntryRequest,
    SelectionAutolinkRequest,
    SelectionResponsePayload,
    SettingsPayload,
    UpdateNoteRequest,
    UpdateSettingsRequest,
)
from rewriter import count_links

config = load_config()
configure_logging(config.log_level)
state = AutolinkerAppState(config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    loop = AutoscanLoop(tick=lambda: state.autoscan_tick(), interval=lambda: state.check_interval())
    loop.start()
    try:
        yield
    finally:
        await loop.stop()


app = FastAPI(title="Autolinker Backend", description="Glossary-driven note autolinking API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _command_payload(result: CommandResult) -> CommandResponsePayload:
    return CommandResponsePayload(success=result.success, message=result.message, change=result.change)


def _settings_payload(settings) -> SettingsPayload:
    return SettingsPayload(
        autoscan_check_interval=settings.autoscan_check_interval,
        autoscan_active_document=settings.autoscan_active_document,
        ignore_headers=settings.ignore_headers,
    )


async def _run_locked(fn, *args):
    """Run ``fn`` on a worker thread while holding the shared state lock."""

    def run():
        with state.lock:
            return fn(*args)

    return await asyncio.to_thread(run)


@app.get("/", tags=["health"])
async def root():
    return {"status": "ok", "message": "Autolinker backend is running"}


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "message": "Autolinker backend is running"}


# ---------------------------------------------------------------------------
# Autolinking
# ---------------------------------------------------------------------------


@app.post("/autolink", response_model=AutolinkResponsePayload, tags=["autolink"])
async def autolink(request: AutolinkRequest):
    try:
        text = await _run_locked(lambda: state.current().scan_full(request.text))
        return AutolinkResponsePayload(
            text=text,
            changed=text != request.text,
            links_added=count_links(text) - count_links(request.text),
        )
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/autolink/selection", response_model=SelectionResponsePayload, tags=["autolink"])
async def autolink_selection(request: SelectionAutolinkRequest):
    try:
        result = await _run_locked(
            lambda: state.current().autolink_selection(request.text, request.start, request.end)
        )
        return SelectionResponsePayload(text=result.document, replacement=result.replacement, cursor=result.cursor)
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/notes/{note_id:path}/autolink", response_model=NoteContentPayload, tags=["autolink"])
async def autolink_note(note_id: str):
    try:
        record = await _run_locked(lambda: state.current().autolink_note(note_id))
        return NoteContentPayload(note_id=record.id, content=record.content)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


@app.get("/notes", tags=["notes"])
async def notes():
    try:
        return {"notes": await asyncio.to_thread(state.current().notes.list_notes)}
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.get("/note/{note_id:path}", response_model=NoteContentPayload, tags=["notes"])
async def get_note(note_id: str):
    try:
        record = await asyncio.to_thread(state.current().notes.get_note, note_id)
        return NoteContentPayload(note_id=record.id, content=record.content)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.put("/note/{note_id:path}", response_model=NoteContentPayload, tags=["notes"])
async def update_note(note_id: str, request: UpdateNoteRequest):
    try:
        record = await _run_locked(lambda: state.current().notes.save_note(note_id, request.content))
        return NoteContentPayload(note_id=record.id, content=record.content)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/active-note", tags=["notes"])
async def active_note(request: ActiveNoteRequest):
    await _run_locked(state.set_active_note, request.note_id)
    return {"success": True, "note_id": request.note_id or None}


# ---------------------------------------------------------------------------
# Glossary
# ---------------------------------------------------------------------------


@app.post("/glossary/selection/add", response_model=CommandResponsePayload, tags=["glossary"])
async def add_from_selection(request: LinkSelectionRequest):
    try:
        result = await _run_locked(lambda: state.current().add_from_selection(request.selection))
        return _command_payload(result)
    except GlossaryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/glossary/selection/remove", response_model=CommandResponsePayload, tags=["glossary"])
async def remove_from_selection(request: LinkSelectionRequest):
    try:
        result = await _run_locked(lambda: state.current().remove_from_selection(request.selection))
        return _command_payload(result)
    except GlossaryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/glossary/aliases", response_model=CommandResponsePayload, tags=["glossary"])
async def add_alias(request: AliasRequest):
    try:
        result = await _run_locked(lambda: state.current().add_alias(request.target, request.alias))
        return _command_payload(result)
    except GlossaryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.delete("/glossary/aliases", response_model=CommandResponsePayload, tags=["glossary"])
async def remove_alias(request: AliasRequest):
    try:
        result = await _run_locked(lambda: state.current().remove_alias(request.target, request.alias))
        return _command_payload(result)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.get("/glossary", response_model=GlossaryResponsePayload, tags=["glossary"])
async def glossary(search: str = ""):
    def run():
        index = state.current().glossary
        matches = index.search(search)
        return GlossaryResponsePayload(
            total=len(index.entries),
            entries=[GlossaryEntryPayload(target=e.target, aliases=list(e.aliases)) for e in matches],
        )

    return await _run_locked(run)


@app.post("/glossary/entries", response_model=GlossaryEntryPayload, tags=["glossary"])
async def add_entry(request: EntryRequest):
    try:
        entry = await _run_locked(lambda: state.current().glossary.add_entry(request.target, request.aliases))
        return GlossaryEntryPayload(target=entry.target, aliases=list(entry.aliases))
    except GlossaryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.put("/glossary/entries", tags=["glossary"])
async def replace_entry(request: EntryRequest):
    try:
        entry = await _run_locked(
            lambda: state.current().glossary.replace_aliases(request.target, request.aliases)
        )
        if entry is None:
            return {"success": True, "removed": True, "target": request.target}
        return {"success": True, "removed": False, "target": entry.target, "aliases": list(entry.aliases)}
    except GlossaryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except KeyError:
        raise HTTPException(status_code=404, detail="Link not found")
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.delete("/glossary/entries", tags=["glossary"])
async def remove_entry(request: RemoveEntryRequest):
    try:
        await _run_locked(lambda: state.current().glossary.remove_entry(request.target))
        return {"success": True, "target": request.target}
    except KeyError:
        raise HTTPException(status_code=404, detail="Link not found")
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@app.get("/settings", response_model=SettingsPayload, tags=["settings"])
async def get_settings():
    return _settings_payload(state.current().settings)


@app.put("/settings", response_model=SettingsPayload, tags=["settings"])
async def update_settings(request: UpdateSettingsRequest):
    try:
        settings = await _run_locked(
            lambda: state.current().update_settings(
                autoscan_check_interval=request.autoscan_check_interval,
                autoscan_active_document=request.autoscan_active_document,
                ignore_headers=request.ignore_headers,
            )
        )
        return _settings_payload(settings)
    except GlossaryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


if __name__ == "__main__":
    uvicorn.run(app, host=config.host, port=config.port)
