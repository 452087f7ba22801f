"""Lyrical Vision — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application holds exactly one in-memory
:class:`~lyricalvision.core.session.StoryboardSession`:

- **Configuration** comes from ``LYRICALVISION_*`` environment variables and
  the versioned catalog served to the frontend via ``GET /api/config``.
- **Generation** is started in the background by the session's orchestrator;
  the generate routes return ``202`` immediately and the frontend polls the
  stanza list for results.
- **Nothing is persisted**; restarting the server starts a new project.

Endpoints
---------
========  ================================  ==================================
Method    Path                              Purpose
========  ================================  ==================================
GET       ``/api/config``                   Version and catalog
GET       ``/api/settings``                 Current shared settings
PUT       ``/api/settings``                 Update shared settings
POST      ``/api/lyrics``                   Segment lyrics into stanzas
GET       ``/api/stanzas``                  List stanzas
GET       ``/api/stanzas/{id}``             Single stanza
DELETE    ``/api/stanzas/{id}``             Delete a stanza
POST      ``/api/stanzas/{id}/generate``    Generate one stanza image
POST      ``/api/stanzas/generate``         Generate every stanza lacking one
POST      ``/api/reset``                    Start a new project
GET       ``/api/references``               List reference images
POST      ``/api/references``               Upload reference images
DELETE    ``/api/references/{id}``          Remove a reference image
GET       ``/api/key``                      Key gate state
POST      ``/api/key/select``               Start key selection
POST      ``/api/key``                      Provide an API key
========  ================================  ==================================

Usage
-----
CLI (installed entry point)::

    lyricalvision

Direct invocation::

    python -m lyricalvision.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from lyricalvision import __version__
from lyricalvision.api.models import ApiKeyRequest, LyricsRequest, SettingsUpdate
from lyricalvision.core.config import config
from lyricalvision.core.key_gate import SessionKeyHost
from lyricalvision.core.references import ReferenceUpload
from lyricalvision.core.session import SettingsError, StoryboardSession

logger = logging.getLogger(__name__)


def create_session() -> StoryboardSession:
    """Build the application's session from the global configuration."""
    return StoryboardSession.from_config(config)


# ---------------------------------------------------------------------------
# Application lifecycle: session setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the session on startup and drain generation tasks on shutdown.

    On startup the key gate probes its host once, so a key supplied through
    ``LYRICALVISION_API_KEY`` opens the gate immediately.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    session = create_session()
    await session.startup()
    app.state.session = session
    logger.info("Storyboard session ready.")

    yield

    pending = session.orchestrator.pending_tasks
    if pending:
        logger.info(f"Waiting for {len(pending)} generation task(s) before shutdown.")
        await session.orchestrator.wait_idle()


app = FastAPI(
    title="Lyrical Vision",
    description="Storyboard image generation for song lyrics, one image per stanza.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so the frontend can be served from a different
# port during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _session() -> StoryboardSession:
    return app.state.session


def _require_stanza(session: StoryboardSession, stanza_id: str):
    stanza = session.store.get(stanza_id)
    if stanza is None:
        raise HTTPException(status_code=404, detail="Stanza not found")
    return stanza


def _key_state(session: StoryboardSession) -> dict:
    host = session.key_host
    return {
        "status": session.gate.status.value,
        "has_selected_key": session.gate.has_selected_key,
        "requires_gate": session.requires_gate,
        "selection_pending": getattr(host, "selection_pending", False),
    }


# ---------------------------------------------------------------------------
# Configuration and settings routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config() -> dict:
    """Return the version and the full catalog for the frontend.

    Returns:
        Dictionary with ``version``, ``schema_version``, ``models``,
        ``aspect_ratios``, ``image_sizes``, ``styles`` and
        ``max_reference_images``.
    """
    session = _session()
    catalog = session.catalog.model_dump()
    return {
        "version": __version__,
        **catalog,
        "max_reference_images": session.references.max_images,
    }


@app.get("/api/settings")
async def get_settings() -> dict:
    """Return the current shared generation settings."""
    return asdict(_session().settings)


@app.put("/api/settings")
async def update_settings(req: SettingsUpdate) -> dict:
    """Apply a partial settings update.

    Raises:
        HTTPException: 400 if a value is not in the catalog.
    """
    try:
        settings = _session().update_settings(**req.model_dump(exclude_none=True))
    except SettingsError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return asdict(settings)


# ---------------------------------------------------------------------------
# Stanza routes.
# ---------------------------------------------------------------------------


@app.post("/api/lyrics")
async def load_lyrics(req: LyricsRequest) -> dict:
    """Segment lyrics and replace the stanza collection.

    Raises:
        HTTPException: 400 if the lyrics contain no stanza.
    """
    stanzas = _session().load_lyrics(req.lyrics)
    if not stanzas:
        raise HTTPException(status_code=400, detail="Lyrics are empty")
    return {"count": len(stanzas), "stanzas": [asdict(s) for s in stanzas]}


@app.get("/api/stanzas")
async def list_stanzas() -> dict:
    stanzas = _session().store.all()
    return {"count": len(stanzas), "stanzas": [asdict(s) for s in stanzas]}


@app.get("/api/stanzas/{stanza_id}")
async def get_stanza(stanza_id: str) -> dict:
    return asdict(_require_stanza(_session(), stanza_id))


@app.delete("/api/stanzas/{stanza_id}")
async def delete_stanza(stanza_id: str) -> dict:
    """Delete a stanza.  A request still in flight for it is left running
    and its result discarded.

    Raises:
        HTTPException: 404 if the stanza is not found.
    """
    if not _session().delete_stanza(stanza_id):
        raise HTTPException(status_code=404, detail="Stanza not found")
    return {"success": True, "deleted": stanza_id}


@app.post("/api/stanzas/generate", status_code=202)
async def generate_all(wait: bool = False) -> dict:
    """Schedule generation for every stanza without an image.

    Args:
        wait: If ``True``, respond only after every scheduled task finished.
    """
    session = _session()
    tasks = session.generate_all()
    if wait:
        for task in tasks:
            await task
    return {"scheduled": len(tasks), "key": _key_state(session)}


@app.post("/api/stanzas/{stanza_id}/generate", status_code=202)
async def generate_stanza(stanza_id: str, wait: bool = False) -> dict:
    """Schedule generation for one stanza.

    When the selected model needs a key that has not been selected, the
    stanza is left untouched and the response's ``key`` block shows a
    pending selection instead.

    Args:
        stanza_id: Id of the stanza to visualize.
        wait: If ``True``, respond only after the generation finished.

    Raises:
        HTTPException: 404 if the stanza is not found.
    """
    session = _session()
    _require_stanza(session, stanza_id)
    task = session.generate(stanza_id)
    if wait:
        await task
    stanza = session.store.get(stanza_id)
    return {
        "stanza": asdict(stanza) if stanza is not None else None,
        "key": _key_state(session),
    }


@app.post("/api/reset")
async def reset_project() -> dict:
    """Start a new project: clear stanzas, references and free-form text."""
    _session().reset()
    return {"success": True}


# ---------------------------------------------------------------------------
# Reference image routes.
# ---------------------------------------------------------------------------


@app.get("/api/references")
async def list_references() -> dict:
    session = _session()
    return {
        "max": session.references.max_images,
        "references": [asdict(r) for r in session.references.images],
    }


@app.post("/api/references")
async def upload_references(files: list[UploadFile] = File(...)) -> dict:
    """Add uploaded files as reference images.

    Files beyond the cap are dropped.  Files that are not images are listed
    in ``rejected``.
    """
    session = _session()
    uploads = [
        ReferenceUpload(data=await f.read(), mime_type=f.content_type, filename=f.filename or "")
        for f in files
    ]
    result = await session.references.add_files(uploads)
    return {
        "added": [r.id for r in result.added],
        "rejected": result.rejected,
        "references": [asdict(r) for r in session.references.images],
    }


@app.delete("/api/references/{reference_id}")
async def delete_reference(reference_id: str) -> dict:
    """Remove a reference image.

    Raises:
        HTTPException: 404 if the reference is not found.
    """
    if not _session().references.remove(reference_id):
        raise HTTPException(status_code=404, detail="Reference image not found")
    return {"success": True, "deleted": reference_id}


# ---------------------------------------------------------------------------
# Key gate routes.
# ---------------------------------------------------------------------------


@app.get("/api/key")
async def get_key_state() -> dict:
    return _key_state(_session())


@app.post("/api/key/select")
async def select_key() -> dict:
    """Run the key gate's selection flow."""
    session = _session()
    await session.gate.select_key()
    return _key_state(session)


@app.post("/api/key")
async def provide_key(req: ApiKeyRequest) -> dict:
    """Install an API key into the session key host.

    Raises:
        HTTPException: 400 if the session's key host does not accept keys.
    """
    session = _session()
    if not isinstance(session.key_host, SessionKeyHost):
        raise HTTPException(status_code=400, detail="Key host does not accept keys")
    session.key_host.provide_key(req.api_key)
    await session.gate.refresh()
    return _key_state(session)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from
    :data:`~lyricalvision.core.config.config`.  Registered as the
    ``lyricalvision`` console script in ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "lyricalvision.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
