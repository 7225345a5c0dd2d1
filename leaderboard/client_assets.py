"""
Serving of the web client bundle.

In development the client's ``index.html`` is re-read on every request and
its entry script gets a cache-busting query string, so the browser always
picks up the latest module graph from the bundler. In production the
prebuilt bundle is served from disk with an SPA fallback to ``index.html``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse

from leaderboard.config import Settings

logger = logging.getLogger(__name__)

ENTRY_SCRIPT = 'src="/src/main.tsx"'


def bust_entry_script(template: str, token: Optional[str] = None) -> str:
    token = token or uuid4().hex
    return template.replace(ENTRY_SCRIPT, f'src="/src/main.tsx?v={token}"')


def resolve_asset(root: Path, request_path: str) -> Optional[Path]:
    """Map a URL path onto a file under ``root``; None if absent or outside it."""
    relative = request_path.lstrip("/")
    if not relative:
        return None
    try:
        candidate = (root / relative).resolve()
        candidate.relative_to(root)
        is_file = candidate.is_file()
    except (OSError, ValueError):
        # Outside the root, or a path the OS rejects (e.g. embedded NUL).
        return None
    return candidate if is_file else None


def _reject_api_path(request_path: str, api_prefix: str) -> None:
    if request_path == api_prefix or request_path.startswith(api_prefix + "/"):
        raise HTTPException(status_code=404, detail="Not Found")


def setup_dev_assets(app: FastAPI, settings: Settings) -> None:
    client_root = Path(settings.client_dir).resolve()
    template_path = client_root / "index.html"
    router = APIRouter()

    @router.get("/{full_path:path}", include_in_schema=False)
    async def dev_client(full_path: str, request: Request):
        _reject_api_path(request.url.path, settings.api_prefix)
        asset = resolve_asset(client_root, full_path)
        if asset is not None:
            return FileResponse(asset)
        template = template_path.read_text(encoding="utf-8")
        return HTMLResponse(bust_entry_script(template), status_code=200)

    app.include_router(router)
    logger.info("Serving client template from %s", client_root)


def setup_static_assets(app: FastAPI, settings: Settings) -> None:
    dist_root = Path(settings.static_dir).resolve()
    if not dist_root.is_dir():
        raise RuntimeError(
            f"Could not find the build directory: {dist_root}, "
            "make sure to build the client first"
        )
    index_file = dist_root / "index.html"
    router = APIRouter()

    @router.get("/{full_path:path}", include_in_schema=False)
    async def static_client(full_path: str, request: Request):
        _reject_api_path(request.url.path, settings.api_prefix)
        asset = resolve_asset(dist_root, full_path)
        return FileResponse(asset or index_file)

    app.include_router(router)
    logger.info("Serving static client bundle from %s", dist_root)


def setup_client_assets(app: FastAPI, settings: Settings) -> None:
    if settings.is_development:
        setup_dev_assets(app, settings)
    else:
        setup_static_assets(app, settings)
