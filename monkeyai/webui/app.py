"""
Monkey AI static web server

Serves index.html and its assets from a web root with permissive CORS
headers, plus a read-only readiness endpoint for the page.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response

from monkeyai.providers.readiness import ManualReadinessChecker, ReadinessChecker

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".ico": "image/x-icon",
}
DEFAULT_CONTENT_TYPE = "text/plain"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


def resolve_web_path(web_root: Path, request_path: str) -> Optional[Path]:
    """
    Map a request path to a file under web_root

    Returns None when the path escapes the web root.
    """
    relative = request_path.lstrip("/") or "index.html"
    root = web_root.resolve()
    candidate = (root / relative).resolve()
    try:
        candidate.relative_to(root)
    except ValueError:
        return None
    return candidate


def create_app(web_root: Path, checker: Optional[ReadinessChecker] = None) -> FastAPI:
    """
    Create the static web app

    Args:
        web_root: Directory holding index.html and assets
        checker: Readiness checker for /api/readiness (read-only by default)
    """
    web_root = Path(web_root)
    checker = checker or ManualReadinessChecker()

    app = FastAPI(title="Monkey AI", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.web_root = web_root
    app.state.checker = checker

    @app.get("/api/readiness")
    async def readiness():
        running = await checker.is_running()
        return JSONResponse(
            {"running": running, "instructions": None if running else checker.instructions()},
            headers=CORS_HEADERS,
        )

    @app.get("/{request_path:path}")
    async def serve_file(request_path: str):
        file_path = resolve_web_path(web_root, request_path)
        if file_path is None or not file_path.is_file():
            return Response("404 Not Found", status_code=404, media_type="text/plain")

        try:
            content = file_path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read {file_path}: {e}")
            return Response("500 Internal Server Error", status_code=500, media_type="text/plain")

        return Response(content, media_type=content_type_for(file_path), headers=CORS_HEADERS)

    return app
