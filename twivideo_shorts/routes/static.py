"""Static file serving for the front-end."""
import mimetypes
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, PlainTextResponse, Response

from ..dependencies import get_static_root
from ..utils.logger import logger

router = APIRouter(tags=["static"])

mimetypes.add_type("application/manifest+json", ".webmanifest")
mimetypes.add_type("application/javascript", ".js")


class PathTraversalError(ValueError):
    """Requested path resolves outside the document root."""


def resolve_static_path(root: Path, request_path: str) -> Path:
    """Map a request path onto a file under the document root.

    Args:
        root: Document root
        request_path: URL path without the leading slash

    Returns:
        Absolute path under root

    Raises:
        PathTraversalError: If the path escapes root
    """
    root = root.resolve()
    relative = request_path.strip("/") or "index.html"
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        raise PathTraversalError(request_path)
    return candidate


@router.get("/{file_path:path}", include_in_schema=False)
async def serve_static(
    file_path: str,
    root: Path = Depends(get_static_root),
) -> Response:
    """Serve a file from the document root."""
    try:
        path = resolve_static_path(root, file_path)
    except PathTraversalError:
        logger.warning(f"[Static] Path traversal attempt: {file_path!r}")
        return PlainTextResponse("Forbidden", status_code=403)

    if not path.is_file():
        return PlainTextResponse("Not Found", status_code=404)

    cache_control = "no-cache" if path.suffix == ".html" else "public, max-age=86400"
    return FileResponse(path, headers={"Cache-Control": cache_control})
