"""Proxy endpoint: every non-control request goes through the engine.

The host application points its HTTP traffic at the daemon. Requests are
rewritten onto the configured application origin (or onto the absolute URL
in ``X-Offline-Target`` for cross-origin requests), handled by the engine,
and answered with the engine's response plus an ``X-Offline-Source`` header.
"""

import logging
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import Response
from fastapi.responses import JSONResponse

from offline_library.config import EngineSettings
from offline_library.engine import OfflineEngine
from offline_library.errors import QueueFullError
from offline_library.errors import TransportUnreachableError
from offline_library.models import FetchResult
from offline_library.models import InterceptedRequest
from offline_library.models import RequestMode

from ..dependencies import get_engine
from ..dependencies import get_settings
from ..models import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["proxy"])

TARGET_HEADER = "x-offline-target"
SOURCE_HEADER = "X-Offline-Source"
METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _request_mode(request: Request) -> RequestMode:
    fetch_mode = request.headers.get("sec-fetch-mode")
    if fetch_mode:
        try:
            return RequestMode(fetch_mode)
        except ValueError:
            return RequestMode.CORS
    if request.method == "GET" and "text/html" in request.headers.get("accept", ""):
        return RequestMode.NAVIGATE
    return RequestMode.CORS


def _target_url(request: Request, path: str, settings: EngineSettings) -> str:
    target = request.headers.get(TARGET_HEADER)
    if target:
        return target
    url = f"{settings.app_origin}/{path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def _to_response(result: FetchResult) -> Response:
    headers = dict(result.snapshot.headers)
    headers[SOURCE_HEADER] = result.source.value
    return Response(content=result.snapshot.body, status_code=result.snapshot.status, headers=headers)


@router.api_route("/{path:path}", methods=METHODS, include_in_schema=False)
async def proxy(
    path: str,
    request: Request,
    engine: Annotated[OfflineEngine, Depends(get_engine)],
    settings: Annotated[EngineSettings, Depends(get_settings)],
) -> Response:
    """Serve a host request through the offline engine.

    Returns:
        Engine response (network, cache, offline fallback or queued)
        - 502 if a passthrough request found no network
        - 507 if a write could not be queued because the queue is full
    """
    headers = {name: value for name, value in request.headers.items() if name != TARGET_HEADER}
    try:
        intercepted = InterceptedRequest(
            method=request.method,
            url=_target_url(request, path, settings),
            headers=headers,
            body=await request.body(),
            mode=_request_mode(request),
        )
    except ValueError as exc:
        return JSONResponse(status_code=400, content=ErrorResponse(error="Bad request", detail=str(exc)).model_dump())

    try:
        result = await engine.handle_fetch(intercepted)
    except TransportUnreachableError as exc:
        return JSONResponse(
            status_code=502,
            content=ErrorResponse(error="Network unreachable", detail=exc.reason).model_dump(),
            headers={SOURCE_HEADER: "offline"},
        )
    except QueueFullError as exc:
        return JSONResponse(status_code=507, content=ErrorResponse(error="Write queue full", detail=str(exc)).model_dump())
    except Exception as exc:
        logger.error(f"Failed to handle {request.method} {intercepted.url}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content=ErrorResponse(error="Internal server error").model_dump())

    return _to_response(result)
