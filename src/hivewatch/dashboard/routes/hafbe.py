"""HAFBE pass-through endpoints.

Query parameters are forwarded unchanged and upstream error statuses are
mirrored, so the browser sees HAFBE's own paging and error semantics.
"""

from __future__ import annotations

import httpx
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from hivewatch.exceptions import UpstreamError

log = structlog.get_logger(__name__)

router = APIRouter()


async def _forward(request: Request, path: str) -> JSONResponse:
    hafbe_client = request.app.state.hafbe
    params = dict(request.query_params)
    try:
        data = await hafbe_client.forward(path, params)
    except UpstreamError as e:
        return JSONResponse(
            content={"error": f"HAFBE API error: {e.status}"}, status_code=e.status
        )
    except (httpx.HTTPError, ValueError) as e:
        log.error("hafbe_proxy_failed", path=path, error=str(e))
        return JSONResponse(content={"error": "HAFBE API unreachable"}, status_code=502)
    return JSONResponse(content=data)


@router.get("/witnesses/{name}/voters")
async def get_witness_voters(request: Request, name: str) -> JSONResponse:
    """Voters of a witness (page, page-size, sort, direction)."""
    return await _forward(request, f"/witnesses/{name}/voters")


@router.get("/witnesses/{name}/votes/history")
async def get_witness_votes_history(request: Request, name: str) -> JSONResponse:
    """Vote history of a witness (page, page-size, voter-name)."""
    return await _forward(request, f"/witnesses/{name}/votes/history")


@router.get("/accounts/{name}/proxy-power")
async def get_proxy_power(request: Request, name: str) -> JSONResponse:
    return await _forward(request, f"/accounts/{name}/proxy-power")
