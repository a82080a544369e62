"""Webhook routes for triggering workflows."""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from ..core.dependencies import get_trigger_registry
from ..engine.types import WebhookRequest
from ..services.trigger_registry import TriggerRegistry

router = APIRouter()


# Type alias for dependency injection
TriggerRegistryDep = Annotated[TriggerRegistry, Depends(get_trigger_registry)]


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


@router.api_route("/webhook/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def handle_webhook(path: str, request: Request, registry: TriggerRegistryDep) -> Response:
    """Dispatch an inbound request to the matching webhook trigger."""
    webhook_request = WebhookRequest(
        method=request.method,
        path=f"/{path}",
        headers=dict(request.headers),
        query=dict(request.query_params),
        body=await _read_body(request),
        base_url=f"{str(request.base_url).rstrip('/')}/webhook",
    )

    result = await registry.handle_webhook(webhook_request.path, webhook_request)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No webhook registered for /{path}")

    if not result.triggered:
        status_code = result.response.status_code if result.response else 500
        return JSONResponse(status_code=status_code, content={"error": result.error})

    # Deferred response: the caller polls the execution for its output
    if result.response is None:
        if result.execution_id is None:
            return JSONResponse(
                status_code=503,
                content={"error": "Webhook fired but no workflow run was started"},
            )
        return JSONResponse(status_code=202, content={"executionId": result.execution_id})

    if result.response.body is None:
        return Response(status_code=result.response.status_code)
    return JSONResponse(status_code=result.response.status_code, content=result.response.body)
