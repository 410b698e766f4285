"""
Compile REST routes.

All routes are mounted under /api by main.py.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from flust.compiler import generate
from flust.core.errors import FlustError, GenerationError, ParseError
from flust.core.parser import flow_from_dict
from flust.compiler.templates import registered_plugin_types

logger = logging.getLogger(__name__)

router = APIRouter()


class CompileResponse(BaseModel):
    code: str


class ErrorResponse(BaseModel):
    error: str
    kind: str
    details: Dict[str, Any] = {}


class PluginsResponse(BaseModel):
    plugins: List[str]


def _error_response(exc: FlustError, status_code: int) -> JSONResponse:
    body = ErrorResponse(error=str(exc), kind=exc.kind, details=exc.details())
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ── GET /plugins ──────────────────────────────────────────────────────────────

@router.get("/plugins", response_model=PluginsResponse)
async def list_plugins() -> PluginsResponse:
    return PluginsResponse(plugins=registered_plugin_types())


# ── POST /compile ─────────────────────────────────────────────────────────────

@router.post(
    "/compile",
    response_model=CompileResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def compile_flow(request: Request, flow: Optional[Any] = Body(None)) -> Any:
    strict = request.app.state.settings.strict
    try:
        parsed = flow_from_dict(flow, strict=strict)
    except ParseError as exc:
        logger.info(f"Rejected flow document: {exc}")
        return _error_response(exc, 422)

    logger.info(f"Compile request: {len(parsed.nodes)} nodes, {len(parsed.connections)} connections")
    for node in parsed.nodes:
        logger.debug(f"  node {node.id}: type={node.plugin_type} parent={node.parent_id}")

    try:
        code = generate(parsed)
    except GenerationError as exc:
        logger.warning(f"Compilation failed: {exc.kind}: {exc}")
        return _error_response(exc, 400)

    return CompileResponse(code=code)
