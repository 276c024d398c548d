 # main.py (MCP server entry)
 # - FastAPI-based MCP server: single JSON-RPC endpoint (/mcp) with initialize, tools/list, tools/call
 # - STDIO mode: newline-delimited JSON-RPC on stdin/stdout (logs go to stderr)
 # - Tool execution is handled in bluum_mcp.tools; this module only speaks the protocol

import sys
import json
import time
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TextIO

from fastapi import APIRouter, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from bluum_mcp import container
from bluum_mcp.adapter_bluum_rest import BluumRestClient
from bluum_mcp.config import BluumSettings, cfg, load_settings
from bluum_mcp.errors import ConfigError, UnknownToolError
from bluum_mcp.schemas.mcp import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    JsonRpcRequest,
    ManifestResponse,
    jsonrpc_err,
    jsonrpc_ok,
)
from bluum_mcp.tools import _list_tools, dispatch

logger = logging.getLogger("mcp")

CAPABILITIES = {
    "capabilities": {"tools": {"listChanged": False}},
    "protocolVersion": cfg.protocol_revision,
    "serverInfo": {"name": cfg.server_name, "version": cfg.server_version},
}

ToolCaller = Callable[[str, Dict[str, Any]], Awaitable[Dict[str, Any]]]


def setup_logging() -> None:
    # stderr only: stdout carries the STDIO protocol stream
    logging.basicConfig(level=getattr(logging, cfg.log_level.upper(), logging.INFO), stream=sys.stderr)


def _log_event(event: str, **fields: Any) -> None:
    logger.info(json.dumps({"event": event, **fields}, ensure_ascii=False, default=str))


async def handle_rpc(payload: Any, call_tool: ToolCaller) -> Optional[Dict[str, Any]]:
    """Process one decoded JSON-RPC message. Returns None for notifications."""
    if isinstance(payload, list):
        return jsonrpc_err(None, INVALID_REQUEST, "Batch not supported")
    try:
        req = JsonRpcRequest.model_validate(payload)
    except ValidationError:
        return jsonrpc_err(None, INVALID_REQUEST, "Invalid Request")
    if req.jsonrpc != JSONRPC_VERSION:
        return jsonrpc_err(req.id, INVALID_REQUEST, "Invalid jsonrpc version")

    method = req.method
    params = req.params or {}

    # notifications (no id), e.g. notifications/initialized
    if req.id is None:
        _log_event("notification", method=method)
        return None

    if method == "initialize":
        _log_event("rpc", id=req.id, method=method)
        return jsonrpc_ok(req.id, dict(CAPABILITIES))

    if method == "ping":
        return jsonrpc_ok(req.id, {})

    if method == "tools/list":
        tools, next_cursor = _list_tools(params.get("cursor"))
        result: Dict[str, Any] = {"tools": tools}
        if next_cursor is not None:
            result["nextCursor"] = next_cursor
        _log_event("rpc", id=req.id, method=method, count=len(tools))
        return jsonrpc_ok(req.id, result)

    if method == "tools/call":
        name = params.get("name")
        arguments = params.get("arguments") or {}
        if not name or not isinstance(name, str) or not isinstance(arguments, dict):
            _log_event("rpc.error", id=req.id, method=method, reason="invalid_params")
            return jsonrpc_err(req.id, INVALID_PARAMS, "Invalid params")
        t0 = time.time()
        try:
            result = await call_tool(name, arguments)
        except UnknownToolError as e:
            logger.error(f"tools/call for unregistered tool {name!r}")
            return jsonrpc_err(req.id, METHOD_NOT_FOUND, str(e))
        except Exception as e:
            logger.exception("server error on tools/call")
            return jsonrpc_err(req.id, SERVER_ERROR, f"Server error: {str(e)}")
        _log_event(
            "rpc", id=req.id, method=method, tool=name,
            is_error=result.get("isError", False), ms=int((time.time() - t0) * 1000),
        )
        return jsonrpc_ok(req.id, result)

    _log_event("rpc.error", id=req.id, method=method, reason="method_not_found")
    return jsonrpc_err(req.id, METHOD_NOT_FOUND, "Method not found")


# ---------------------------------------------------------------------
# HTTP (FastAPI)
# ---------------------------------------------------------------------
router = APIRouter()


def _get_provided_key(request: Request, x_api_key: Optional[str], authorization: Optional[str]) -> Optional[str]:
    if x_api_key:
        return x_api_key
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    return request.query_params.get("x-api-key")


def require_api_key(request: Request, x_api_key: Optional[str], authorization: Optional[str]) -> None:
    expected = request.app.state.api_key
    if not expected:
        return
    if _get_provided_key(request, x_api_key, authorization) != expected:
        raise HTTPException(status_code=401, detail="Invalid or missing API Key")


def _app_caller(request: Request) -> ToolCaller:
    state = request.app.state

    async def call(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return await dispatch(name, arguments, state.client, default_account_id=state.settings.default_account_id)
    return call


@router.get("/health")
def health(request: Request, x_api_key: Optional[str] = Header(None), authorization: Optional[str] = Header(None)):
    require_api_key(request, x_api_key, authorization)
    settings: BluumSettings = request.app.state.settings
    return {
        "status": "ok",
        "server": CAPABILITIES["serverInfo"],
        "protocolVersion": CAPABILITIES["protocolVersion"],
        "environment": settings.environment,
        "baseUrl": request.app.state.client.base_url,
    }


@router.get("/mcp/capabilities")
def mcp_capabilities():
    return CAPABILITIES


@router.get("/mcp/manifest", response_model=ManifestResponse)
def mcp_manifest(request: Request, x_api_key: Optional[str] = Header(None), authorization: Optional[str] = Header(None)):
    require_api_key(request, x_api_key, authorization)
    tools, _ = _list_tools(None)
    return {"tools": tools}


@router.post("/mcp")
async def mcp_entry(request: Request, x_api_key: Optional[str] = Header(None), authorization: Optional[str] = Header(None)):
    require_api_key(request, x_api_key, authorization)
    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(jsonrpc_err(None, PARSE_ERROR, "Parse error"))
    resp = await handle_rpc(payload, _app_caller(request))
    if resp is None:
        # some clients warn on 204; return empty JSON 200 to be lenient
        return JSONResponse({})
    return JSONResponse(resp)


def create_app(
    *,
    settings: Optional[BluumSettings] = None,
    client: Optional[BluumRestClient] = None,
    api_key: Optional[str] = cfg.api_key,
) -> FastAPI:
    """Build the HTTP app. Settings are loaded at startup; ConfigError aborts startup."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        s = settings or load_settings()
        c = client or BluumRestClient(s)
        app.state.settings = s
        app.state.client = c
        logger.info(f"Configuration loaded (environment: {s.environment}, base_url: {c.base_url})")
        try:
            yield
        finally:
            if client is None:
                await c.aclose()

    app = FastAPI(title=cfg.server_name, version=cfg.server_version, lifespan=lifespan)
    app.state.api_key = api_key
    app.include_router(router)
    return app


app = create_app()


# ---------------------------------------------------------------------
# STDIO mode
# ---------------------------------------------------------------------
async def serve_stdio(stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
    """Read newline-delimited requests until EOF; each request runs as its own task."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    loop = asyncio.get_running_loop()
    pending: Set["asyncio.Task[None]"] = set()

    def write(resp: Dict[str, Any]) -> None:
        # no await between write and flush, so responses never interleave
        stdout.write(json.dumps(resp, ensure_ascii=False) + "\n")
        stdout.flush()

    async def respond(payload: Any) -> None:
        resp = await handle_rpc(payload, container.call_tool)
        if resp is not None:
            write(resp)

    try:
        while True:
            line = await loop.run_in_executor(None, stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except ValueError:
                write(jsonrpc_err(None, PARSE_ERROR, "Parse error"))
                continue
            task = asyncio.create_task(respond(payload))
            pending.add(task)
            task.add_done_callback(pending.discard)
        if pending:
            await asyncio.gather(*pending)
    finally:
        await container.shutdown()


def main() -> None:
    setup_logging()
    logger.info(f"Starting {cfg.server_name}...")
    try:
        settings = container.get_settings()
    except ConfigError as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)
    logger.info(f"Configuration loaded successfully (environment: {settings.environment})")
    logger.info(f"[MCP STDIO mode] {len(_list_tools(None)[0])} tools registered; waiting for JSON-RPC requests on stdin")
    asyncio.run(serve_stdio())


if __name__ == "__main__":
    main()
