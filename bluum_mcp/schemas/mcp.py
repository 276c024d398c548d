from __future__ import annotations
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000


class ToolDef(BaseModel):
    """One entry of tools/list: every Bluum tool carries a description and an object inputSchema."""
    name: str
    description: str
    inputSchema: Dict[str, Any]


class ManifestResponse(BaseModel):
    tools: List[ToolDef]


class JsonRpcRequest(BaseModel):
    jsonrpc: str = JSONRPC_VERSION
    method: str
    id: Optional[Any] = None
    params: Optional[Dict[str, Any]] = None


class RpcError(BaseModel):
    code: int
    message: str


def _response(id_val: Any, **member: Any) -> Dict[str, Any]:
    # exactly one of result/error; id stays present (null for parse/invalid-request errors)
    return {"jsonrpc": JSONRPC_VERSION, "id": id_val, **member}


def jsonrpc_ok(id_val: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return _response(id_val, result=result)


def jsonrpc_err(id_val: Any, code: int, message: str) -> Dict[str, Any]:
    return _response(id_val, error=RpcError(code=code, message=message).model_dump())
