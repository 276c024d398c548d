#!/usr/bin/env python3
"""
Small CLI to inspect and call a running Bluum MCP server over HTTP.
Usage examples:
    python -m bluum_mcp.cli health
    python -m bluum_mcp.cli tools list
    python -m bluum_mcp.cli tools call list_accounts
    python -m bluum_mcp.cli tools call get_account --args '{"account_id": "..."}'
Environment:
  MCP_URL (default: http://localhost:${PORT or 8081})
  API_KEY (shared key, when the server requires one)
"""
import os
import sys
import json
import argparse
import itertools
from typing import Any, Dict, Optional

import httpx

_ids = itertools.count(1)


def _base_url() -> str:
    url = os.getenv("MCP_URL")
    if url:
        return url.rstrip("/")
    port = os.getenv("PORT", "8081")
    return f"http://localhost:{port}"


def _headers() -> Dict[str, str]:
    headers = {"content-type": "application/json"}
    key = os.getenv("API_KEY")
    if key:
        headers["x-api-key"] = key
    return headers


def _print(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _rpc(method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"jsonrpc": "2.0", "id": next(_ids), "method": method, "params": params or {}}
    with httpx.Client(timeout=60) as c:
        r = c.post(_base_url() + "/mcp", headers=_headers(), json=payload)
        r.raise_for_status()
        body = r.json()
    if "error" in body:
        err = body["error"]
        raise SystemExit(f"RPC error {err.get('code')}: {err.get('message')}")
    return body.get("result", {})


def cmd_health(args: argparse.Namespace) -> None:
    with httpx.Client(timeout=20) as c:
        r = c.get(_base_url() + "/health", headers=_headers())
        r.raise_for_status()
        _print(r.json())


def cmd_tools_list(args: argparse.Namespace) -> None:
    result = _rpc("tools/list")
    if args.names:
        for t in result.get("tools", []):
            print(t.get("name"))
        return
    _print(result)


def cmd_tools_call(args: argparse.Namespace) -> None:
    try:
        arguments = json.loads(args.args) if args.args else {}
    except ValueError as e:
        raise SystemExit(f"Invalid --args JSON: {e}")
    if not isinstance(arguments, dict):
        raise SystemExit("--args must be a JSON object")
    result = _rpc("tools/call", {"name": args.name, "arguments": arguments})
    for item in result.get("content", []):
        if item.get("type") == "text":
            print(item.get("text", ""))
    if result.get("isError"):
        raise SystemExit(1)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="bluum-mcp-cli", description="Bluum MCP Server CLI")
    sub = p.add_subparsers(dest="cmd")

    p_health = sub.add_parser("health", help="Server health")
    p_health.set_defaults(func=cmd_health)

    g_tools = sub.add_parser("tools", help="List or call tools")
    sub_tools = g_tools.add_subparsers(dest="action")

    p_list = sub_tools.add_parser("list", help="List tools (tools/list)")
    p_list.add_argument("--names", action="store_true", help="Print tool names only")
    p_list.set_defaults(func=cmd_tools_list)

    p_call = sub_tools.add_parser("call", help="Call a tool (tools/call)")
    p_call.add_argument("name")
    p_call.add_argument("--args", required=False, help="Tool arguments as a JSON object")
    p_call.set_defaults(func=cmd_tools_call)

    args = p.parse_args(argv)
    if not getattr(args, "func", None):
        p.print_help()
        return 1
    try:
        args.func(args)
        return 0
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code} {e.response.text}", file=sys.stderr)
        return 2
    except httpx.TransportError as e:
        print(f"Server not reachable at {_base_url()}: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
