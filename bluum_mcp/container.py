"""
Very small composition root that wires settings -> REST client -> tool dispatch.
Settings are loaded once at startup and passed explicitly to the client.
"""
from functools import lru_cache
from typing import Any, Dict

from bluum_mcp.adapter_bluum_rest import BluumRestClient
from bluum_mcp.config import BluumSettings, load_settings
from bluum_mcp.tools import dispatch


@lru_cache(maxsize=1)
def get_settings() -> BluumSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_client() -> BluumRestClient:
    return BluumRestClient(get_settings())


async def call_tool(name: str, arguments: Any) -> Dict[str, Any]:
    settings = get_settings()
    return await dispatch(name, arguments, get_client(), default_account_id=settings.default_account_id)


async def shutdown() -> None:
    if get_client.cache_info().currsize:
        await get_client().aclose()
        get_client.cache_clear()
