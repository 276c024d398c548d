# adapter_bluum_rest.py
# - Bluum Finance API integration adapter (transport for RequestDescriptor)
# - Basic auth from the API key/secret pair, base URL from BluumSettings
# - Standardized error handling: upstream errors and any httpx.RequestError -> BluumAPIError
# - No retries: every call is at-most-once

import base64
import logging
import time
from typing import Any, Dict, Optional

import httpx

from bluum_mcp.config import BluumSettings, cfg, get_base_url
from bluum_mcp.errors import BluumAPIError
from bluum_mcp.request_mapper import RequestDescriptor

logger = logging.getLogger("bluum.rest")


def _headers(settings: BluumSettings) -> Dict[str, str]:
    """Return headers for Bluum API call"""
    raw = f"{settings.api_key}:{settings.api_secret}".encode("utf-8")
    return {
        "Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}",
        "Content-Type": "application/json",
    }


def _api_error(r: httpx.Response) -> BluumAPIError:
    try:
        err = r.json()
    except ValueError:
        err = None
    code: Any = None
    msg: Optional[str] = None
    if isinstance(err, dict):
        code = err.get("code")
        msg = err.get("message")
    code = code or r.status_code
    msg = msg or r.reason_phrase or f"Request failed with status code {r.status_code}"
    return BluumAPIError("api", f"Bluum API Error {code}: {msg}", status=r.status_code, code=str(code))


class BluumRestClient:
    """Executes RequestDescriptors against the Bluum API"""
    def __init__(
        self,
        settings: BluumSettings,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = get_base_url(settings)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=_headers(settings),
            timeout=cfg.http_timeout if timeout is None else timeout,
            transport=transport,
        )

    async def execute(self, req: RequestDescriptor) -> Any:
        t0 = time.time()
        try:
            r = await self._client.request(req.method, req.path, params=req.query or None, json=req.body)
        except httpx.RequestError as e:
            logger.debug(f"{req.method} {req.path} failed: {e.__class__.__name__}")
            raise BluumAPIError("network", f"Network error: {str(e) or e.__class__.__name__}") from e

        logger.debug(f"{req.method} {req.path} status={r.status_code} ms={int((time.time() - t0) * 1000)}")
        if r.status_code >= 300:
            raise _api_error(r)
        if not r.content:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise BluumAPIError(
                "api", f"Bluum API Error {r.status_code}: response is not valid JSON", status=r.status_code
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BluumRestClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
