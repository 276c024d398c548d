import os
import re
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bluum_mcp.errors import ConfigError
from bluum_mcp.schemas.tools import UUID_PATTERN

# Load .env if present (host/dev convenience; MCP clients usually inject env)
load_dotenv()

logger = logging.getLogger("config")

PRODUCTION_BASE_URL = "https://api.bluum.finance/v1"
SANDBOX_BASE_URL = "https://sandbox.api.bluum.finance/v1"

_UUID_RE = re.compile(UUID_PATTERN)


@dataclass
class Config:
    # server
    server_name: str = os.getenv("SERVER_NAME", "Bluum Finance MCP Server")
    server_version: str = os.getenv("SERVER_VERSION", "1.0.0")
    protocol_revision: str = os.getenv("MCP_PROTOCOL_REV", "2025-06-18")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    port: int = int(os.getenv("PORT", "8081"))
    api_key: str | None = os.getenv("API_KEY")

    # http/client
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "30"))

    # bluum credentials file
    bluum_config_path: str = os.getenv("BLUUM_CONFIG_PATH") or os.path.join(os.getcwd(), "config", "bluum.config.json")


cfg = Config()


class BluumSettings(BaseModel):
    """Credentials and endpoint selection for the Bluum API"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    api_key: str = Field(alias="apiKey", min_length=1)
    api_secret: str = Field(alias="apiSecret", min_length=1)
    environment: Literal["sandbox", "production"] = "sandbox"
    base_url: Optional[str] = Field(default=None, alias="baseUrl")
    default_account_id: Optional[str] = Field(default=None, alias="defaultAccountId")

    @field_validator("api_key")
    @classmethod
    def key_present(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("API key is required")
        return v

    @field_validator("api_secret")
    @classmethod
    def secret_present(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("API secret is required")
        return v

    @field_validator("base_url")
    @classmethod
    def valid_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        u = urlparse(v)
        if u.scheme not in ("http", "https") or not u.netloc:
            raise ValueError("Invalid url")
        return v.rstrip("/")

    @field_validator("default_account_id")
    @classmethod
    def valid_uuid(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _UUID_RE.fullmatch(v):
            raise ValueError("Invalid uuid")
        return v


def _read_config_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"could not load config from {path} ({e.__class__.__name__}), falling back to environment variables")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"config file {path} is not a JSON object, ignoring it")
        return {}
    return data


def load_settings(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> BluumSettings:
    """Build BluumSettings. Priority: config file > environment variables > defaults.

    Raises ConfigError when the merged result is invalid.
    """
    env = os.environ if environ is None else environ
    file_cfg = _read_config_file(path or cfg.bluum_config_path)

    merged: Dict[str, Any] = {
        "apiKey": file_cfg.get("apiKey") or env.get("BLUUM_API_KEY") or "",
        "apiSecret": file_cfg.get("apiSecret") or env.get("BLUUM_API_SECRET") or "",
        "environment": file_cfg.get("environment") or env.get("BLUUM_ENV") or "sandbox",
        "baseUrl": file_cfg.get("baseUrl") or env.get("BLUUM_BASE_URL") or None,
        "defaultAccountId": file_cfg.get("defaultAccountId") or env.get("BLUUM_DEFAULT_ACCOUNT_ID") or None,
    }
    try:
        return BluumSettings.model_validate(merged)
    except ValidationError as e:
        issues = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {issues}") from e


def get_base_url(settings: BluumSettings) -> str:
    """Explicit override, else production/sandbox endpoint"""
    if settings.base_url:
        return settings.base_url
    return PRODUCTION_BASE_URL if settings.environment == "production" else SANDBOX_BASE_URL
