import json
from typing import Any, Dict, Optional

from bluum_mcp.errors import BluumAPIError, ToolValidationError


def _text(text: str, *, is_error: bool) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


def success(payload: Any, confirmation: Optional[str] = None) -> Dict[str, Any]:
    """Pretty-printed upstream JSON; mutating tools lead with a confirmation line."""
    body = json.dumps(payload, indent=2, ensure_ascii=False)
    if confirmation:
        body = f"{confirmation}\n\n{body}"
    return _text(body, is_error=False)


def validation_failure(err: ToolValidationError) -> Dict[str, Any]:
    return _text(f"Invalid input: {', '.join(str(i) for i in err.issues)}", is_error=True)


def transport_failure(err: BluumAPIError) -> Dict[str, Any]:
    return _text(f"Error: {err.message}", is_error=True)
