 # tools.py (MCP tool dispatch table)
 # - ToolSpec: name, description, input model, request mapper, confirmation line
 # - _list_tools: returns tool list (tools/list)
 # - dispatch: validate -> map -> execute -> envelope (tools/call)


import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple, Type

from jsonschema import Draft202012Validator
from pydantic import BaseModel

from bluum_mcp import envelope
from bluum_mcp import request_mapper as rm
from bluum_mcp.errors import BluumAPIError, ToolValidationError, UnknownToolError
from bluum_mcp.request_mapper import RequestDescriptor
from bluum_mcp.schemas import tools as s

logger = logging.getLogger("tools")


class Transport(Protocol):
    async def execute(self, req: RequestDescriptor) -> Any: ...


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    model: Type[BaseModel]
    mapper: Callable[[Any], RequestDescriptor]
    confirmation: Optional[str] = None
    input_schema: Dict[str, Any] = field(default_factory=dict)

    def to_def(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


TOOLS: List[ToolSpec] = []
TOOLS_BY_NAME: Dict[str, ToolSpec] = {}


def register_tool(
    name: str,
    description: str,
    model: Type[BaseModel],
    mapper: Callable[[Any], RequestDescriptor],
    confirmation: Optional[str] = None,
) -> ToolSpec:
    if name in TOOLS_BY_NAME:
        raise ValueError(f"duplicate tool name: {name}")
    schema = s.input_schema(model)
    Draft202012Validator.check_schema(schema)
    spec = ToolSpec(name, description, model, mapper, confirmation, schema)
    TOOLS.append(spec)
    TOOLS_BY_NAME[name] = spec
    return spec


# ===== Position Tools =====
register_tool(
    "list_positions",
    "View current portfolio positions for an account, including quantity, cost basis, current value, "
    "and unrealized profit/loss. Optionally refresh live prices from market data providers.",
    s.ListPositionsInput,
    rm.list_positions,
)
register_tool(
    "get_position",
    "Retrieve detailed information about a specific position, including P/L calculations and optionally "
    "live market prices with source and confidence metadata.",
    s.GetPositionInput,
    rm.get_position,
)

# ===== Order Tools =====
register_tool(
    "list_orders",
    "List trading orders for a specific account with optional filtering by status, symbol, or side. "
    "Supports pagination.",
    s.ListOrdersInput,
    rm.list_orders,
)
register_tool(
    "create_order",
    "Place a new trading order (buy or sell) for a specific account. Supports market orders (immediate "
    "execution at current price) and limit orders (execution at specific price). IMPORTANT: limit orders "
    "require limit_price; market orders must not set it.",
    s.CreateOrderInput,
    rm.create_order,
    confirmation="Order created successfully!",
)
register_tool(
    "get_order_status",
    "Check the current status of an order, including fill quantity, average price, and timestamps.",
    s.GetOrderInput,
    rm.get_order_status,
)

# ===== Asset Tools =====
register_tool(
    "list_assets",
    "List tradable assets, optionally filtered by asset class and tradability.",
    s.ListAssetsInput,
    rm.list_assets,
)
register_tool(
    "search_assets",
    "Search assets by symbol or name with optional status, asset class, and tradability filters. "
    "Supports pagination.",
    s.SearchAssetsInput,
    rm.search_assets,
)

# ===== Wallet Tools =====
register_tool(
    "list_transactions",
    "List deposit and withdrawal transactions for an account, filtered by type, status, funding type, "
    "or date range. Supports pagination.",
    s.ListTransactionsInput,
    rm.list_transactions,
)
register_tool(
    "fund_account",
    "Deposit funds into an investment account via fiat (ACH/wire) or crypto transfer. "
    "The transaction will be processed asynchronously.",
    s.FundAccountInput,
    rm.fund_account,
    confirmation="Funding request submitted successfully!",
)
register_tool(
    "withdraw_funds",
    "Withdraw funds from an investment account via fiat (ACH/wire) or crypto transfer. "
    "The transaction will be processed asynchronously.",
    s.WithdrawFundsInput,
    rm.withdraw_funds,
    confirmation="Withdrawal request submitted successfully!",
)

# ===== Account Tools =====
register_tool(
    "list_accounts",
    "List all investment accounts accessible with the current API credentials.",
    s.ListAccountsInput,
    rm.list_accounts,
)
register_tool(
    "get_account",
    "Retrieve detailed information about a specific account, including status, balance, enabled assets, "
    "and contact information.",
    s.GetAccountInput,
    rm.get_account,
)


def get_tool(name: str) -> ToolSpec:
    spec = TOOLS_BY_NAME.get(name)
    if spec is None:
        raise UnknownToolError(name)
    return spec


def _list_tools(cursor: Optional[str]) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Return tool list (tools/list)"""
    return [t.to_def() for t in TOOLS], None


def _with_default_account(spec: ToolSpec, arguments: Any, default_account_id: Optional[str]) -> Any:
    if not isinstance(arguments, Mapping):
        return arguments
    args = dict(arguments)
    if default_account_id and "account_id" in spec.model.model_fields and args.get("account_id") is None:
        args["account_id"] = default_account_id
    return args


async def dispatch(
    name: str,
    arguments: Any,
    client: Transport,
    *,
    default_account_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Execute tool and return result envelope (tools/call).

    Unknown tool names raise UnknownToolError; validation and API failures come back as
    error envelopes; anything else is logged and re-raised.
    """
    spec = get_tool(name)
    args = _with_default_account(spec, arguments, default_account_id)
    try:
        inp = s.parse_tool_input(name, spec.model, args)
        req = spec.mapper(inp)
        logger.debug(f"tool.call name={name} method={req.method} path={req.path} query_keys={list(req.query)}")
        payload = await client.execute(req)
    except ToolValidationError as e:
        logger.info(json.dumps({"event": "tool.invalid", "tool": name, "issues": [str(i) for i in e.issues]}))
        return envelope.validation_failure(e)
    except BluumAPIError as e:
        logger.warning(json.dumps({"event": "tool.api_error", "tool": name, "kind": e.kind, "status": e.status}))
        return envelope.transport_failure(e)
    except Exception:
        logger.exception(f"unexpected error in tool {name}")
        raise
    return envelope.success(payload, spec.confirmation)
