# request_mapper.py
# - Validated tool input -> RequestDescriptor (method, path, query, body)
# - Pure functions; no I/O. The transport adapter executes the descriptor.

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional
from urllib.parse import quote

from pydantic import BaseModel

from bluum_mcp.errors import UnknownToolError
from bluum_mcp.schemas import tools as s


@dataclass(frozen=True)
class RequestDescriptor:
    method: str
    path: str
    query: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None


def _seg(value: str) -> str:
    return quote(value, safe="")


def _fields(inp: BaseModel, *, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """Model fields as a plain dict; absent optionals are left out entirely"""
    return inp.model_dump(exclude=set(exclude), exclude_none=True)


# -----------------------------
# Positions
# -----------------------------
def list_positions(inp: s.ListPositionsInput) -> RequestDescriptor:
    return RequestDescriptor(
        "GET",
        f"/trading/accounts/{_seg(inp.account_id)}/positions",
        query=_fields(inp, exclude={"account_id"}),
    )


def get_position(inp: s.GetPositionInput) -> RequestDescriptor:
    return RequestDescriptor(
        "GET",
        f"/trading/accounts/{_seg(inp.account_id)}/positions/{_seg(inp.position_id)}",
        query={"refresh_prices": inp.refresh_prices},
    )


# -----------------------------
# Orders
# -----------------------------
def list_orders(inp: s.ListOrdersInput) -> RequestDescriptor:
    return RequestDescriptor(
        "GET",
        f"/trading/accounts/{_seg(inp.account_id)}/orders",
        query=_fields(inp, exclude={"account_id"}),
    )


def create_order(inp: s.CreateOrderInput) -> RequestDescriptor:
    return RequestDescriptor(
        "POST",
        f"/trading/accounts/{_seg(inp.account_id)}/orders",
        body=_fields(inp, exclude={"account_id"}),
    )


def get_order_status(inp: s.GetOrderInput) -> RequestDescriptor:
    return RequestDescriptor("GET", f"/trading/orders/{_seg(inp.order_id)}")


# -----------------------------
# Assets
# -----------------------------
def list_assets(inp: s.ListAssetsInput) -> RequestDescriptor:
    return RequestDescriptor("GET", "/assets", query=_fields(inp))


def search_assets(inp: s.SearchAssetsInput) -> RequestDescriptor:
    query: Dict[str, Any] = {}
    if inp.q is not None:
        query["q"] = inp.q
    query.update(_fields(inp, exclude={"q"}))
    return RequestDescriptor("GET", "/assets/search", query=query)


# -----------------------------
# Wallet
# -----------------------------
def list_transactions(inp: s.ListTransactionsInput) -> RequestDescriptor:
    return RequestDescriptor(
        "GET",
        f"/wallet/accounts/{_seg(inp.account_id)}/transactions",
        query=_fields(inp, exclude={"account_id"}),
    )


def fund_account(inp: s.FundAccountInput) -> RequestDescriptor:
    return RequestDescriptor(
        "POST",
        f"/wallet/accounts/{_seg(inp.account_id)}/funding",
        body=_fields(inp, exclude={"account_id"}),
    )


def withdraw_funds(inp: s.WithdrawFundsInput) -> RequestDescriptor:
    # upstream withdrawal endpoint is not account-scoped; account_id travels in the body
    return RequestDescriptor("POST", "/wallet/withdrawals", body=_fields(inp))


# -----------------------------
# Accounts
# -----------------------------
def list_accounts(inp: s.ListAccountsInput) -> RequestDescriptor:
    return RequestDescriptor("GET", "/accounts")


def get_account(inp: s.GetAccountInput) -> RequestDescriptor:
    return RequestDescriptor("GET", f"/accounts/{_seg(inp.account_id)}")


MAPPERS: Dict[str, Callable[[Any], RequestDescriptor]] = {
    "list_positions": list_positions,
    "get_position": get_position,
    "list_orders": list_orders,
    "create_order": create_order,
    "get_order_status": get_order_status,
    "list_assets": list_assets,
    "search_assets": search_assets,
    "list_transactions": list_transactions,
    "fund_account": fund_account,
    "withdraw_funds": withdraw_funds,
    "list_accounts": list_accounts,
    "get_account": get_account,
}


def map_request(name: str, inp: BaseModel) -> RequestDescriptor:
    mapper = MAPPERS.get(name)
    if mapper is None:
        raise UnknownToolError(name)
    return mapper(inp)
