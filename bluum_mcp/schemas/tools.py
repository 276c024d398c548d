# schemas/tools.py
# - Tool input models (one pydantic model per MCP tool)
# - Shared annotated field types: UUID ids, decimal strings, dates, pagination
# - FundingDetails: closed fiat|crypto union selected by funding_type
# - parse_tool_input: untyped arguments -> validated model or ToolValidationError

import re
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Type, TypeVar, Union

from pydantic import (
    AfterValidator,
    BeforeValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

from bluum_mcp.errors import FieldIssue, ToolValidationError

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
DECIMAL_PATTERN = r"^\d+(\.\d+)?$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

_UUID_JSON = {"format": "uuid"}
_DECIMAL_JSON = {"pattern": DECIMAL_PATTERN}
_DATE_JSON = {"pattern": DATE_PATTERN}


def _pattern(pattern: str, error_type: str, message: str) -> AfterValidator:
    rx = re.compile(pattern, re.ASCII)

    def check(v: str) -> str:
        if not rx.fullmatch(v):
            raise PydanticCustomError(error_type, message)
        return v
    return AfterValidator(check)


def _required_text(message: str) -> AfterValidator:
    def check(v: str) -> str:
        if not v:
            raise PydanticCustomError("required_text", message)
        return v
    return AfterValidator(check)


AccountId = Annotated[str, _pattern(UUID_PATTERN, "uuid_format", "Invalid account ID format")]
PositionId = Annotated[str, _pattern(UUID_PATTERN, "uuid_format", "Invalid position ID format")]
OrderId = Annotated[str, _pattern(UUID_PATTERN, "uuid_format", "Invalid order ID format")]

# decimal amounts stay text; never round-trip through float
Quantity = Annotated[str, _pattern(DECIMAL_PATTERN, "decimal_format", "Quantity must be a valid number")]
LimitPrice = Annotated[str, _pattern(DECIMAL_PATTERN, "decimal_format", "Limit price must be a valid number")]
Commission = Annotated[str, _pattern(DECIMAL_PATTERN, "decimal_format", "Commission must be a valid number")]
Amount = Annotated[str, _pattern(DECIMAL_PATTERN, "decimal_format", "Amount must be a valid number")]

IsoDate = Annotated[str, _pattern(DATE_PATTERN, "date_format", "Date must be in YYYY-MM-DD format")]


def _whole_number(v: Any) -> Any:
    # JSON 10.0 decodes to float; strings and booleans still fail the strict check
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return v


PageNumber = Annotated[StrictInt, BeforeValidator(_whole_number)]

Side = Literal["buy", "sell"]
AssetClass = Literal["us_equity", "crypto"]
OrderStatus = Literal["accepted", "filled", "partially_filled", "canceled", "rejected"]
TransactionStatus = Literal["pending", "processing", "settled", "failed", "canceled"]


class ToolInput(BaseModel):
    # unknown keys are dropped, not rejected
    model_config = ConfigDict(extra="ignore")


class AccountScoped(ToolInput):
    account_id: AccountId = Field(description="The account ID", json_schema_extra=_UUID_JSON)


class Pagination(ToolInput):
    limit: PageNumber = Field(default=50, ge=1, le=100, description="Maximum number of items to return")
    offset: PageNumber = Field(default=0, ge=0, description="Number of items to skip (for pagination)")


# ===== Positions =====

class ListPositionsInput(AccountScoped):
    symbol: Optional[str] = Field(default=None, description="Filter positions by ticker symbol (e.g., AAPL)")
    non_zero_only: StrictBool = Field(default=False, description="Only return positions with non-zero quantity")
    refresh_prices: StrictBool = Field(
        default=False,
        description="Fetch live prices from market data providers (adds latency but provides real-time data)",
    )


class GetPositionInput(AccountScoped):
    position_id: PositionId = Field(description="The position ID to retrieve", json_schema_extra=_UUID_JSON)
    refresh_prices: StrictBool = Field(default=False, description="Fetch live price from market data providers")


# ===== Orders =====

class ListOrdersInput(AccountScoped, Pagination):
    status: Optional[OrderStatus] = Field(default=None, description="Filter orders by status")
    symbol: Optional[str] = Field(default=None, description="Filter orders by ticker symbol (e.g., AAPL)")
    side: Optional[Side] = Field(default=None, description="Filter orders by side (buy or sell)")


class CreateOrderInput(AccountScoped):
    symbol: Annotated[str, _required_text("Symbol is required")] = Field(
        description="Ticker symbol of the asset to trade (e.g., AAPL, TSLA, BTC)"
    )
    qty: Quantity = Field(
        description='Quantity to trade as a string, can be fractional like "10.5"', json_schema_extra=_DECIMAL_JSON
    )
    side: Side = Field(description="Whether to buy or sell the asset")
    type: Literal["market", "limit"] = Field(
        description='"market" executes immediately at current price, "limit" only at the specified price or better'
    )
    time_in_force: Literal["day", "gtc"] = Field(
        description='"day" expires at end of trading day, "gtc" remains active until filled or canceled'
    )
    limit_price: Optional[LimitPrice] = Field(
        default=None,
        validate_default=True,
        description='Price limit as a string; required when type is "limit", omitted otherwise',
        json_schema_extra=_DECIMAL_JSON,
    )
    client_order_id: Optional[str] = Field(default=None, description="Client-provided identifier for tracking")
    commission: Optional[Commission] = Field(
        default=None, description="Commission amount as a string", json_schema_extra=_DECIMAL_JSON
    )
    commission_type: Optional[Literal["notional", "qty", "bps"]] = Field(
        default=None, description="How the commission amount is applied"
    )

    @field_validator("limit_price")
    @classmethod
    def limit_price_matches_type(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        order_type = info.data.get("type")
        if order_type == "limit" and v is None:
            raise PydanticCustomError("limit_price_required", "limit_price is required when order type is limit")
        if order_type == "market" and v is not None:
            raise PydanticCustomError("limit_price_forbidden", "limit_price must be omitted for market orders")
        return v


class GetOrderInput(ToolInput):
    order_id: OrderId = Field(description="The order ID to check", json_schema_extra=_UUID_JSON)


# ===== Assets =====

class ListAssetsInput(ToolInput):
    asset_class: Optional[AssetClass] = Field(default=None, description="Filter by asset class")
    tradable: Optional[StrictBool] = Field(default=None, description="Filter by tradability")


class SearchAssetsInput(Pagination):
    q: Optional[str] = Field(default=None, description="Free-text search over symbol and name")
    status: Optional[Literal["active", "inactive"]] = Field(default=None, description="Filter by asset status")
    asset_class: Optional[AssetClass] = Field(default=None, description="Filter by asset class")
    tradable: Optional[StrictBool] = Field(default=None, description="Filter by tradability")


# ===== Wallet =====

class ListTransactionsInput(AccountScoped, Pagination):
    type: Optional[Literal["deposit", "withdrawal"]] = Field(default=None, description="Filter by transaction type")
    status: Optional[TransactionStatus] = Field(default=None, description="Filter by transaction status")
    funding_type: Optional[Literal["fiat", "crypto"]] = Field(default=None, description="Filter by funding type")
    date_from: Optional[IsoDate] = Field(default=None, description="Start date (YYYY-MM-DD)", json_schema_extra=_DATE_JSON)
    date_to: Optional[IsoDate] = Field(default=None, description="End date (YYYY-MM-DD)", json_schema_extra=_DATE_JSON)


class FiatFundingDetails(BaseModel):
    funding_type: Literal["fiat"]
    fiat_currency: Literal["USD"]
    bank_account_id: Annotated[str, _required_text("Bank account ID is required")]
    method: Literal["ach", "wire"]


class CryptoFundingDetails(BaseModel):
    funding_type: Literal["crypto"]
    crypto_asset: Literal["BTC", "ETH", "USDC", "USDT"]
    wallet_address: Annotated[str, _required_text("Wallet address is required")]
    network: Literal["Bitcoin", "Ethereum", "Polygon"]


FundingDetails = Annotated[Union[FiatFundingDetails, CryptoFundingDetails], Field(discriminator="funding_type")]


class FundRequestInput(AccountScoped):
    amount: Amount = Field(description='Amount as a string, e.g. "5000.00"', json_schema_extra=_DECIMAL_JSON)
    funding_details: FundingDetails = Field(description="Funding method details (fiat or crypto)")
    description: Optional[str] = Field(default=None, description="Description for the transaction")
    external_reference_id: Optional[str] = Field(default=None, description="External reference ID for tracking")


class FundAccountInput(FundRequestInput):
    pass


class WithdrawFundsInput(FundRequestInput):
    pass


# ===== Accounts =====

class ListAccountsInput(ToolInput):
    pass


class GetAccountInput(AccountScoped):
    pass


M = TypeVar("M", bound=BaseModel)


def _issue_path(loc: tuple) -> str:
    return ".".join(str(p) for p in loc) or "input"


def parse_tool_input(tool: str, model: Type[M], raw: Optional[Mapping[str, Any]]) -> M:
    """Validate untyped tool arguments, raising ToolValidationError with one issue per field."""
    try:
        return model.model_validate(raw if raw is not None else {})
    except ValidationError as e:
        issues = [FieldIssue(_issue_path(err["loc"]), err["msg"]) for err in e.errors()]
        raise ToolValidationError(tool, issues) from e


def input_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """JSON Schema advertised to MCP clients (tools/list)"""
    schema = model.model_json_schema()
    schema.pop("title", None)
    schema.setdefault("properties", {})
    return schema
