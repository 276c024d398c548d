"""Tool input validation: required fields, enums, patterns, defaults, cross-field rules."""

import pytest

from bluum_mcp.errors import ToolValidationError
from bluum_mcp.schemas import tools as s
from bluum_mcp.schemas.tools import parse_tool_input
from tests.conftest import ACCOUNT_ID, ORDER_ID


def _issues(tool, model, raw):
    with pytest.raises(ToolValidationError) as exc_info:
        parse_tool_input(tool, model, raw)
    return {i.path: i.message for i in exc_info.value.issues}


def _market_order(**overrides):
    order = {
        "account_id": ACCOUNT_ID,
        "symbol": "AAPL",
        "qty": "10",
        "side": "buy",
        "type": "market",
        "time_in_force": "day",
    }
    order.update(overrides)
    return order


def _fiat():
    return {"funding_type": "fiat", "fiat_currency": "USD", "bank_account_id": "ba_123", "method": "ach"}


class TestIdentifiers:
    def test_missing_account_id(self):
        issues = _issues("get_account", s.GetAccountInput, {})
        assert issues == {"account_id": "Field required"}

    @pytest.mark.parametrize("bad", ["abc", "11111111111111111111111111111111", ACCOUNT_ID + "\n", "{" + ACCOUNT_ID + "}"])
    def test_non_canonical_uuid(self, bad):
        issues = _issues("get_account", s.GetAccountInput, {"account_id": bad})
        assert issues == {"account_id": "Invalid account ID format"}

    def test_order_id_message_names_the_id(self):
        issues = _issues("get_order_status", s.GetOrderInput, {"order_id": "nope"})
        assert issues == {"order_id": "Invalid order ID format"}

    def test_uppercase_uuid_accepted(self):
        inp = parse_tool_input("get_order_status", s.GetOrderInput, {"order_id": ORDER_ID.upper()})
        assert inp.order_id == ORDER_ID.upper()


class TestEnumerations:
    def test_unknown_status_rejected(self):
        issues = _issues("list_orders", s.ListOrdersInput, {"account_id": ACCOUNT_ID, "status": "bogus"})
        assert list(issues) == ["status"]

    def test_enum_is_case_sensitive(self):
        issues = _issues("create_order", s.CreateOrderInput, _market_order(side="BUY"))
        assert "side" in issues


class TestDecimalStrings:
    @pytest.mark.parametrize("qty", ["10", "10.5", "0.0001", "123456789012345678901234567890.123456789"])
    def test_valid(self, qty):
        inp = parse_tool_input("create_order", s.CreateOrderInput, _market_order(qty=qty))
        assert inp.qty == qty

    @pytest.mark.parametrize("qty", ["-1", "+1", "1e3", "1,000", ".5", "5.", "", " 1"])
    def test_invalid(self, qty):
        issues = _issues("create_order", s.CreateOrderInput, _market_order(qty=qty))
        assert issues == {"qty": "Quantity must be a valid number"}

    def test_number_is_not_coerced_to_string(self):
        issues = _issues("create_order", s.CreateOrderInput, _market_order(qty=10))
        assert list(issues) == ["qty"]


class TestDates:
    def test_pattern_only_no_calendar_check(self):
        inp = parse_tool_input(
            "list_transactions", s.ListTransactionsInput, {"account_id": ACCOUNT_ID, "date_from": "2024-13-40"}
        )
        assert inp.date_from == "2024-13-40"

    @pytest.mark.parametrize("bad", ["2024-1-01", "2024/01/01", "20240101", "2024-01-01T00:00:00"])
    def test_bad_format(self, bad):
        issues = _issues("list_transactions", s.ListTransactionsInput, {"account_id": ACCOUNT_ID, "date_to": bad})
        assert issues == {"date_to": "Date must be in YYYY-MM-DD format"}


class TestPagination:
    def test_defaults(self):
        inp = parse_tool_input("list_orders", s.ListOrdersInput, {"account_id": ACCOUNT_ID})
        assert (inp.limit, inp.offset) == (50, 0)

    def test_bounds_inclusive(self):
        inp = parse_tool_input("search_assets", s.SearchAssetsInput, {"limit": 100, "offset": 0})
        assert inp.limit == 100
        inp = parse_tool_input("search_assets", s.SearchAssetsInput, {"limit": 1})
        assert inp.limit == 1

    @pytest.mark.parametrize("raw,field", [({"limit": 0}, "limit"), ({"limit": 101}, "limit"), ({"offset": -1}, "offset")])
    def test_out_of_range_fails_rather_than_clamps(self, raw, field):
        issues = _issues("search_assets", s.SearchAssetsInput, raw)
        assert list(issues) == [field]

    def test_whole_float_accepted_as_int(self):
        inp = parse_tool_input("list_orders", s.ListOrdersInput, {"account_id": ACCOUNT_ID, "limit": 10.0, "offset": 20.0})
        assert (inp.limit, inp.offset) == (10, 20)
        assert isinstance(inp.limit, int)

    @pytest.mark.parametrize("value", ["50", True, 10.5])
    def test_non_integer_limit_rejected(self, value):
        issues = _issues("search_assets", s.SearchAssetsInput, {"limit": value})
        assert list(issues) == ["limit"]


class TestBooleans:
    def test_defaults(self):
        inp = parse_tool_input("list_positions", s.ListPositionsInput, {"account_id": ACCOUNT_ID})
        assert inp.non_zero_only is False and inp.refresh_prices is False

    def test_string_not_coerced(self):
        issues = _issues("list_positions", s.ListPositionsInput, {"account_id": ACCOUNT_ID, "refresh_prices": "yes"})
        assert list(issues) == ["refresh_prices"]


class TestOrderCrossField:
    def test_limit_without_price_fails_on_limit_price(self):
        issues = _issues("create_order", s.CreateOrderInput, _market_order(type="limit"))
        assert issues == {"limit_price": "limit_price is required when order type is limit"}

    def test_limit_with_price(self):
        inp = parse_tool_input("create_order", s.CreateOrderInput, _market_order(type="limit", limit_price="150.25"))
        assert inp.limit_price == "150.25"

    def test_market_without_price(self):
        inp = parse_tool_input("create_order", s.CreateOrderInput, _market_order())
        assert inp.limit_price is None

    def test_market_with_price_fails(self):
        issues = _issues("create_order", s.CreateOrderInput, _market_order(limit_price="1"))
        assert list(issues) == ["limit_price"]

    def test_empty_symbol(self):
        issues = _issues("create_order", s.CreateOrderInput, _market_order(symbol=""))
        assert issues == {"symbol": "Symbol is required"}

    def test_reports_every_offending_field(self):
        issues = _issues("create_order", s.CreateOrderInput, {"account_id": ACCOUNT_ID})
        assert {"symbol", "qty", "side", "type", "time_in_force"} <= set(issues)


class TestFundingDetails:
    def _fund(self, details):
        return {"account_id": ACCOUNT_ID, "amount": "5000.00", "funding_details": details}

    def test_fiat(self):
        inp = parse_tool_input("fund_account", s.FundAccountInput, self._fund(_fiat()))
        assert isinstance(inp.funding_details, s.FiatFundingDetails)

    def test_crypto(self):
        details = {"funding_type": "crypto", "crypto_asset": "USDC", "wallet_address": "0xabc", "network": "Polygon"}
        inp = parse_tool_input("withdraw_funds", s.WithdrawFundsInput, self._fund(details))
        assert isinstance(inp.funding_details, s.CryptoFundingDetails)

    def test_fiat_tag_with_crypto_fields_fails_on_fiat_fields(self):
        details = {"funding_type": "fiat", "crypto_asset": "BTC", "wallet_address": "bc1q", "network": "Bitcoin"}
        issues = _issues("fund_account", s.FundAccountInput, self._fund(details))
        assert set(issues) == {
            "funding_details.fiat.fiat_currency",
            "funding_details.fiat.bank_account_id",
            "funding_details.fiat.method",
        }

    def test_unknown_tag(self):
        details = dict(_fiat(), funding_type="paypal")
        issues = _issues("fund_account", s.FundAccountInput, self._fund(details))
        assert list(issues) == ["funding_details"]

    def test_only_usd(self):
        details = dict(_fiat(), fiat_currency="EUR")
        issues = _issues("fund_account", s.FundAccountInput, self._fund(details))
        assert list(issues) == ["funding_details.fiat.fiat_currency"]

    def test_amount_pattern(self):
        raw = self._fund(_fiat())
        raw["amount"] = "-5"
        issues = _issues("fund_account", s.FundAccountInput, raw)
        assert issues == {"amount": "Amount must be a valid number"}


def test_unknown_keys_are_dropped():
    inp = parse_tool_input("list_accounts", s.ListAccountsInput, {"unexpected": 1})
    assert inp.model_dump() == {}


def test_none_arguments_treated_as_empty():
    inp = parse_tool_input("list_accounts", s.ListAccountsInput, None)
    assert inp.model_dump() == {}


def test_input_schema_marks_required_and_defaults():
    schema = s.input_schema(s.ListOrdersInput)
    assert schema["type"] == "object"
    assert schema["required"] == ["account_id"]
    assert schema["properties"]["limit"]["default"] == 50
    assert schema["properties"]["account_id"]["format"] == "uuid"
