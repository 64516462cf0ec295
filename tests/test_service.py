from decimal import Decimal
from types import SimpleNamespace

import openai
import pytest

from scam_detector.advisory import AdvisoryAnalyzer
from scam_detector.dal import ProviderError
from scam_detector.fraud_detection import FRONT_RUNNING_LABEL, PATTERN_WARNINGS
from scam_detector.schemas import AdvisoryAnalysis
from scam_detector.service import (
    calculate_timespan,
    collect_transactions,
    normalize_big_ints,
    normalize_raw_item,
)

from factories import MAX_UINT256, PEPE, ROUTER, USDC, WALLET, FakeProvider, swap_tx, transfer_log

OTHER = "0x00000000000000000000000000000000000000bb"


class StubAdvisor:
    def __init__(self, analysis):
        self.analysis = analysis
        self.seen = None

    def analyze(self, trades):
        self.seen = list(trades)
        return self.analysis


def test_empty_history_succeeds_with_neutral_result():
    result = collect_transactions("eth-mainnet", WALLET, provider=FakeProvider([]))
    assert result["success"] is True
    assert result["trades"] == []
    assert result["profile"]["riskProfile"] == "conservative"
    assert result["profile"]["totalTrades"] == 0
    assert result["scamAnalysis"]["riskLevel"] == "low"
    assert result["scamAnalysis"]["scamProbability"] == 0.0
    assert result["scamAnalysis"]["warnings"] == []
    assert result["scamAnalysis"]["sophisticatedPatterns"] == []
    assert result["scamAnalysis"]["advisory"] is None
    assert result["summary"] == {
        "totalTransactions": 0,
        "dexTransactions": 0,
        "timespan": {"start": "", "end": ""},
        "transactions": [],
    }


def test_provider_exception_becomes_failure():
    provider = FakeProvider(error=ProviderError("rate limited"))
    assert collect_transactions("eth-mainnet", WALLET, provider=provider) == {
        "success": False,
        "error": "rate limited",
    }


def test_any_provider_exception_is_caught():
    provider = FakeProvider(error=RuntimeError(""))
    assert collect_transactions("eth-mainnet", WALLET, provider=provider) == {
        "success": False,
        "error": "Unknown error",
    }


def test_error_envelope_becomes_failure():
    provider = FakeProvider(response={"error": True, "error_message": "Invalid address"})
    result = collect_transactions("eth-mainnet", "0xnope", provider=provider)
    assert result == {"success": False, "error": "Invalid address"}


@pytest.mark.parametrize("response", [{"items": None}, {"data": []}, ["not", "a", "mapping"]])
def test_missing_items_is_invalid_response(response):
    result = collect_transactions("eth-mainnet", WALLET, provider=FakeProvider(response=response))
    assert result == {"success": False, "error": "Invalid response from blockchain data provider"}


def test_full_pipeline_shapes_output():
    items = [
        swap_tx("0x1", block_height=10, signed_at="2024-01-01T00:00:00Z"),
        swap_tx("0x2", to=OTHER, block_height=11, signed_at="2024-01-03T12:00:00Z"),
        swap_tx("0x3", block_height=12, signed_at="2024-01-02T00:00:00Z"),
    ]
    provider = FakeProvider(items)
    result = collect_transactions("eth-mainnet", WALLET, provider=provider)

    assert provider.calls == [("address", "eth-mainnet", WALLET)]
    assert result["success"] is True
    assert [t["txHash"] for t in result["trades"]] == ["0x1", "0x3"]
    first = result["trades"][0]
    assert first["tokenIn"] == {"address": USDC, "symbol": "USDC", "amount": "1000"}
    assert first["tokenOut"] == {"address": PEPE, "symbol": "PEPE", "amount": "5000"}
    assert first["timestamp"] == 1704067200000

    assert result["profile"]["totalTrades"] == 2
    assert result["profile"]["preferredDex"] == "uniswap_v2"
    assert result["profile"]["uniqueTokenCount"] == 2
    assert result["profile"]["avgTimeBetweenTrades"] == 86_400_000

    # Same pair two blocks apart
    assert result["scamAnalysis"]["sophisticatedPatterns"] == [FRONT_RUNNING_LABEL]
    assert result["scamAnalysis"]["sophisticatedRiskLevel"] == "medium"
    assert result["scamAnalysis"]["confidence"] == pytest.approx(0.3)
    assert result["scamAnalysis"]["detectedPatterns"] == {
        "phishing": False,
        "rugPull": False,
        "pumpAndDump": False,
        "honeypot": False,
    }
    assert result["scamAnalysis"]["detectorErrors"] == {}

    summary = result["summary"]
    assert summary["totalTransactions"] == 3
    assert summary["dexTransactions"] == 2
    assert summary["timespan"] == {
        "start": "2024-01-01T00:00:00.000Z",
        "end": "2024-01-03T12:00:00.000Z",
    }
    assert [tx["tx_hash"] for tx in summary["transactions"]] == ["0x1", "0x2", "0x3"]


def test_phishing_approval_flows_through():
    logs = [transfer_log(USDC, "USDC", WALLET, ROUTER, MAX_UINT256)]
    result = collect_transactions("eth-mainnet", WALLET, provider=FakeProvider([swap_tx(logs=logs)]))
    analysis = result["scamAnalysis"]
    assert analysis["detectedPatterns"]["phishing"] is True
    assert analysis["scamProbability"] == pytest.approx(0.3)
    assert analysis["riskLevel"] == "medium"
    assert analysis["warnings"] == [PATTERN_WARNINGS["phishing"]]


def test_malformed_items_are_counted_but_not_traded():
    items = [swap_tx("0x1"), {"block_height": 5}, "garbage"]
    result = collect_transactions("eth-mainnet", WALLET, provider=FakeProvider(items))
    assert result["success"] is True
    assert result["summary"]["totalTransactions"] == 3
    assert [t["txHash"] for t in result["trades"]] == ["0x1"]


def test_raw_items_are_normalised_in_summary():
    item = swap_tx("0x1", value=None, successful=None, fees_paid=10**20)
    result = collect_transactions("eth-mainnet", WALLET, provider=FakeProvider([item]))
    echoed = result["summary"]["transactions"][0]
    assert echoed["value"] == "0"
    assert echoed["successful"] is True
    assert echoed["fees_paid"] == str(10**20)
    assert echoed["gas_price"] == 20_000_000_000


def test_native_swap_uses_chain_symbol():
    logs = [transfer_log(PEPE, "PEPE", ROUTER, WALLET, "9")]
    item = swap_tx("0x1", value=3 * 10**18, logs=logs)
    result = collect_transactions("matic-mainnet", WALLET, provider=FakeProvider([item]))
    token_in = result["trades"][0]["tokenIn"]
    assert token_in["symbol"] == "MATIC"
    assert token_in["amount"] == str(3 * 10**18)


def test_extra_routers_are_honoured():
    items = [swap_tx("0x1", to=OTHER)]
    result = collect_transactions(
        "eth-mainnet", WALLET, provider=FakeProvider(items), extra_routers=[OTHER]
    )
    assert result["trades"][0]["dex"] == "unknown"
    assert result["profile"]["preferredDex"] == ""


def test_advisory_feeds_sophisticated_score():
    advisor = StubAdvisor(
        AdvisoryAnalysis(risk_assessment="high", confidence=0.8, detected_patterns=["honeypot"])
    )
    result = collect_transactions(
        "eth-mainnet", WALLET, provider=FakeProvider([swap_tx("0x1")]), advisor=advisor
    )
    assert len(advisor.seen) == 1
    analysis = result["scamAnalysis"]
    assert analysis["sophisticatedPatterns"] == ["honeypot"]
    assert analysis["confidence"] == pytest.approx(0.4)
    assert analysis["sophisticatedRiskLevel"] == "medium"
    assert analysis["advisory"] == {
        "riskAssessment": "high",
        "confidence": 0.8,
        "detectedPatterns": ["honeypot"],
    }


def test_failing_advisory_service_does_not_fail_collection(settings):
    def create(**kwargs):
        raise openai.OpenAIError("down")

    completions = SimpleNamespace(create=create)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    advisor = AdvisoryAnalyzer(settings, client=client)
    result = collect_transactions(
        "eth-mainnet", WALLET, provider=FakeProvider([swap_tx("0x1")]), advisor=advisor
    )
    assert result["success"] is True
    assert result["scamAnalysis"]["advisory"]["riskAssessment"] == "unknown"
    assert result["scamAnalysis"]["confidence"] == 0.0


def test_calculate_timespan_skips_unparseable():
    items = [{"block_signed_at": "bogus"}, {"block_signed_at": None}, "x"]
    assert calculate_timespan(items).model_dump() == {"start": "", "end": ""}


def test_normalize_big_ints():
    data = {"a": 2**53, "b": [2**53 - 1, -(2**60)], "c": True, "d": Decimal("1.5"), "e": (1, "x")}
    assert normalize_big_ints(data) == {
        "a": str(2**53),
        "b": [2**53 - 1, str(-(2**60))],
        "c": True,
        "d": "1.5",
        "e": [1, "x"],
    }


def test_normalize_raw_item_leaves_non_mappings():
    assert normalize_raw_item("junk") == "junk"
    assert normalize_raw_item({"value": ""})["value"] == "0"


@pytest.mark.parametrize(
    "signed_at", ["9999-12-31T23:59:59-01:00", "0001-01-01T00:00:00+01:00"]
)
def test_out_of_range_timestamps_do_not_fail_collection(signed_at):
    items = [swap_tx("0x1", signed_at=signed_at), swap_tx("0x2", signed_at="2024-01-01T00:00:00Z")]
    result = collect_transactions("eth-mainnet", WALLET, provider=FakeProvider(items))
    assert result["success"] is True
    assert result["trades"][0]["timestamp"] is None
    assert result["summary"]["timespan"] == {
        "start": "2024-01-01T00:00:00.000Z",
        "end": "2024-01-01T00:00:00.000Z",
    }


def test_unrelated_odd_log_keeps_the_swap():
    logs = [
        transfer_log(USDC, "USDC", WALLET, ROUTER, "1000"),
        {"decoded": {"name": "Sync", "params": [{"name": 5, "value": 1}]}},
        transfer_log(PEPE, "PEPE", ROUTER, WALLET, "5000"),
    ]
    result = collect_transactions("eth-mainnet", WALLET, provider=FakeProvider([swap_tx(logs=logs)]))
    assert [t["txHash"] for t in result["trades"]] == ["0xswap"]
    assert result["trades"][0]["tokenOut"]["amount"] == "5000"
