from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping

from .dal import ProviderError, TransactionNotFound, TransactionProvider
from .models import RawTransaction
from .outcome import attempt

logger = logging.getLogger(__name__)

WEI_PER_ETH = 10**18
WEI_PER_GWEI = 10**9

# Market sentiment thresholds (wei)
SENTIMENT_VALUE_THRESHOLD = 10**18
SENTIMENT_GAS_THRESHOLD = 10**9
FEAR_VALUE_THRESHOLD = 10**9

# Volume buckets (wei)
LARGE_VOLUME = 1e20
MEDIUM_VOLUME = 1e19

# Reputation thresholds
HIGH_VALUE = 1e18
HIGH_GAS_PRICE = 1e11


def _format_value(value: Any) -> str:
    if value is None:
        return "0"
    return str(value)


def _to_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _is_contract_address(address: Any) -> bool:
    return isinstance(address, str) and address.startswith("0x")


# ---------------------------------------------------------------------------
# Trading pattern
# ---------------------------------------------------------------------------

def calculate_trade_risk_score(value: float, gas_price: float) -> float:
    value_score = min((value / WEI_PER_ETH) * 10, 100)
    gas_price_score = min((gas_price / WEI_PER_GWEI) / 100, 100)
    return (value_score + gas_price_score) / 2


def assess_risk_level(tx: RawTransaction) -> Dict[str, Any]:
    return {
        "value": _format_value(tx.value),
        "gasPrice": _format_value(tx.gas_price),
        "riskScore": calculate_trade_risk_score(_to_number(tx.value), _to_number(tx.gas_price)),
    }


def determine_trading_style(tx: RawTransaction) -> Dict[str, Any]:
    kind = "contract_interaction" if _is_contract_address(tx.to_address) else "transfer"
    return {"type": kind, "confidence": 0.8}


def analyze_trading_pattern(tx: RawTransaction) -> Dict[str, Any]:
    return {
        "transactionDetails": {
            "value": _format_value(tx.value),
            "timestamp": tx.block_signed_at,
            "from": tx.from_address,
            "to": tx.to_address,
            "gasPrice": _format_value(tx.gas_price),
            "gasSpent": _format_value(tx.gas_spent),
        },
        "riskLevel": attempt(assess_risk_level, tx).to_payload(),
        "tradingStyle": attempt(determine_trading_style, tx).to_payload(),
    }


# ---------------------------------------------------------------------------
# Market sentiment
# ---------------------------------------------------------------------------

def _overall_sentiment(value: int, gas_price: int) -> str:
    if value > SENTIMENT_VALUE_THRESHOLD and gas_price > SENTIMENT_GAS_THRESHOLD:
        return "bullish"
    if value > SENTIMENT_VALUE_THRESHOLD:
        return "moderately_bullish"
    if gas_price > SENTIMENT_GAS_THRESHOLD:
        return "urgent"
    return "neutral"


def _sentiment_recommendations(value: int, gas_price: int) -> List[str]:
    recommendations: List[str] = []
    if value > SENTIMENT_VALUE_THRESHOLD:
        recommendations.append("Consider splitting large transactions to reduce risk")
    if gas_price > SENTIMENT_GAS_THRESHOLD:
        recommendations.append(
            "High gas prices indicate network congestion - consider timing trades better"
        )
    return recommendations


def analyze_market_sentiment(tx: RawTransaction) -> Dict[str, Any]:
    """Raises ValueError when value or gas price is not an integer amount."""
    value = int(tx.value)
    gas_price = int(tx.gas_price or "0")
    congested = gas_price > SENTIMENT_GAS_THRESHOLD
    large = value > SENTIMENT_VALUE_THRESHOLD

    return {
        "marketSentiment": {
            "overall": _overall_sentiment(value, gas_price),
            "confidence": 0.7,
            "momentum": {"trend": "positive", "strength": 0.6},
        },
        "emotionalBias": {
            "fomo": 0.8 if congested else 0.3,
            "fearLevel": 0.7 if value < FEAR_VALUE_THRESHOLD else 0.2,
            "greedIndex": 0.8 if large else 0.4,
        },
        "confidenceLevel": {
            "score": 0.8 if large else 0.5,
            "stability": 0.4 if congested else 0.7,
        },
        "marketTiming": {
            "timing": {"phase": "entry", "quality": "good"},
            "accuracy": 0.5,
            "consistency": 0.6,
            "recommendations": _sentiment_recommendations(value, gas_price),
        },
    }


# ---------------------------------------------------------------------------
# Volume
# ---------------------------------------------------------------------------

def _volume_bucket(value: float, labels: tuple[str, str, str]) -> str:
    if value > LARGE_VOLUME:
        return labels[0]
    if value > MEDIUM_VOLUME:
        return labels[1]
    return labels[2]


def analyze_volume(tx: RawTransaction) -> Dict[str, Any]:
    value = _to_number(tx.value)
    gas_price = _to_number(tx.gas_price)
    return {
        "transactionValue": _format_value(tx.value),
        "gasMetrics": {
            "price": _format_value(tx.gas_price),
            "spent": _format_value(tx.gas_spent),
        },
        "volumeProfile": {
            "size": _volume_bucket(value, ("large", "medium", "small")),
            "impact": _volume_bucket(value, ("high", "medium", "low")),
        },
        "metrics": {
            "valueInEth": value / WEI_PER_ETH,
            "gasPriceInGwei": gas_price / WEI_PER_GWEI,
        },
    }


# ---------------------------------------------------------------------------
# Reputation
# ---------------------------------------------------------------------------

def calculate_sender_score(tx: RawTransaction) -> int:
    score = 50
    if _to_number(tx.value) > HIGH_VALUE:
        score -= 10
    if _to_number(tx.gas_price) > HIGH_GAS_PRICE:
        score -= 5
    return max(0, min(100, score))


def identify_risk_factors(tx: RawTransaction) -> List[str]:
    factors: List[str] = []
    if _to_number(tx.value) > HIGH_VALUE:
        factors.append("High-value transaction")
    if _to_number(tx.gas_price) > HIGH_GAS_PRICE:
        factors.append("High gas price - potential urgency")
    if _is_contract_address(tx.to_address):
        factors.append("Contract interaction")
    return factors


def create_transaction_profile(tx: RawTransaction) -> Dict[str, Any]:
    return {
        "type": "contract_interaction" if _is_contract_address(tx.to_address) else "standard_transfer",
        "value": _format_value(tx.value),
        "gasUsage": {
            "price": _format_value(tx.gas_price),
            "spent": _format_value(tx.gas_spent),
        },
        "timestamp": tx.block_signed_at,
    }


def assess_security_metrics(tx: RawTransaction) -> Dict[str, Any]:
    high_value = _to_number(tx.value) > HIGH_VALUE
    high_gas = _to_number(tx.gas_price) > HIGH_GAS_PRICE
    if high_value and high_gas:
        risk_level = "high"
    elif high_value or high_gas:
        risk_level = "medium"
    else:
        risk_level = "low"
    return {
        "riskLevel": risk_level,
        "complexityScore": "high" if tx.input and len(tx.input) > 100 else "low",
        "validationStatus": {
            "isValid": True,
            "checks": ["valid_addresses", "valid_value", "valid_gas"],
        },
    }


def analyze_reputation(tx: RawTransaction) -> Dict[str, Any]:
    return {
        "senderScore": attempt(calculate_sender_score, tx).to_payload(),
        "riskFactors": attempt(identify_risk_factors, tx).to_payload(),
        "transactionProfile": attempt(create_transaction_profile, tx).to_payload(),
        "securityMetrics": attempt(assess_security_metrics, tx).to_payload(),
    }


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def fetch_single_transaction(
    provider: TransactionProvider, chain: str, tx_hash: str
) -> RawTransaction:
    response = provider.get_transaction(chain, tx_hash)
    if not isinstance(response, Mapping):
        raise ProviderError("Invalid response from blockchain data provider")
    if response.get("error"):
        raise ProviderError(response.get("error_message") or "Provider error")
    items = response.get("items") or []
    if not isinstance(items, list) or not items:
        raise TransactionNotFound(f"No transaction found for hash {tx_hash}")
    return RawTransaction.model_validate(items[0])


@dataclass(frozen=True)
class AnalysisTool:
    name: str
    description: str
    analyze: Callable[[RawTransaction], Dict[str, Any]]
    failure_message: str

    def run(self, provider: TransactionProvider, chain: str, tx_hash: str) -> Dict[str, Any]:
        """Fetch the transaction independently, then analyze it."""
        tx = fetch_single_transaction(provider, chain, tx_hash)
        return self.analyze(tx)

    def error_marker(self) -> Dict[str, str]:
        return {"error": self.failure_message}


# Result field -> tool
TOOLS: Dict[str, AnalysisTool] = {
    "tradingPattern": AnalysisTool(
        name="trading_pattern",
        description="Analyzes trading patterns and behavior",
        analyze=analyze_trading_pattern,
        failure_message="Trading pattern analysis failed",
    ),
    "marketSentiment": AnalysisTool(
        name="market_sentiment",
        description="Analyzes market sentiment and psychological factors",
        analyze=analyze_market_sentiment,
        failure_message="Market sentiment analysis failed",
    ),
    "volumeAnalysis": AnalysisTool(
        name="volume_analysis",
        description="Analyzes trading volumes and liquidity patterns",
        analyze=analyze_volume,
        failure_message="Volume analysis failed",
    ),
    "reputationAnalysis": AnalysisTool(
        name="reputation_analysis",
        description="Analyzes transaction reputation and risk factors",
        analyze=analyze_reputation,
        failure_message="Reputation analysis failed",
    ),
}
