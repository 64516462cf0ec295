"""Collection pipeline: one wallet on one chain, fetched once and analyzed end to end.

Stages run in a single pass: fetching -> classifying/reconstructing ->
profiling -> scoring risk -> done. The provider call is the only stage that
can fail the run; every later stage is pure and absorbs malformed data.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from .advisory import AdvisoryAnalyzer
from .dal import TransactionProvider
from .fraud_detection import analyze_scam_patterns, detect_sophisticated_patterns
from .models import RawTransaction, parse_timestamp_ms
from .profiling import analyze_trader_profile
from .schemas import Timespan
from .trades import reconstruct_trades

logger = logging.getLogger(__name__)

INVALID_RESPONSE = "Invalid response from blockchain data provider"
UNKNOWN_ERROR = "Unknown error"

# Largest integer a JSON consumer can hold without losing precision
JSON_SAFE_INT = 2**53 - 1


class CollectionStage(str, Enum):
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    RECONSTRUCTING = "reconstructing"
    PROFILING = "profiling"
    SCORING_RISK = "scoring_risk"
    DONE = "done"
    FAILED = "failed"


def normalize_big_ints(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        return {key: normalize_big_ints(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [normalize_big_ints(item) for item in obj]
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, int) and abs(obj) > JSON_SAFE_INT:
        return str(obj)
    if isinstance(obj, Decimal):
        return str(obj)
    return obj


def _enter(stage: CollectionStage, chain: str, address: str) -> None:
    logger.info(
        "Collection stage: %s",
        stage.value,
        extra={"extra": {"stage": stage.value, "chain": chain, "address": address}},
    )


def _failure(message: Optional[str], chain: str, address: str) -> Dict[str, Any]:
    _enter(CollectionStage.FAILED, chain, address)
    return {"success": False, "error": message or UNKNOWN_ERROR}


def _to_iso(ms: int) -> str:
    moment = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def calculate_timespan(items: Iterable[Any]) -> Timespan:
    """Earliest and latest parseable block timestamp; empty when none parse."""
    stamps = sorted(
        ms
        for ms in (
            parse_timestamp_ms(item.get("block_signed_at")) if isinstance(item, Mapping) else None
            for item in items
        )
        if ms is not None
    )
    if not stamps:
        return Timespan()
    return Timespan(start=_to_iso(stamps[0]), end=_to_iso(stamps[-1]))


def normalize_raw_item(item: Any) -> Any:
    if not isinstance(item, Mapping):
        return item
    value = item.get("value")
    return {
        **item,
        "value": "0" if value is None or value == "" else str(value),
        "successful": item.get("successful") is not False,
    }


def parse_transactions(items: Sequence[Any]) -> List[RawTransaction]:
    """Validate provider items; malformed ones are dropped, never raised."""
    transactions: List[RawTransaction] = []
    for index, item in enumerate(items):
        try:
            transactions.append(RawTransaction.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed transaction at index %d",
                index,
                extra={"extra": {"errors": exc.error_count()}},
            )
    return transactions


def collect_transactions(
    chain: str,
    address: str,
    *,
    provider: TransactionProvider,
    advisor: Optional[AdvisoryAnalyzer] = None,
    extra_routers: Iterable[str] = (),
) -> Dict[str, Any]:
    _enter(CollectionStage.FETCHING, chain, address)
    try:
        response = provider.get_transactions_for_address(chain, address)
    except Exception as exc:
        logger.error(
            "Transaction collection failed: %s",
            exc,
            extra={"extra": {"chain": chain, "address": address}},
        )
        return _failure(str(exc), chain, address)

    if not isinstance(response, Mapping):
        return _failure(INVALID_RESPONSE, chain, address)
    if response.get("error"):
        return _failure(response.get("error_message"), chain, address)
    items = response.get("items")
    if not isinstance(items, list):
        return _failure(INVALID_RESPONSE, chain, address)

    all_transactions = [normalize_raw_item(item) for item in items]

    _enter(CollectionStage.CLASSIFYING, chain, address)
    parsed = parse_transactions(all_transactions)

    _enter(CollectionStage.RECONSTRUCTING, chain, address)
    trades = reconstruct_trades(parsed, chain=chain, extra_routers=extra_routers)

    _enter(CollectionStage.PROFILING, chain, address)
    profile = analyze_trader_profile(trades)

    _enter(CollectionStage.SCORING_RISK, chain, address)
    basic = analyze_scam_patterns(trades)
    advisory = advisor.analyze(trades) if advisor is not None else None
    sophisticated = detect_sophisticated_patterns(trades, advisory)

    scam_analysis: Dict[str, Any] = {
        **basic.model_dump(by_alias=True),
        "sophisticatedPatterns": sophisticated.patterns,
        "sophisticatedRiskLevel": sophisticated.risk_level,
        "confidence": sophisticated.confidence,
        "advisory": advisory.model_dump(by_alias=True) if advisory is not None else None,
    }

    result = {
        "success": True,
        "trades": [trade.model_dump(by_alias=True) for trade in trades],
        "profile": profile.model_dump(by_alias=True),
        "scamAnalysis": scam_analysis,
        "summary": {
            "totalTransactions": len(all_transactions),
            "dexTransactions": len(trades),
            "timespan": calculate_timespan(all_transactions).model_dump(),
            "transactions": all_transactions,
        },
    }
    _enter(CollectionStage.DONE, chain, address)
    return normalize_big_ints(result)
