"""Scam-pattern detectors over a reconstructed trade sequence, and risk scoring.

Every detector is a pure function ``Sequence[Trade] -> bool``. Pairs and
triples are taken in array order exactly as given; callers that want
time-ordered semantics must sort first.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .models import Trade, amount_is_nonzero, amount_to_float
from .outcome import attempt
from .schemas import AdvisoryAnalysis, PatternFlags, RiskLevel, ScamAnalysis, SophisticatedAnalysis

logger = logging.getLogger(__name__)

Detector = Callable[[Sequence[Trade]], bool]

MAX_UINT256 = str(2**256 - 1)
ONE_HOUR_MS = 60 * 60 * 1000
RUG_PULL_MIN_VALUE = 1_000_000.0
PUMP_VOLUME_MULTIPLIER = 3.0
PUMP_MIN_SPIKES = 2
FLASH_LOAN_RATIO = 1000.0
FRONT_RUN_BLOCK_WINDOW = 2
SANDWICH_WINDOW_MS = 60_000

HIGH_RISK_THRESHOLD = 0.6
MEDIUM_RISK_THRESHOLD = 0.3
ADVISORY_WEIGHT = 0.5

# Flag name -> weight; iteration order is the warning order
PATTERN_WEIGHTS: Dict[str, float] = {
    "phishing": 0.3,
    "rug_pull": 0.3,
    "pump_and_dump": 0.2,
    "honeypot": 0.2,
}

PATTERN_WARNINGS: Dict[str, str] = {
    "phishing": "⚠️ Potential phishing attempt detected. Be cautious with token approvals.",
    "rug_pull": "⚠️ Suspicious liquidity patterns detected. Possible rug pull risk.",
    "pump_and_dump": (
        "⚠️ Unusual price manipulation patterns detected. Potential pump and dump scheme."
    ),
    "honeypot": "⚠️ Token shows characteristics of a honeypot. Selling might be restricted.",
}

FLASH_LOAN_LABEL = "Flash Loan Attack Pattern"
FRONT_RUNNING_LABEL = "Front-Running Pattern"
SANDWICH_LABEL = "Sandwich Attack Pattern"


# ---------------------------------------------------------------------------
# Basic bank
# ---------------------------------------------------------------------------

def detect_phishing_patterns(trades: Sequence[Trade]) -> bool:
    """An infinite (max uint256) approval amount flowing into a router."""
    return any(trade.token_in.amount == MAX_UINT256 for trade in trades)


def detect_rug_pull_patterns(trades: Sequence[Trade]) -> bool:
    """A high-value move less than an hour after the preceding trade."""
    for prev, trade in zip(trades, trades[1:]):
        if prev.timestamp is None or trade.timestamp is None:
            continue
        time_diff = trade.timestamp - prev.timestamp
        if time_diff < ONE_HOUR_MS and amount_to_float(trade.token_in.amount) > RUG_PULL_MIN_VALUE:
            return True
    return False


def detect_pump_and_dump_patterns(trades: Sequence[Trade]) -> bool:
    if len(trades) < 2:
        return False
    spikes = 0
    for prev, trade in zip(trades, trades[1:]):
        current_volume = amount_to_float(trade.token_in.amount)
        prev_volume = amount_to_float(prev.token_in.amount)
        if current_volume > prev_volume * PUMP_VOLUME_MULTIPLIER:
            spikes += 1
    return spikes >= PUMP_MIN_SPIKES


def detect_honeypot_patterns(trades: Sequence[Trade]) -> bool:
    """Tokens were acquired but never disposed of."""
    buys = sum(1 for t in trades if amount_is_nonzero(t.token_out.amount))
    sells = sum(1 for t in trades if amount_is_nonzero(t.token_in.amount))
    return buys > 0 and sells == 0


BASIC_DETECTORS: Dict[str, Detector] = {
    "phishing": detect_phishing_patterns,
    "rug_pull": detect_rug_pull_patterns,
    "pump_and_dump": detect_pump_and_dump_patterns,
    "honeypot": detect_honeypot_patterns,
}


def run_detector_bank(
    trades: Sequence[Trade],
    detectors: Optional[Dict[str, Detector]] = None,
) -> Tuple[PatternFlags, Dict[str, str]]:
    """Run every basic detector; a detector that raises counts as not detected."""
    flags: Dict[str, bool] = {}
    errors: Dict[str, str] = {}
    for name, detector in (detectors or BASIC_DETECTORS).items():
        outcome = attempt(detector, trades)
        flags[name] = bool(outcome.unwrap_or(False))
        if not outcome.is_ok:
            errors[name] = f"{outcome.error_kind}: {outcome.error_message}"
    return PatternFlags(**flags), errors


def calculate_risk_score(flags: PatternFlags) -> float:
    score = sum(
        weight for name, weight in PATTERN_WEIGHTS.items() if getattr(flags, name)
    )
    return min(1.0, round(score, 10))


def get_risk_level(score: float) -> RiskLevel:
    if score >= HIGH_RISK_THRESHOLD:
        return "high"
    if score >= MEDIUM_RISK_THRESHOLD:
        return "medium"
    return "low"


def generate_warnings(flags: PatternFlags) -> List[str]:
    return [text for name, text in PATTERN_WARNINGS.items() if getattr(flags, name)]


def analyze_scam_patterns(
    trades: Sequence[Trade],
    detectors: Optional[Dict[str, Detector]] = None,
) -> ScamAnalysis:
    flags, errors = run_detector_bank(trades, detectors)
    score = calculate_risk_score(flags)
    return ScamAnalysis(
        risk_level=get_risk_level(score),
        scam_probability=score,
        warnings=generate_warnings(flags),
        detected_patterns=flags,
        detector_errors=errors,
    )


# ---------------------------------------------------------------------------
# Sophisticated bank
# ---------------------------------------------------------------------------

def detect_flash_loan_pattern(trades: Sequence[Trade]) -> bool:
    """Wildly different trade sizes inside a single block."""
    blocks: Dict[int, List[float]] = defaultdict(list)
    for trade in trades:
        if trade.block_height is None:
            continue
        blocks[trade.block_height].append(amount_to_float(trade.token_in.amount))

    for values in blocks.values():
        if len(values) < 2 or any(math.isnan(v) for v in values):
            continue
        if max(values) > min(values) * FLASH_LOAN_RATIO:
            return True
    return False


def detect_front_running_pattern(trades: Sequence[Trade]) -> bool:
    """Two consecutive trades on the same pair within a couple of blocks."""
    for prev, trade in zip(trades, trades[1:]):
        if prev.block_height is None or trade.block_height is None:
            continue
        if trade.block_height - prev.block_height > FRONT_RUN_BLOCK_WINDOW:
            continue
        if (
            trade.token_in.symbol == prev.token_in.symbol
            and trade.token_out.symbol == prev.token_out.symbol
        ):
            return True
    return False


def detect_sandwich_pattern(trades: Sequence[Trade]) -> bool:
    """Outer trades on one token wrapping a different middle trade within a minute."""
    for first, middle, last in zip(trades, trades[1:], trades[2:]):
        if first.timestamp is None or last.timestamp is None:
            continue
        if last.timestamp - first.timestamp >= SANDWICH_WINDOW_MS:
            continue
        if (
            first.token_in.symbol == last.token_in.symbol
            and middle.token_in.symbol != first.token_in.symbol
        ):
            return True
    return False


SOPHISTICATED_DETECTORS: List[Tuple[str, Detector, float]] = [
    (FLASH_LOAN_LABEL, detect_flash_loan_pattern, 0.4),
    (FRONT_RUNNING_LABEL, detect_front_running_pattern, 0.3),
    (SANDWICH_LABEL, detect_sandwich_pattern, 0.3),
]


def detect_sophisticated_patterns(
    trades: Sequence[Trade],
    advisory: Optional[AdvisoryAnalysis] = None,
) -> SophisticatedAnalysis:
    patterns: List[str] = []
    risk_score = 0.0
    for label, detector, weight in SOPHISTICATED_DETECTORS:
        if attempt(detector, trades).unwrap_or(False):
            patterns.append(label)
            risk_score += weight

    if advisory is not None:
        patterns.extend(advisory.detected_patterns)
        risk_score += max(0.0, advisory.confidence) * ADVISORY_WEIGHT
    risk_score = min(round(risk_score, 10), 1.0)

    return SophisticatedAnalysis(
        patterns=patterns,
        risk_level=get_risk_level(risk_score),
        confidence=risk_score,
    )
