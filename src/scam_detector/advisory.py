"""Advisory text analysis of a trade batch by a language model.

The model's answer is free text, so only a coarse risk label and a fixed set
of pattern keywords are read out of it. The signal is best effort: when the
service is disabled, unconfigured or failing, a neutral zero-confidence
analysis is returned instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Sequence

import openai
from openai import OpenAI

from .config import Settings
from .models import Trade
from .schemas import AdvisoryAnalysis

logger = logging.getLogger(__name__)

PATTERN_KEYWORDS = [
    "rug pull",
    "honeypot",
    "pump and dump",
    "flash loan",
    "front running",
    "price manipulation",
    "phishing",
    "impersonation",
]

SYSTEM_PROMPT = "You are a blockchain security expert analyzing transactions for scam patterns."

USER_PROMPT_TEMPLATE = """Analyze these blockchain transactions for potential scam patterns:
{trades}

Consider:
1. Unusual trading patterns
2. Known scam token interactions
3. Suspicious contract interactions
4. Price manipulation patterns
5. Liquidity removal patterns
6. Flash loan attack patterns
7. Front-running patterns

Provide a risk assessment and identify any suspicious patterns."""


def neutral_analysis() -> AdvisoryAnalysis:
    return AdvisoryAnalysis(risk_assessment="unknown", confidence=0.0, detected_patterns=[])


def extract_patterns(text: str) -> List[str]:
    lowered = text.lower()
    return [keyword for keyword in PATTERN_KEYWORDS if keyword in lowered]


def parse_advisory_text(text: str, confidence: float) -> AdvisoryAnalysis:
    lowered = text.lower()
    if "high risk" in lowered:
        assessment = "high"
    elif "medium risk" in lowered:
        assessment = "medium"
    else:
        assessment = "low"
    return AdvisoryAnalysis(
        risk_assessment=assessment,
        confidence=confidence,
        detected_patterns=extract_patterns(text),
    )


def build_prompt(trades: Sequence[Trade]) -> str:
    trade_data = [
        {
            "timestamp": trade.timestamp,
            "dex": trade.dex,
            "tokenIn": trade.token_in.model_dump(),
            "tokenOut": trade.token_out.model_dump(),
            "value": trade.token_in.amount,
        }
        for trade in trades
    ]
    return USER_PROMPT_TEMPLATE.format(trades=json.dumps(trade_data, indent=2))


class AdvisoryAnalyzer:
    """Wraps a chat-completions client; never raises from analyze()."""

    def __init__(self, settings: Settings, client: Optional[Any] = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def available(self) -> bool:
        if not self.settings.advisory_enabled:
            return False
        return self._client is not None or bool(self.settings.openai_api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.request_timeout_seconds,
            )
        return self._client

    def analyze(self, trades: Sequence[Trade]) -> AdvisoryAnalysis:
        if not trades or not self.available:
            return neutral_analysis()
        try:
            response = self._get_client().chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(trades)},
                ],
                temperature=self.settings.advisory_temperature,
            )
            content = response.choices[0].message.content
        except openai.OpenAIError as exc:
            logger.warning(
                "Advisory analysis unavailable: %s",
                exc,
                extra={"extra": {"error_kind": type(exc).__name__}},
            )
            return neutral_analysis()
        except (AttributeError, IndexError, TypeError, KeyError) as exc:
            logger.warning(
                "Advisory analysis returned a malformed response: %s",
                exc,
                extra={"extra": {"error_kind": type(exc).__name__}},
            )
            return neutral_analysis()
        if not isinstance(content, str):
            return neutral_analysis()
        return parse_advisory_text(content, self.settings.advisory_confidence)
