"""Chain records as returned by the transaction data provider, and the trades
reconstructed from them.

Provider records are validated here, at the boundary. Anything downstream can
rely on field presence: missing values are normalised to concrete defaults and
malformed log shapes are coerced to empty ones rather than rejected.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def parse_timestamp_ms(value: Any) -> Optional[int]:
    """Parse an ISO-8601 block timestamp into epoch milliseconds."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        # Offsets can push a year-1 or year-9999 stamp outside datetime's range
        parsed = parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None
    return int(parsed.timestamp() * 1000)


def _integer_string(value: Any, default: Optional[str]) -> Optional[str]:
    if value is None:
        return default
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class DecodedParam(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    name: Optional[str] = None
    type: Optional[str] = None
    indexed: Optional[bool] = None
    decoded: Optional[bool] = None
    value: Any = None

    @field_validator("name", "type", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("indexed", "decoded", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> Optional[bool]:
        return value if isinstance(value, bool) else None


class DecodedEvent(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    name: Optional[str] = None
    signature: Optional[str] = None
    params: List[DecodedParam] = Field(default_factory=list)

    @field_validator("params", mode="before")
    @classmethod
    def _coerce_params(cls, value: Any) -> List[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [item if isinstance(item, dict) else {"value": item} for item in value]

    @field_validator("name", "signature", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None


class LogEvent(BaseModel):
    """One decoded contract event inside a transaction."""

    model_config = ConfigDict(extra="allow", frozen=True)

    sender_address: Optional[str] = None
    sender_contract_ticker_symbol: Optional[str] = None
    decoded: Optional[DecodedEvent] = None

    @field_validator("decoded", mode="before")
    @classmethod
    def _coerce_decoded(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, DecodedEvent)) else None

    @field_validator("sender_address", "sender_contract_ticker_symbol", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @property
    def event_name(self) -> Optional[str]:
        return self.decoded.name if self.decoded else None

    def param_value(self, index: int) -> Any:
        if not self.decoded or index >= len(self.decoded.params):
            return None
        return self.decoded.params[index].value


class RawTransaction(BaseModel):
    """Chain-native transaction record with its ordered decoded log events."""

    model_config = ConfigDict(extra="allow", frozen=True)

    tx_hash: str
    block_height: Optional[int] = None
    block_signed_at: Optional[str] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    value: str = "0"
    gas_price: Optional[str] = None
    gas_spent: Optional[str] = None
    successful: bool = True
    input: Optional[str] = None
    log_events: List[LogEvent] = Field(default_factory=list)

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Any:
        return _integer_string(value, "0")

    @field_validator("gas_price", "gas_spent", mode="before")
    @classmethod
    def _coerce_gas(cls, value: Any) -> Any:
        return _integer_string(value, None)

    @field_validator("block_signed_at", "from_address", "to_address", "input", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("block_height", mode="before")
    @classmethod
    def _coerce_height(cls, value: Any) -> Optional[int]:
        if isinstance(value, bool) or value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            return None

    @field_validator("successful", mode="before")
    @classmethod
    def _coerce_successful(cls, value: Any) -> bool:
        # Only an explicit false marks a failed transaction
        return value is not False

    @field_validator("log_events", mode="before")
    @classmethod
    def _coerce_logs(cls, value: Any) -> List[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, (dict, LogEvent))]

    @property
    def timestamp_ms(self) -> Optional[int]:
        return parse_timestamp_ms(self.block_signed_at)


class TokenAmount(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str = ""
    symbol: str = ""
    amount: str = "0"

    @property
    def is_empty(self) -> bool:
        return not self.address


EMPTY_TOKEN = TokenAmount()


def amount_to_float(amount: Any) -> float:
    """Float view of a decimal-string amount; NaN when it does not parse."""
    try:
        return float(amount)
    except (TypeError, ValueError):
        return math.nan


def amount_is_nonzero(amount: Any) -> bool:
    try:
        parsed = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return False
    return not parsed.is_nan() and parsed != 0


class Trade(BaseModel):
    """A DEX interaction reconstructed from one transaction's transfer logs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    block_height: Optional[int] = None
    timestamp: Optional[int] = None  # epoch milliseconds
    tx_hash: str
    wallet_address: str = ""
    dex: str = "unknown"
    token_in: TokenAmount = EMPTY_TOKEN
    token_out: TokenAmount = EMPTY_TOKEN
