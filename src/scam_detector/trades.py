"""Trade classification and reconstruction.

A chain only records transfers, never "trades". A swap through a known DEX
router is rebuilt from the transaction's Transfer logs: the first transfer
into the router is what the trader paid (token in), the first transfer out of
the router is what the trader received (token out).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .models import EMPTY_TOKEN, RawTransaction, TokenAmount, Trade, amount_is_nonzero

logger = logging.getLogger(__name__)

# Router address (lowercase) -> venue
DEX_ROUTERS: Dict[str, str] = {
    "0x7a250d5630b4cf539739df2c5dacb4c659f2488d": "uniswap_v2",
    "0xe592427a0aece92de3edee1f18e0157c05861564": "uniswap_v3",
    "0x68b3465833fb72a70ecdf485e0e4c7bd8665fc45": "uniswap",
    "0xd9e1ce17f2641f24ae83637ab66a2cca9c378b9f": "sushiswap",
    "0x1111111254eeb25477b68fb85ed929f73a960582": "1inch",
    "0x10ed43c718714eb63d5aa57b78b54704e256024e": "pancakeswap",
    "0xd89adc20c400b6c45086a7f6ab2dca19745b89c2": "jumper",
    "0x69c6c08b91010c88c95775b6fd768e5b04efc106": "jumper",
    "0x0000000022d53366457f9d5e68ec105046fc4383": "jumper",
}

UNKNOWN_VENUE = "unknown"
UNKNOWN_SYMBOL = "UNKNOWN"
NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_SYMBOLS: Dict[str, str] = {
    "eth-mainnet": "ETH",
    "bsc-mainnet": "BNB",
    "matic-mainnet": "MATIC",
    "avalanche-mainnet": "AVAX",
    "fantom-mainnet": "FTM",
}
DEFAULT_NATIVE_SYMBOL = "ETH"

TRANSFER_EVENT = "Transfer"
# Positional parameters of a decoded Transfer(from, to, value)
_FROM, _TO, _VALUE = 0, 1, 2


@dataclass(frozen=True)
class DexClassification:
    is_dex: bool
    venue: Optional[str] = None


def _lower(value: Any) -> Optional[str]:
    return value.lower() if isinstance(value, str) else None


def _amount_string(value: Any) -> str:
    if value is None or value == "":
        return "0"
    if isinstance(value, bool):
        return str(int(value))
    return str(value)


def classify_transaction(
    tx: RawTransaction, extra_routers: Iterable[str] = ()
) -> DexClassification:
    """Decide whether the transaction targets a DEX router, and which one."""
    to_address = _lower(tx.to_address)
    if not to_address:
        return DexClassification(is_dex=False)
    venue = DEX_ROUTERS.get(to_address)
    if venue:
        return DexClassification(is_dex=True, venue=venue)
    if to_address in {_lower(addr) for addr in extra_routers}:
        return DexClassification(is_dex=True, venue=UNKNOWN_VENUE)
    return DexClassification(is_dex=False)


def _first_transfer(tx: RawTransaction, *, param_index: int) -> TokenAmount:
    router = _lower(tx.to_address)
    if not router:
        return EMPTY_TOKEN
    for log in tx.log_events:
        if log.event_name != TRANSFER_EVENT:
            continue
        if _lower(log.param_value(param_index)) != router:
            continue
        return TokenAmount(
            address=log.sender_address or "",
            symbol=log.sender_contract_ticker_symbol or UNKNOWN_SYMBOL,
            amount=_amount_string(log.param_value(_VALUE)),
        )
    return EMPTY_TOKEN


def extract_token_in(tx: RawTransaction, chain: Optional[str] = None) -> TokenAmount:
    """What the trader paid: first transfer into the router, else the native value."""
    token_in = _first_transfer(tx, param_index=_TO)
    if not token_in.is_empty:
        return token_in
    if amount_is_nonzero(tx.value):
        return TokenAmount(
            address=NATIVE_TOKEN_ADDRESS,
            symbol=NATIVE_SYMBOLS.get(chain or "", DEFAULT_NATIVE_SYMBOL),
            amount=tx.value,
        )
    return EMPTY_TOKEN


def extract_token_out(tx: RawTransaction) -> TokenAmount:
    """What the trader received: first transfer out of the router."""
    return _first_transfer(tx, param_index=_FROM)


def extract_trade(
    tx: RawTransaction, venue: str, chain: Optional[str] = None
) -> Optional[Trade]:
    token_in = extract_token_in(tx, chain)
    token_out = extract_token_out(tx)
    if token_in.is_empty and token_out.is_empty:
        logger.debug(
            "Skipping transaction - no token transfers found",
            extra={"extra": {"tx_hash": tx.tx_hash}},
        )
        return None
    return Trade(
        block_height=tx.block_height,
        timestamp=tx.timestamp_ms,
        tx_hash=tx.tx_hash,
        wallet_address=tx.from_address or "",
        dex=venue or UNKNOWN_VENUE,
        token_in=token_in,
        token_out=token_out,
    )


def reconstruct_trades(
    transactions: Iterable[RawTransaction],
    *,
    chain: Optional[str] = None,
    extra_routers: Iterable[str] = (),
) -> List[Trade]:
    """Classify then extract, in input order. Non-DEX transactions are dropped."""
    routers = list(extra_routers)
    trades: List[Trade] = []
    total = 0
    dex_count = 0
    for tx in transactions:
        total += 1
        classification = classify_transaction(tx, routers)
        if not classification.is_dex:
            continue
        dex_count += 1
        trade = extract_trade(tx, classification.venue or UNKNOWN_VENUE, chain)
        if trade is not None:
            trades.append(trade)
    logger.info(
        "Reconstructed %d trades from %d DEX transactions out of %d total",
        len(trades),
        dex_count,
        total,
        extra={"extra": {"chain": chain}},
    )
    return trades
