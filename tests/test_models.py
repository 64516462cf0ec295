import pytest
from pydantic import ValidationError

from scam_detector.models import (
    RawTransaction,
    Trade,
    amount_is_nonzero,
    amount_to_float,
    parse_timestamp_ms,
)

from factories import swap_tx, trade


def test_parse_timestamp_ms_handles_zulu_and_offsets():
    assert parse_timestamp_ms("1970-01-01T00:00:01Z") == 1000
    assert parse_timestamp_ms("1970-01-01T01:00:00+01:00") == 0
    assert parse_timestamp_ms("1970-01-01T00:00:02") == 2000


@pytest.mark.parametrize("value", [None, "", "not a date", 12345])
def test_parse_timestamp_ms_rejects_garbage(value):
    assert parse_timestamp_ms(value) is None


def test_raw_transaction_normalises_amounts_to_strings():
    tx = RawTransaction.model_validate(swap_tx(value=10**30))
    assert tx.value == str(10**30)
    assert tx.gas_price == "20000000000"
    assert tx.gas_spent == "150000"


def test_raw_transaction_defaults_missing_fields():
    tx = RawTransaction.model_validate(
        {"tx_hash": "0x1", "value": None, "successful": None, "log_events": None}
    )
    assert tx.value == "0"
    assert tx.successful is True
    assert tx.log_events == []
    assert tx.timestamp_ms is None


def test_raw_transaction_only_explicit_false_is_unsuccessful():
    assert RawTransaction.model_validate({"tx_hash": "0x1", "successful": False}).successful is False


def test_raw_transaction_requires_hash():
    with pytest.raises(ValidationError):
        RawTransaction.model_validate({"block_height": 1})


def test_malformed_log_shapes_are_coerced():
    tx = RawTransaction.model_validate(
        swap_tx(
            logs=[
                "garbage",
                {"sender_address": 5, "decoded": "nope"},
                {"decoded": {"name": "Transfer", "params": "oops"}},
                {"decoded": {"name": "Transfer", "params": ["0xabc", {"value": "0xdef"}]}},
            ]
        )
    )
    assert len(tx.log_events) == 3
    assert tx.log_events[0].sender_address is None
    assert tx.log_events[0].decoded is None
    assert tx.log_events[1].decoded.params == []
    assert tx.log_events[2].param_value(0) == "0xabc"
    assert tx.log_events[2].param_value(1) == "0xdef"
    assert tx.log_events[2].param_value(7) is None


def test_raw_transaction_keeps_provider_extras():
    tx = RawTransaction.model_validate(swap_tx(fees_paid="123"))
    assert tx.model_dump()["fees_paid"] == "123"


def test_trade_serialises_camel_case():
    dumped = trade(amount_in="1", amount_out="2").model_dump(by_alias=True)
    assert set(dumped) == {
        "blockHeight",
        "timestamp",
        "txHash",
        "walletAddress",
        "dex",
        "tokenIn",
        "tokenOut",
    }
    assert dumped["tokenIn"] == {
        "address": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
        "symbol": "USDC",
        "amount": "1",
    }
    assert isinstance(Trade.model_validate(dumped), Trade)


def test_amount_helpers():
    assert amount_to_float("1500") == 1500.0
    assert amount_to_float("abc") != amount_to_float("abc")  # NaN
    assert amount_is_nonzero("5")
    assert not amount_is_nonzero("0")
    assert not amount_is_nonzero("0.000")
    assert not amount_is_nonzero("")
    assert not amount_is_nonzero(None)
    assert not amount_is_nonzero("NaN")


@pytest.mark.parametrize(
    "value", ["9999-12-31T23:59:59-01:00", "0001-01-01T00:00:00+01:00"]
)
def test_parse_timestamp_ms_rejects_out_of_range_after_offset(value):
    assert parse_timestamp_ms(value) is None


def test_odd_param_shapes_are_coerced_not_rejected():
    tx = RawTransaction.model_validate(
        swap_tx(
            block_height="not-a-block",
            logs=[
                {
                    "decoded": {
                        "name": "Sync",
                        "params": [{"name": 5, "type": ["uint"], "indexed": "yes", "value": 1}],
                    }
                }
            ],
        )
    )
    param = tx.log_events[0].decoded.params[0]
    assert param.name is None
    assert param.type is None
    assert param.indexed is None
    assert param.value == 1
    assert tx.block_height is None
