import math

import pytest

from blockwatch.core.errors import NumericParseError
from blockwatch.decoding.block_info import BlockInfo
from blockwatch.decoding.utils import (
    NUMERIC_SENTINEL,
    decode_extra_data,
    hex_to_int,
    int_to_hex,
    parse_numeric,
)


@pytest.mark.parametrize("n", [0, 1, 255, 17785601, 2**64 - 1, 2**256 - 1])
def test_hex_round_trip(n: int) -> None:
    assert hex_to_int(int_to_hex(n)) == n
    assert hex_to_int("0x" + format(n, "x")) == n


def test_hex_to_int_accepts_bare_and_uppercase() -> None:
    assert hex_to_int("10f6301") == 17785601
    assert hex_to_int("0X10F6301") == 17785601


@pytest.mark.parametrize("bad", ["0x", "", "0xzz", "0x-1", None, True, -3])
def test_hex_to_int_rejects(bad) -> None:
    with pytest.raises(NumericParseError):
        hex_to_int(bad)


def test_int_to_hex_rejects_negative() -> None:
    with pytest.raises(ValueError):
        int_to_hex(-1)


def test_decode_extra_data() -> None:
    assert decode_extra_data("0x" + b"beaverbuild.org".hex()) == "beaverbuild.org"
    assert decode_extra_data("0x") == ""
    assert decode_extra_data(None) == ""
    # invalid UTF-8 is replaced, not fatal
    assert decode_extra_data("0xff61") == "�a"


def test_decode_extra_data_invalid_hex() -> None:
    with pytest.raises(NumericParseError):
        decode_extra_data("0xabc")


class TestParseNumeric:
    def test_decimal_string(self) -> None:
        res = parse_numeric("3.0")
        assert res.ok
        assert res.value == 3.0

    def test_hex_string(self) -> None:
        assert parse_numeric("0xde0b6b3a7640000").value == 1e18

    def test_json_numbers(self) -> None:
        assert parse_numeric(2).value == 2.0
        assert parse_numeric(1.25).value == 1.25

    def test_missing_is_sentinel_without_error(self) -> None:
        res = parse_numeric(None)
        assert res.value == NUMERIC_SENTINEL
        assert res.error is None

    @pytest.mark.parametrize("bad", ["abc", "", "0xnothex", "nan", "inf", True, [1]])
    def test_failures_degrade_to_sentinel(self, bad) -> None:
        res = parse_numeric(bad)
        assert not res.ok
        assert res.value == NUMERIC_SENTINEL
        assert isinstance(res.error, NumericParseError)
        assert not math.isnan(res.value)

    @pytest.mark.parametrize("huge", [10**400, "0x" + "f" * 300])
    def test_out_of_float_range_degrades_to_sentinel(self, huge) -> None:
        res = parse_numeric(huge)
        assert res.value == NUMERIC_SENTINEL
        assert res.error is not None
        assert res.error.reason == "out of float range"


def test_block_info_aliases() -> None:
    info = BlockInfo.model_validate(
        {
            "block_number": 17785601,
            "transactions": [{"label": "mev", "value": 1}],
            "unexpected": "ignored",
        }
    )
    assert info.txs[0].tx_type == "mev"
    assert info.txs[0].value == 1
    assert info.builder is None
