"""Decoding of node quantities and metadata-service payloads.

This package provides:
- Hex/decimal parsing with an explicit sentinel policy (`parse_numeric`)
- extraData rendering (`decode_extra_data`)
- Pydantic models of the metadata payload (`BlockInfo`, `TransactionInfo`)
"""

from blockwatch.decoding.block_info import BlockInfo, TransactionInfo
from blockwatch.decoding.utils import (
    NUMERIC_SENTINEL,
    ParseResult,
    decode_extra_data,
    hex_to_bytes,
    hex_to_int,
    int_to_hex,
    parse_numeric,
)

__all__ = [
    "BlockInfo",
    "TransactionInfo",
    "NUMERIC_SENTINEL",
    "ParseResult",
    "decode_extra_data",
    "hex_to_bytes",
    "hex_to_int",
    "int_to_hex",
    "parse_numeric",
]
