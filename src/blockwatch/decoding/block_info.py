"""Schema of the block-metadata service payload.

Numeric figures are accepted as hex strings, decimal strings or JSON numbers
and are kept raw here; the enricher parses them with `parse_numeric` so that
a single bad field degrades to the sentinel instead of rejecting the block.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Numeric = str | int | float | None


class TransactionInfo(BaseModel):
    """One transaction as classified by the metadata service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hash: str | None = None
    tx_type: str | None = Field(default=None, validation_alias=AliasChoices("type", "label", "class"))
    value: Numeric = None
    fee: Numeric = None
    tip: Numeric = None


class BlockInfo(BaseModel):
    """Block-level metadata: builder, proposer, payment figures and classified transactions."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    block_number: int | None = None
    block_hash: str | None = None
    builder: str | None = None
    builder_pubkey: str | None = None
    proposer_pubkey: str | None = None
    payment: Numeric = None
    payout: Numeric = None
    block_value: Numeric = None
    base_fee: Numeric = None  # gwei
    priority_fee: Numeric = None
    gas_used: Numeric = None
    tx_count: int | None = None
    txs: list[TransactionInfo] = Field(
        default_factory=list,
        validation_alias=AliasChoices("txs", "transactions"),
    )
