from __future__ import annotations

# schema tag carried by every emitted block record
LOG_VERSION = "1"

# JSON-RPC methods
ETH_BLOCK_NUMBER = "eth_blockNumber"
ETH_GET_HEADER_BY_NUMBER = "eth_getHeaderByNumber"
ETH_GET_BLOCK_BY_NUMBER = "eth_getBlockByNumber"

WEI_PER_GWEI = 10**9

# bucket for transactions the metadata service left untagged
UNKNOWN_CLASS = "unknown"
