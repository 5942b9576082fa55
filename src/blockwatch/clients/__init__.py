from blockwatch.clients.metadata import MetadataFetcher
from blockwatch.clients.rpc import RPC

__all__ = ["MetadataFetcher", "RPC"]
