from blockwatch.core.use_cases.enrich_block import BlockEnricher, EnrichState
from blockwatch.core.use_cases.track_head import ChainHeadTracker

__all__ = ["BlockEnricher", "EnrichState", "ChainHeadTracker"]
