from blockwatch.emission.emitter import RECORD_EVENT, RecordEmitter

__all__ = ["RECORD_EVENT", "RecordEmitter"]
