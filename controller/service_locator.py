"""Service locator for the storage components shared by the routes."""

from typing import Optional

from chunkserver.chunk_storage import ChunkStore
from chunkserver.merge_engine import MergeEngine
from controller.rate_limit import RateLimiter

_chunk_store: Optional[ChunkStore] = None
_merge_engine: Optional[MergeEngine] = None
_rate_limiter: Optional[RateLimiter] = None


def set_chunk_store(store: ChunkStore):
    """Set global chunk store instance"""
    global _chunk_store
    _chunk_store = store


def get_chunk_store() -> ChunkStore:
    """Get global chunk store instance"""
    if _chunk_store is None:
        raise RuntimeError("Chunk store has not been initialized")
    return _chunk_store


def set_merge_engine(engine: MergeEngine):
    """Set global merge engine instance"""
    global _merge_engine
    _merge_engine = engine


def get_merge_engine() -> MergeEngine:
    """Get global merge engine instance"""
    if _merge_engine is None:
        raise RuntimeError("Merge engine has not been initialized")
    return _merge_engine


def set_rate_limiter(limiter: Optional[RateLimiter]):
    """Set global rate limiter instance (None disables limiting)"""
    global _rate_limiter
    _rate_limiter = limiter


def get_rate_limiter() -> Optional[RateLimiter]:
    """Get global rate limiter instance"""
    return _rate_limiter
