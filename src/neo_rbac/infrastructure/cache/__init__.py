"""Effective permission cache implementations."""

from .single_flight import SingleFlight
from .memory_permission_cache import MemoryPermissionCache, MemoryCacheEntry
from .redis_permission_cache import RedisPermissionCache

__all__ = [
    "SingleFlight",
    "MemoryPermissionCache",
    "MemoryCacheEntry",
    "RedisPermissionCache",
]
