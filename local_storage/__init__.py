"""Local storage module for CTO Studio.

This module provides the key-value persistence port the studio reads
project data from and writes agreements and pipeline results to.
"""

from local_storage.kv_store import (
    AGREEMENT_KEY,
    ARTIFACT_KEY,
    PROJECT_DATA_KEY,
    RUN_KEY,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    StoreError,
)

__all__ = [
    "AGREEMENT_KEY",
    "ARTIFACT_KEY",
    "PROJECT_DATA_KEY",
    "RUN_KEY",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "StoreError",
]
