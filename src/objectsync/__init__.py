"""
ObjectSync - incremental mirroring between S3-compatible object stores and
local directories.

Provides incremental diffing against persisted per-bucket state, a bounded
transfer worker pool, and sequential multi-bucket orchestration.
"""

__version__ = "1.0.0"
__author__ = "ObjectSync Team"

from objectsync.core.config import ObjectSyncConfig
from objectsync.sync.orchestrator import JobOrchestrator

__all__ = ["ObjectSyncConfig", "JobOrchestrator", "__version__"]
