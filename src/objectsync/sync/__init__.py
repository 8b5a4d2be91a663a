"""
ObjectSync sync module.

Provides incremental diffing, concurrent transfer and multi-bucket
orchestration in both directions.
"""

from objectsync.sync.diff import DiffEngine, DiffResult
from objectsync.sync.engine import SyncEngine, SyncJob, SyncReport
from objectsync.sync.orchestrator import JobOrchestrator, RunSummary
from objectsync.sync.scheduler import TransferScheduler
from objectsync.sync.state import StateStore

__all__ = [
    "DiffEngine",
    "DiffResult",
    "SyncEngine",
    "SyncJob",
    "SyncReport",
    "JobOrchestrator",
    "RunSummary",
    "TransferScheduler",
    "StateStore",
]
