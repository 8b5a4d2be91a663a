"""
ObjectSync Core - shared building blocks.

Contains configuration, data models, error kinds, logging, progress
tracking and the job runner.
"""

from objectsync.core.config import ObjectSyncConfig, load_config
from objectsync.core.errors import (
    ConfigError,
    EnumerationError,
    ObjectSyncError,
    OrchestrationError,
    StateError,
    StoreConnectionError,
    TransferAggregateError,
    TransferError,
)
from objectsync.core.job import Job, JobResult, JobRunner, JobStatus
from objectsync.core.logging import get_logger, setup_logging
from objectsync.core.progress import ProgressSnapshot, ProgressTracker

__all__ = [
    "ObjectSyncConfig",
    "load_config",
    "ConfigError",
    "EnumerationError",
    "ObjectSyncError",
    "OrchestrationError",
    "StateError",
    "StoreConnectionError",
    "TransferAggregateError",
    "TransferError",
    "Job",
    "JobResult",
    "JobRunner",
    "JobStatus",
    "get_logger",
    "setup_logging",
    "ProgressSnapshot",
    "ProgressTracker",
]
