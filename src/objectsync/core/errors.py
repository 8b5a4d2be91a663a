"""
ObjectSync error kinds.

Every failure raised by the sync core is an ``ObjectSyncError`` subclass so
callers can branch on the kind of failure instead of its message:

- ``StoreConnectionError``: the object store is unreachable or rejects the
  credentials. Fatal for the job, raised before any transfer starts.
- ``EnumerationError``: a listing or directory walk failed. Fatal for the
  job; a partial catalog is never used.
- ``TransferError``: one object could not be moved (network, directory or
  file creation). Carries the offending key.
- ``TransferAggregateError``: all transfer errors of one scheduler run,
  raised only after every worker has exited.
- ``StateError``: the state file could not be read or written.
- ``ConfigError``: configuration is missing or invalid.
- ``OrchestrationError``: one or more jobs of a multi-job run failed.
"""

from __future__ import annotations

from collections.abc import Sequence


class ObjectSyncError(Exception):
    """Base class for all ObjectSync errors."""


class ConfigError(ObjectSyncError):
    """Raised when configuration is missing, malformed or incomplete."""


class StoreConnectionError(ObjectSyncError):
    """Raised when the object store cannot be reached or authenticated."""


class EnumerationError(ObjectSyncError):
    """Raised when the source side of a job cannot be listed."""


class StateError(ObjectSyncError):
    """Raised when a state file cannot be loaded or saved."""


class TransferError(ObjectSyncError):
    """Raised when a single object fails to transfer."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"transfer {key!r} failed: {message}")
        self.key = key


class TransferAggregateError(ObjectSyncError):
    """All transfer failures collected from one scheduler run."""

    def __init__(self, errors: Sequence[TransferError]) -> None:
        self.errors = list(errors)
        first = self.errors[0] if self.errors else None
        summary = f"{len(self.errors)} object(s) failed to transfer"
        if first is not None:
            summary += f" (first: {first})"
        super().__init__(summary)

    @property
    def failed_keys(self) -> list[str]:
        return [error.key for error in self.errors]


class OrchestrationError(ObjectSyncError):
    """Raised when at least one job in a run failed."""

    def __init__(self, failures: dict[str, str]) -> None:
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"{len(self.failures)} job(s) failed: {names}")
