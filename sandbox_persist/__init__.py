"""Persist sandbox config, workspace and skills to R2."""

from sandbox_persist.errors import CommandRunnerError, MountError, NoConfigFoundError, SandboxSyncError
from sandbox_persist.models import SourceLayout, SyncErrorKind, SyncPlan, SyncResult, SyncStep
from sandbox_persist.runner import CommandRunner, MountManager, ProcessLogs
from sandbox_persist.sync import (
    build_sync_plan,
    read_last_sync,
    resolve_source_layout,
    sync_to_storage,
    verify_completion,
)
from sandbox_persist.utils.config import StorageCredentials, SyncPaths

__all__ = [
    "CommandRunner",
    "CommandRunnerError",
    "MountError",
    "MountManager",
    "NoConfigFoundError",
    "ProcessLogs",
    "SandboxSyncError",
    "SourceLayout",
    "StorageCredentials",
    "SyncErrorKind",
    "SyncPaths",
    "SyncPlan",
    "SyncResult",
    "SyncStep",
    "build_sync_plan",
    "read_last_sync",
    "resolve_source_layout",
    "sync_to_storage",
    "verify_completion",
]
