import re
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

# `date -Iseconds` output, e.g. 2024-01-15T10:30:00+00:00
TIMESTAMP_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


def is_valid_timestamp(value: Optional[str]) -> bool:
    """True when value is non-empty and starts with YYYY-MM-DD."""
    return bool(value) and TIMESTAMP_PREFIX.match(value) is not None


class SyncErrorKind(str, Enum):
    NOT_CONFIGURED = "NotConfigured"
    MOUNT_FAILED = "MountFailed"
    SOURCE_VERIFICATION_FAILED = "SourceVerificationFailed"
    NO_CONFIG_FOUND = "NoConfigFound"
    SYNC_FAILED = "SyncFailed"
    SYNC_ERROR = "SyncError"


# Short labels returned in SyncResult.error
ERROR_MESSAGES = {
    SyncErrorKind.NOT_CONFIGURED: "R2 storage is not configured",
    SyncErrorKind.MOUNT_FAILED: "Failed to mount R2 storage",
    SyncErrorKind.SOURCE_VERIFICATION_FAILED: "Failed to verify source files",
    SyncErrorKind.NO_CONFIG_FOUND: "Sync aborted: no config file found",
    SyncErrorKind.SYNC_FAILED: "Sync failed",
    SyncErrorKind.SYNC_ERROR: "Sync error",
}


class SyncResult(BaseModel):
    """
    Outcome of one sync attempt.

    success=True always carries a date-prefixed last_sync; success=False never does.
    `kind` is kept for callers that want to branch on the failure, it is not serialized.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    success: bool
    last_sync: Optional[str] = Field(default=None, alias="lastSync")
    error: Optional[str] = None
    details: Optional[str] = None
    kind: Optional[SyncErrorKind] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _check_last_sync(self) -> "SyncResult":
        if self.success and not is_valid_timestamp(self.last_sync):
            raise ValueError(f"successful sync requires a date-prefixed last_sync, got {self.last_sync!r}")
        if not self.success and self.last_sync is not None:
            raise ValueError("failed sync must not carry last_sync")
        return self

    @classmethod
    def ok(cls, last_sync: str) -> "SyncResult":
        return cls(success=True, last_sync=last_sync)

    @classmethod
    def fail(cls, kind: SyncErrorKind, details: Optional[str] = None) -> "SyncResult":
        return cls(success=False, kind=kind, error=ERROR_MESSAGES[kind], details=details)

    def to_dict(self) -> dict:
        """Wire shape: {success, lastSync?, error?, details?}"""
        return self.model_dump(by_alias=True, exclude_none=True)


class SourceLayout(str, Enum):
    """Which config directory convention is in effect in the sandbox."""
    CURRENT = "current"
    LEGACY = "legacy"


@dataclass(frozen=True)
class SyncStep:
    """One mirror (rsync --delete) of a sandbox directory into the mounted bucket."""
    name: str
    source: str
    destination: str
    excludes: Tuple[str, ...] = ()

    def to_command(self) -> str:
        exclude_flags = "".join(f" --exclude={shlex.quote(pattern)}" for pattern in self.excludes)
        src = shlex.quote(self.source.rstrip("/") + "/")
        dst = shlex.quote(self.destination.rstrip("/") + "/")
        return f"rsync -r --no-times --delete{exclude_flags} {src} {dst}"


@dataclass(frozen=True)
class SyncPlan:
    """
    Ordered sync steps plus the completion marker.

    Steps are chained with && so the marker is only written once every step succeeded.
    """
    steps: Tuple[SyncStep, ...]
    marker_path: str

    def to_command(self) -> str:
        parts = [step.to_command() for step in self.steps]
        parts.append(f"date -Iseconds > {shlex.quote(self.marker_path)}")
        return " && ".join(parts)
