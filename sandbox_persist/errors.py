"""Exceptions raised inside the sync flow. sync_to_storage() converts all of them into SyncResult."""


class SandboxSyncError(Exception):
    """Base class for sandbox sync errors."""


class CommandRunnerError(SandboxSyncError):
    """A command could not be started or awaited in the sandbox (transport fault, dead sandbox)."""


class MountError(SandboxSyncError):
    """The bucket could not be mounted or the mount is not usable."""


class NoConfigFoundError(SandboxSyncError):
    """Neither the current nor the legacy config file exists in the sandbox."""

    def __init__(self, current_marker: str, current_output: str, legacy_marker: str, legacy_output: str):
        self.current_output = current_output
        self.legacy_output = legacy_output
        self.details = (
            f"Neither {current_marker} nor {legacy_marker} found. "
            f"New check: {current_output or '(empty)'}, "
            f"Legacy check: {legacy_output or '(empty)'}"
        )
        super().__init__(self.details)
