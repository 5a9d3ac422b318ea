"""
Collaborator interfaces used by the sync flow.

A CommandRunner executes shell commands inside the sandbox in three steps:
start, wait (bounded), read logs. Implementations must not raise on a non-zero
exit status or on timeout; they raise CommandRunnerError only when the command
could not be issued or awaited at all.
"""
from dataclasses import dataclass
from typing import Any, Protocol, Tuple

from sandbox_persist.utils.config import StorageCredentials


@dataclass
class ProcessLogs:
    stdout: str = ""
    stderr: str = ""


class CommandRunner(Protocol):
    def start_process(self, command: str) -> Any:
        ...

    def wait(self, process: Any, timeout_ms: int) -> None:
        ...

    def get_logs(self, process: Any) -> ProcessLogs:
        ...


class MountManager(Protocol):
    def mount(self, credentials: StorageCredentials) -> bool:
        """Idempotent. True means the bucket is mounted and usable."""
        ...


def run_command(runner: CommandRunner, command: str, timeout_ms: int) -> Tuple[Any, ProcessLogs]:
    """Start a command, wait up to timeout_ms for it and return its handle and captured output."""
    process = runner.start_process(command)
    runner.wait(process, timeout_ms)
    return process, runner.get_logs(process)
