"""Shared fakes: a scripted command runner and a mount manager."""

import pytest

from sandbox_persist.runner import ProcessLogs
from sandbox_persist.utils.config import StorageCredentials, SyncPaths

CURRENT_PROBE = "[ -f /root/.openclaw/openclaw.json ]"
LEGACY_PROBE = "[ -f /root/.clawdbot/clawdbot.json ]"


class FakeProcess:
    def __init__(self, command, logs):
        self.command = command
        self.logs = logs


class FakeRunner:
    """
    CommandRunner that answers by substring match.

    Rules are checked in registration order; the first match wins. A rule can
    return fixed output, compute it from the command, or raise on start.
    Unmatched commands produce empty output.
    """

    def __init__(self):
        self.rules = []
        self.commands = []
        self.waits = []

    def on(self, substring, stdout="", stderr="", raises=None, handler=None):
        self.rules.append((substring, stdout, stderr, raises, handler))
        return self

    def start_process(self, command):
        self.commands.append(command)
        for substring, stdout, stderr, raises, handler in self.rules:
            if substring in command:
                if raises is not None:
                    raise raises
                if handler is not None:
                    return FakeProcess(command, handler(command))
                return FakeProcess(command, ProcessLogs(stdout=stdout, stderr=stderr))
        return FakeProcess(command, ProcessLogs())

    def wait(self, process, timeout_ms):
        self.waits.append((process.command, timeout_ms))

    def get_logs(self, process):
        return process.logs

    def issued(self, substring):
        return [c for c in self.commands if substring in c]


class FakeSandboxStorage:
    """Marker file state; the rsync chain writes the next clock value into it."""

    def __init__(self, marker=None, clock=None, sync_stderr="", sync_writes_marker=True):
        self.marker = marker
        self.clock = list(clock or ["2024-01-15T10:30:00+00:00"])
        self.sync_stderr = sync_stderr
        self.sync_writes_marker = sync_writes_marker

    def sync(self, command):
        if self.sync_writes_marker:
            self.marker = self.clock.pop(0)
        return ProcessLogs(stderr=self.sync_stderr)

    def cat(self, command):
        if self.marker is None:
            return ProcessLogs(stderr="cat: /data/moltbot/.last-sync: No such file or directory")
        return ProcessLogs(stdout=self.marker + "\n")


class FakeMountManager:
    def __init__(self, result=True, raises=None):
        self.result = result
        self.raises = raises
        self.calls = []

    def mount(self, credentials):
        self.calls.append(credentials)
        if self.raises is not None:
            raise self.raises
        return self.result


def scripted_runner(current=True, legacy=False, storage=None):
    storage = storage or FakeSandboxStorage()
    runner = FakeRunner()
    runner.on(CURRENT_PROBE, stdout="EXISTS\n" if current else "NOTFOUND\n")
    runner.on(LEGACY_PROBE, stdout="EXISTS\n" if legacy else "NOTFOUND\n")
    runner.on("rsync ", handler=storage.sync)
    runner.on("cat /data/moltbot/.last-sync", handler=storage.cat)
    return runner


@pytest.fixture
def credentials():
    return StorageCredentials(
        access_key_id="test-access-key",
        secret_access_key="test-secret",
        account_id="test-account",
    )


@pytest.fixture
def paths():
    return SyncPaths()


@pytest.fixture
def mount_manager():
    return FakeMountManager()
