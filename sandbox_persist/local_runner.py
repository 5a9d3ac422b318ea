"""CommandRunner that executes on the local machine. Used for development and end-to-end tests."""

import logging
import os
import signal
import subprocess
from typing import Dict, Optional

from sandbox_persist.errors import CommandRunnerError
from sandbox_persist.runner import ProcessLogs

logger = logging.getLogger(__name__)


class LocalProcess:
    def __init__(self, command: str, popen: subprocess.Popen):
        self.command = command
        self.popen = popen
        self.logs: Optional[ProcessLogs] = None
        self.timed_out = False

    @property
    def exit_code(self) -> Optional[int]:
        return self.popen.returncode


class LocalCommandRunner:
    """Runs commands through the local shell with subprocess."""

    def __init__(self, env: Optional[Dict[str, str]] = None, cwd: Optional[str] = None):
        self._env = env
        self._cwd = cwd

    def start_process(self, command: str) -> LocalProcess:
        try:
            popen = subprocess.Popen(
                command,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=self._env,
                cwd=self._cwd,
                start_new_session=True,
            )
        except OSError as e:
            raise CommandRunnerError(f"Failed to start local command: {e}") from e
        return LocalProcess(command, popen)

    def wait(self, process: LocalProcess, timeout_ms: int) -> None:
        if process.logs is not None:
            return
        try:
            stdout, stderr = process.popen.communicate(timeout=timeout_ms / 1000)
        except subprocess.TimeoutExpired:
            logger.warning(f"[Local] Command timed out after {timeout_ms}ms, killing pid {process.popen.pid}")
            try:
                os.killpg(process.popen.pid, signal.SIGKILL)
            except ProcessLookupError:
                # Group already exited
                pass
            stdout, stderr = process.popen.communicate()
            process.timed_out = True
        process.logs = ProcessLogs(stdout=stdout or "", stderr=stderr or "")

    def get_logs(self, process: LocalProcess) -> ProcessLogs:
        return process.logs or ProcessLogs()
