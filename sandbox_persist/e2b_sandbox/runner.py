"""
CommandRunner backed by an E2B sandbox.

Commands are started in the background and awaited on a helper thread so the
wait can be bounded. The exit status reported by the sandbox is recorded but
never raised: CommandExitException is swallowed and callers decide success
from what the command left behind.
"""
import logging
import threading
from typing import List, Optional

from e2b import CommandExitException, Sandbox

from sandbox_persist.errors import CommandRunnerError
from sandbox_persist.runner import ProcessLogs

logger = logging.getLogger(__name__)


class E2BProcess:
	"""Handle for a background command plus the output collected so far."""

	def __init__(self, command: str, handle):
		self.command = command
		self.handle = handle
		self.stdout_chunks: List[str] = []
		self.stderr_chunks: List[str] = []
		self.result_stdout: Optional[str] = None
		self.result_stderr: Optional[str] = None
		self.exit_code: Optional[int] = None
		self.timed_out = False
		self.error: Optional[BaseException] = None


class E2BCommandRunner:
	"""Runs shell commands in an E2B sandbox (as root by default, the mounts need it)."""

	def __init__(self, sandbox: Sandbox, user: str = "root"):
		self._sandbox = sandbox
		self._user = user

	@property
	def sandbox_id(self) -> str:
		return getattr(self._sandbox, "sandbox_id", "unknown")

	def start_process(self, command: str) -> E2BProcess:
		try:
			# timeout=0: no connection limit, wait() enforces the caller's timeout
			handle = self._sandbox.commands.run(
				command,
				background=True,
				user=self._user,
				timeout=0,
			)
		except Exception as e:
			raise CommandRunnerError(f"Failed to start command in sandbox {self.sandbox_id}: {e}") from e
		return E2BProcess(command, handle)

	def wait(self, process: E2BProcess, timeout_ms: int) -> None:
		def _wait():
			try:
				result = process.handle.wait(
					on_stdout=process.stdout_chunks.append,
					on_stderr=process.stderr_chunks.append,
				)
			except CommandExitException as e:
				result = e
			except Exception as e:
				process.error = e
				return
			process.exit_code = result.exit_code
			process.result_stdout = result.stdout
			process.result_stderr = result.stderr

		waiter = threading.Thread(target=_wait, daemon=True)
		waiter.start()
		waiter.join(timeout_ms / 1000)

		if waiter.is_alive():
			process.timed_out = True
			logger.warning(f"[E2B] Command timed out after {timeout_ms}ms in sandbox {self.sandbox_id}, killing it")
			try:
				process.handle.kill()
			except Exception as e:
				logger.warning(f"[E2B] Could not kill timed out command: {e}")
			return

		if process.error is not None:
			raise CommandRunnerError(
				f"Lost command in sandbox {self.sandbox_id}: {process.error}"
			) from process.error

		if process.exit_code:
			logger.debug(f"[E2B] Command exited with {process.exit_code} (not treated as failure)")

	def get_logs(self, process: E2BProcess) -> ProcessLogs:
		stdout = process.result_stdout
		if stdout is None:
			stdout = "".join(process.stdout_chunks)
		stderr = process.result_stderr
		if stderr is None:
			stderr = "".join(process.stderr_chunks)
		return ProcessLogs(stdout=stdout or "", stderr=stderr or "")
