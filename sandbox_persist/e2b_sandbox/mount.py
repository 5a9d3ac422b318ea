"""
Mount the R2 bucket inside the sandbox with rclone.

The bucket root is mounted at SyncPaths.mount_path. mount() is idempotent:
an existing, listable mount is reused, otherwise the rclone config is
(re)written and a daemonized `rclone mount` is started and verified.
"""
import logging
import shlex
import time
from typing import Optional

from sandbox_persist.errors import MountError
from sandbox_persist.runner import CommandRunner, run_command
from sandbox_persist.utils.config import StorageCredentials, SyncPaths

logger = logging.getLogger(__name__)

RCLONE_CONFIG_PATH = "/root/.config/rclone/rclone.conf"
RCLONE_LOG_PATH = "/tmp/rclone-r2.log"
CHECK_TIMEOUT_MS = 10_000
MOUNT_TIMEOUT_MS = 60_000


class RcloneMountManager:
	"""Mounts the bucket named in StorageCredentials via an rclone remote."""

	def __init__(
		self,
		runner: CommandRunner,
		paths: Optional[SyncPaths] = None,
		remote_name: str = "r2",
		settle_seconds: float = 2.0,
	):
		self._runner = runner
		self._paths = paths or SyncPaths()
		self._remote_name = remote_name
		self._settle_seconds = settle_seconds

	def mount(self, credentials: StorageCredentials) -> bool:
		mount_path = self._paths.mount_path
		try:
			if self._is_mounted() and self._is_listable():
				logger.info(f"[Mount] {mount_path} already mounted")
				return True

			self._write_rclone_config(credentials)
			run_command(
				self._runner,
				f"umount {shlex.quote(mount_path)} 2>/dev/null; mkdir -p {shlex.quote(mount_path)}",
				CHECK_TIMEOUT_MS,
			)

			logger.info(f"[Mount] Mounting {self._remote_name}:{credentials.bucket} at {mount_path}")
			_, logs = run_command(self._runner, self._mount_command(credentials), MOUNT_TIMEOUT_MS)
			if self._settle_seconds:
				time.sleep(self._settle_seconds)

			if not (self._is_mounted() and self._is_listable()):
				raise MountError(
					f"Mount verification failed: {logs.stderr or logs.stdout or '(no output)'}\n"
					f"Log:\n{self._tail_log()}"
				)
			logger.info(f"[Mount] ✓ {mount_path} mounted")
			return True
		except Exception as e:
			logger.error(f"[Mount] ✗ Failed to mount R2 storage at {mount_path}: {e}")
			return False

	def _is_mounted(self) -> bool:
		_, logs = run_command(
			self._runner,
			f"mountpoint -q {shlex.quote(self._paths.mount_path)} && echo 'ALREADY_MOUNTED' || echo 'NOT_MOUNTED'",
			CHECK_TIMEOUT_MS,
		)
		return "ALREADY_MOUNTED" in logs.stdout

	def _is_listable(self) -> bool:
		_, logs = run_command(
			self._runner,
			f"ls {shlex.quote(self._paths.mount_path)} >/dev/null 2>&1 && echo 'MOUNT_OK' || echo 'MOUNT_FAILED'",
			CHECK_TIMEOUT_MS,
		)
		return "MOUNT_OK" in logs.stdout

	def _write_rclone_config(self, credentials: StorageCredentials) -> None:
		# Never log this command, it carries the secret
		config = "\n".join([
			f"[{self._remote_name}]",
			"type = s3",
			"provider = Cloudflare",
			f"access_key_id = {credentials.access_key_id}",
			f"secret_access_key = {credentials.secret_access_key}",
			f"endpoint = {credentials.resolved_endpoint_url}",
			"acl = private",
			"no_check_bucket = true",
		])
		config_dir = RCLONE_CONFIG_PATH.rsplit("/", 1)[0]
		run_command(
			self._runner,
			f"mkdir -p {config_dir} && cat > {RCLONE_CONFIG_PATH} << 'EOF'\n{config}\nEOF",
			CHECK_TIMEOUT_MS,
		)

	def _mount_command(self, credentials: StorageCredentials) -> str:
		remote = shlex.quote(f"{self._remote_name}:{credentials.bucket}")
		return (
			f"rclone mount {remote} {shlex.quote(self._paths.mount_path)} "
			f"--config {RCLONE_CONFIG_PATH} "
			"--daemon --allow-other "
			"--vfs-cache-mode writes --dir-cache-time 10s "
			f"--log-file {RCLONE_LOG_PATH} --log-level INFO"
		)

	def _tail_log(self) -> str:
		try:
			_, logs = run_command(
				self._runner,
				f"tail -50 {RCLONE_LOG_PATH} 2>&1 || echo 'No log file'",
				CHECK_TIMEOUT_MS,
			)
			return logs.stdout or "No log available"
		except Exception:
			return "Could not read log file"
