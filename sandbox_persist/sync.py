"""
Persist sandbox state to R2.

One call to sync_to_storage():
1. Checks R2 credentials and mounts the bucket.
2. Finds the config directory (current layout first, legacy second). If neither
   config file exists the sync is aborted, otherwise an empty sandbox would be
   mirrored over a good backup.
3. Mirrors three directories into the mount with rsync --delete:
   - Config:    /root/.openclaw/ (or /root/.clawdbot/) -> <mount>/openclaw/
   - Workspace: /root/clawd/ -> <mount>/workspace/ (skills, caches and .git excluded)
   - Skills:    /root/clawd/skills/ -> <mount>/skills/
   then writes `date -Iseconds` to <mount>/.last-sync. All four are one && chain.
4. Reads .last-sync back. Exit codes from the sandbox are not trusted, the
   timestamp file is the only success signal.
"""
import logging
import shlex
from datetime import datetime
from typing import Optional

from sandbox_persist.errors import NoConfigFoundError
from sandbox_persist.models import (
	SourceLayout,
	SyncErrorKind,
	SyncPlan,
	SyncResult,
	SyncStep,
	is_valid_timestamp,
)
from sandbox_persist.runner import CommandRunner, MountManager, ProcessLogs, run_command
from sandbox_persist.utils.config import StorageCredentials, SyncPaths

logger = logging.getLogger(__name__)

# Lock, log and temp files would make a half-written config look current
CONFIG_EXCLUDES = ("*.lock", "*.log", "*.tmp")

# Large or regenerable workspace content, skipped to keep the sync inside its timeout
WORKSPACE_EXCLUDES = (
	"data",
	"logs",
	"__pycache__",
	".coverage",
	"*.pyc",
	"jiti",
	".git",
	"node-compile-cache",
)

NO_MARKER_MESSAGE = "No timestamp file created"


def _probe_file(runner: CommandRunner, path: str, timeout_ms: int) -> str:
	"""Raw stdout of an existence check; contains EXISTS when the file is there."""
	_, logs = run_command(
		runner,
		f"[ -f {shlex.quote(path)} ] && echo EXISTS || echo NOTFOUND",
		timeout_ms,
	)
	return logs.stdout or ""


def resolve_source_layout(runner: CommandRunner, paths: Optional[SyncPaths] = None) -> SourceLayout:
	"""
	Decide which config directory is authoritative.

	The legacy file is only probed when the current one is missing.

	Raises:
		NoConfigFoundError: neither config file exists.
	"""
	paths = paths or SyncPaths()

	current_output = _probe_file(runner, paths.layout_marker(SourceLayout.CURRENT), paths.probe_timeout_ms)
	if "EXISTS" in current_output:
		return SourceLayout.CURRENT

	legacy_output = _probe_file(runner, paths.layout_marker(SourceLayout.LEGACY), paths.probe_timeout_ms)
	if "EXISTS" in legacy_output:
		logger.info(f"[Layout] {paths.config_marker} missing, using legacy {paths.legacy_config_dir}")
		return SourceLayout.LEGACY

	raise NoConfigFoundError(
		paths.config_marker,
		current_output.strip(),
		paths.legacy_config_marker,
		legacy_output.strip(),
	)


def build_sync_plan(config_dir: str, paths: Optional[SyncPaths] = None) -> SyncPlan:
	"""Config, workspace and skills mirrors, in that order, followed by the marker write."""
	paths = paths or SyncPaths()
	return SyncPlan(
		steps=(
			SyncStep("config", config_dir, paths.remote_config_dir, CONFIG_EXCLUDES),
			# Skills are mirrored by their own step
			SyncStep("workspace", paths.workspace_dir, paths.remote_workspace_dir, (paths.skills_subdir,) + WORKSPACE_EXCLUDES),
			SyncStep("skills", paths.skills_dir, paths.remote_skills_dir),
		),
		marker_path=paths.marker_path,
	)


def run_sync_plan(runner: CommandRunner, plan: SyncPlan, timeout_ms: int) -> ProcessLogs:
	"""Issue the whole plan as one command and return its output. Never retries."""
	logger.info(f"[Sync] Running {' -> '.join(step.name for step in plan.steps)} (timeout {timeout_ms}ms)")
	_, logs = run_command(runner, plan.to_command(), timeout_ms)
	return logs


def _read_marker(runner: CommandRunner, paths: SyncPaths) -> str:
	_, logs = run_command(runner, f"cat {shlex.quote(paths.marker_path)}", paths.probe_timeout_ms)
	return (logs.stdout or "").strip()


def _read_sandbox_clock(runner: CommandRunner, paths: SyncPaths) -> Optional[str]:
	_, logs = run_command(runner, "date -Iseconds", paths.probe_timeout_ms)
	now = (logs.stdout or "").strip()
	if not is_valid_timestamp(now):
		logger.warning(f"[Sync] Could not read sandbox clock ({now!r}), skipping freshness check")
		return None
	return now


def _predates(last_sync: str, started_at: str) -> bool:
	try:
		return datetime.fromisoformat(last_sync) < datetime.fromisoformat(started_at)
	except (ValueError, TypeError):
		# Unparseable or naive/aware mismatch: cannot prove it is fresh
		return True


def verify_completion(
	runner: CommandRunner,
	paths: SyncPaths,
	sync_logs: ProcessLogs,
	started_at: Optional[str] = None,
) -> SyncResult:
	"""
	Read the marker back and turn it into the final result.

	When started_at is given (sandbox clock before the sync), a marker older than
	it is treated as left over from a previous run.
	"""
	last_sync = _read_marker(runner, paths)

	if not is_valid_timestamp(last_sync):
		details = sync_logs.stderr or sync_logs.stdout or NO_MARKER_MESSAGE
		logger.error(f"[Sync] ✗ No valid timestamp at {paths.marker_path}: {details}")
		return SyncResult.fail(SyncErrorKind.SYNC_FAILED, details)

	if started_at and _predates(last_sync, started_at):
		logger.error(f"[Sync] ✗ Stale timestamp {last_sync}, sync started at {started_at}")
		return SyncResult.fail(
			SyncErrorKind.SYNC_FAILED,
			f"Stale timestamp: {last_sync} predates sync start {started_at}",
		)

	logger.info(f"[Sync] ✓ Sandbox -> R2 complete at {last_sync}")
	return SyncResult.ok(last_sync)


def read_last_sync(runner: CommandRunner, paths: Optional[SyncPaths] = None) -> Optional[str]:
	"""Timestamp of the last complete sync as seen through the mount, or None."""
	paths = paths or SyncPaths()
	last_sync = _read_marker(runner, paths)
	return last_sync if is_valid_timestamp(last_sync) else None


def sync_to_storage(
	runner: CommandRunner,
	mount_manager: MountManager,
	credentials: Optional[StorageCredentials] = None,
	paths: Optional[SyncPaths] = None,
) -> SyncResult:
	"""
	Sync config, workspace and skills from the sandbox to R2.

	Never raises: every failure is returned as a SyncResult with an error label
	and the most specific details available.
	"""
	credentials = credentials or StorageCredentials.from_env()
	paths = paths or SyncPaths()

	if not credentials.is_configured():
		logger.warning("[Sync] R2 credentials missing, skipping sync")
		return SyncResult.fail(SyncErrorKind.NOT_CONFIGURED)

	try:
		mounted = mount_manager.mount(credentials)
	except Exception as e:
		logger.error(f"[Sync] ✗ Mount raised: {e}")
		return SyncResult.fail(SyncErrorKind.MOUNT_FAILED, str(e) or None)
	if not mounted:
		return SyncResult.fail(SyncErrorKind.MOUNT_FAILED)

	try:
		layout = resolve_source_layout(runner, paths)
	except NoConfigFoundError as e:
		logger.error(f"[Sync] ✗ Aborted, no config file found: {e.details}")
		return SyncResult.fail(SyncErrorKind.NO_CONFIG_FOUND, e.details)
	except Exception as e:
		logger.error(f"[Sync] ✗ Could not verify source files: {e}")
		return SyncResult.fail(SyncErrorKind.SOURCE_VERIFICATION_FAILED, str(e) or "Unknown error")

	plan = build_sync_plan(paths.layout_dir(layout), paths)
	try:
		started_at = _read_sandbox_clock(runner, paths) if paths.require_fresh_marker else None
		sync_logs = run_sync_plan(runner, plan, paths.sync_timeout_ms)
		return verify_completion(runner, paths, sync_logs, started_at=started_at)
	except Exception as e:
		logger.error(f"[Sync] ✗ Sync error: {e}")
		return SyncResult.fail(SyncErrorKind.SYNC_ERROR, str(e) or "Unknown error")
