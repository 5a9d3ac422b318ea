"""Storage credentials and sandbox path layout, read from the environment."""

import os
import posixpath
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from sandbox_persist.models import SourceLayout

load_dotenv()

DEFAULT_BUCKET = "moltbot-data"


class StorageCredentials(BaseModel):
    """R2 access. All three of access key, secret and account id are required for a sync."""

    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = Field(default=None, repr=False)
    account_id: Optional[str] = None
    bucket: str = DEFAULT_BUCKET
    endpoint_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "StorageCredentials":
        return cls(
            access_key_id=os.getenv("R2_ACCESS_KEY_ID"),
            secret_access_key=os.getenv("R2_SECRET_ACCESS_KEY"),
            account_id=os.getenv("CF_ACCOUNT_ID"),
            bucket=os.getenv("R2_BUCKET_NAME", DEFAULT_BUCKET),
            endpoint_url=os.getenv("R2_ENDPOINT_URL"),
        )

    def is_configured(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key and self.account_id)

    @property
    def resolved_endpoint_url(self) -> str:
        """Explicit endpoint, or the account's R2 endpoint."""
        if self.endpoint_url:
            return self.endpoint_url
        return f"https://{self.account_id}.r2.cloudflarestorage.com"


class SyncPaths(BaseModel):
    """
    Sandbox paths and timeouts used by a sync.

    Defaults match the sandbox image; tests and other images pass their own values.
    Remote paths are all relative to mount_path, which is the bucket root.
    """

    mount_path: str = "/data/moltbot"

    # Config dir conventions, probed in this order
    config_dir: str = "/root/.openclaw"
    config_marker: str = "openclaw.json"
    legacy_config_dir: str = "/root/.clawdbot"
    legacy_config_marker: str = "clawdbot.json"

    workspace_dir: str = "/root/clawd"
    skills_subdir: str = "skills"

    remote_config_subdir: str = "openclaw"
    remote_workspace_subdir: str = "workspace"
    remote_skills_subdir: str = "skills"
    marker_name: str = ".last-sync"

    probe_timeout_ms: int = 5000
    sync_timeout_ms: int = 120000  # s3-backed mounts are slow
    require_fresh_marker: bool = False

    @classmethod
    def from_env(cls) -> "SyncPaths":
        defaults = cls()
        return cls(
            mount_path=os.getenv("SANDBOX_PERSIST_MOUNT_PATH", defaults.mount_path),
            workspace_dir=os.getenv("SANDBOX_PERSIST_WORKSPACE_DIR", defaults.workspace_dir),
            sync_timeout_ms=int(os.getenv("SANDBOX_PERSIST_SYNC_TIMEOUT_MS", str(defaults.sync_timeout_ms))),
            require_fresh_marker=os.getenv("SANDBOX_PERSIST_REQUIRE_FRESH_MARKER", "false").lower() == "true",
        )

    def layout_dir(self, layout: SourceLayout) -> str:
        if layout == SourceLayout.LEGACY:
            return self.legacy_config_dir
        return self.config_dir

    def layout_marker(self, layout: SourceLayout) -> str:
        if layout == SourceLayout.LEGACY:
            return posixpath.join(self.legacy_config_dir, self.legacy_config_marker)
        return posixpath.join(self.config_dir, self.config_marker)

    @property
    def skills_dir(self) -> str:
        return posixpath.join(self.workspace_dir, self.skills_subdir)

    @property
    def remote_config_dir(self) -> str:
        return posixpath.join(self.mount_path, self.remote_config_subdir)

    @property
    def remote_workspace_dir(self) -> str:
        return posixpath.join(self.mount_path, self.remote_workspace_subdir)

    @property
    def remote_skills_dir(self) -> str:
        return posixpath.join(self.mount_path, self.remote_skills_subdir)

    @property
    def marker_path(self) -> str:
        return posixpath.join(self.mount_path, self.marker_name)
