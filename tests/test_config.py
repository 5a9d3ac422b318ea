"""Tests for credentials and path configuration."""

from sandbox_persist.models import SourceLayout
from sandbox_persist.utils.config import DEFAULT_BUCKET, StorageCredentials, SyncPaths


class TestStorageCredentials:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("R2_ACCESS_KEY_ID", "key")
        monkeypatch.setenv("R2_SECRET_ACCESS_KEY", "secret")
        monkeypatch.setenv("CF_ACCOUNT_ID", "acct")
        monkeypatch.setenv("R2_BUCKET_NAME", "my-bucket")
        monkeypatch.delenv("R2_ENDPOINT_URL", raising=False)

        creds = StorageCredentials.from_env()

        assert creds.is_configured()
        assert creds.bucket == "my-bucket"
        assert creds.resolved_endpoint_url == "https://acct.r2.cloudflarestorage.com"

    def test_bucket_default(self, monkeypatch):
        monkeypatch.delenv("R2_BUCKET_NAME", raising=False)

        assert StorageCredentials.from_env().bucket == DEFAULT_BUCKET

    def test_explicit_endpoint(self):
        creds = StorageCredentials(account_id="acct", endpoint_url="http://localhost:9000")

        assert creds.resolved_endpoint_url == "http://localhost:9000"

    def test_empty_values_are_not_configured(self):
        creds = StorageCredentials(access_key_id="key", secret_access_key="", account_id="acct")

        assert not creds.is_configured()

    def test_repr_hides_secret(self, credentials):
        assert "test-secret" not in repr(credentials)


class TestSyncPaths:
    def test_defaults(self, paths):
        assert paths.layout_dir(SourceLayout.CURRENT) == "/root/.openclaw"
        assert paths.layout_dir(SourceLayout.LEGACY) == "/root/.clawdbot"
        assert paths.layout_marker(SourceLayout.CURRENT) == "/root/.openclaw/openclaw.json"
        assert paths.layout_marker(SourceLayout.LEGACY) == "/root/.clawdbot/clawdbot.json"
        assert paths.skills_dir == "/root/clawd/skills"
        assert paths.remote_config_dir == "/data/moltbot/openclaw"
        assert paths.remote_workspace_dir == "/data/moltbot/workspace"
        assert paths.remote_skills_dir == "/data/moltbot/skills"
        assert paths.marker_path == "/data/moltbot/.last-sync"
        assert (paths.probe_timeout_ms, paths.sync_timeout_ms) == (5000, 120000)
        assert paths.require_fresh_marker is False

    def test_derived_paths_follow_overrides(self, tmp_path):
        custom = SyncPaths(mount_path=str(tmp_path / "r2"), workspace_dir=str(tmp_path / "ws"))

        assert custom.marker_path == f"{tmp_path}/r2/.last-sync"
        assert custom.skills_dir == f"{tmp_path}/ws/skills"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SANDBOX_PERSIST_MOUNT_PATH", "/mnt/r2")
        monkeypatch.setenv("SANDBOX_PERSIST_SYNC_TIMEOUT_MS", "300000")
        monkeypatch.setenv("SANDBOX_PERSIST_REQUIRE_FRESH_MARKER", "TRUE")
        monkeypatch.delenv("SANDBOX_PERSIST_WORKSPACE_DIR", raising=False)

        paths = SyncPaths.from_env()

        assert paths.mount_path == "/mnt/r2"
        assert paths.workspace_dir == "/root/clawd"
        assert paths.sync_timeout_ms == 300000
        assert paths.require_fresh_marker is True
