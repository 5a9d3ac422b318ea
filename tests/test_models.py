"""Tests for SyncResult invariants and rsync command rendering."""

import pytest
from pydantic import ValidationError

from sandbox_persist.models import (
    ERROR_MESSAGES,
    SyncErrorKind,
    SyncPlan,
    SyncResult,
    SyncStep,
    is_valid_timestamp,
)


class TestSyncResult:
    def test_success_requires_timestamp(self):
        with pytest.raises(ValidationError):
            SyncResult(success=True)

    def test_success_rejects_malformed_timestamp(self):
        with pytest.raises(ValidationError):
            SyncResult(success=True, last_sync="yesterday")

    def test_failure_rejects_timestamp(self):
        with pytest.raises(ValidationError):
            SyncResult(success=False, last_sync="2024-01-15T10:30:00+00:00")

    def test_accepts_wire_alias(self):
        result = SyncResult.model_validate({"success": True, "lastSync": "2024-01-15"})

        assert result.last_sync == "2024-01-15"

    def test_fail_uses_label(self):
        result = SyncResult.fail(SyncErrorKind.NO_CONFIG_FOUND, "details here")

        assert result.to_dict() == {
            "success": False,
            "error": "Sync aborted: no config file found",
            "details": "details here",
        }
        assert result.kind == SyncErrorKind.NO_CONFIG_FOUND

    def test_every_kind_has_a_label(self):
        assert set(ERROR_MESSAGES) == set(SyncErrorKind)


@pytest.mark.parametrize("value,expected", [
    ("2024-01-15T10:30:00+00:00", True),
    ("2024-01-15", True),
    ("", False),
    (None, False),
    (" 2024-01-15", False),
    ("24-01-15", False),
])
def test_is_valid_timestamp(value, expected):
    assert is_valid_timestamp(value) is expected


class TestSyncStep:
    def test_quotes_globs_and_adds_trailing_slashes(self):
        step = SyncStep("config", "/root/.openclaw", "/data/moltbot/openclaw", ("*.lock", "skills"))

        assert step.to_command() == (
            "rsync -r --no-times --delete --exclude='*.lock' --exclude=skills "
            "/root/.openclaw/ /data/moltbot/openclaw/"
        )

    def test_quotes_paths_with_spaces(self):
        step = SyncStep("workspace", "/tmp/my work/", "/mnt/r2/work")

        assert step.to_command() == "rsync -r --no-times --delete '/tmp/my work/' /mnt/r2/work/"

    def test_plan_writes_marker_last(self):
        plan = SyncPlan(
            steps=(SyncStep("a", "/a", "/b"), SyncStep("c", "/c", "/d")),
            marker_path="/mnt/r2/.last-sync",
        )

        assert plan.to_command() == (
            "rsync -r --no-times --delete /a/ /b/ && "
            "rsync -r --no-times --delete /c/ /d/ && "
            "date -Iseconds > /mnt/r2/.last-sync"
        )
