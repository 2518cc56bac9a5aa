"""Tests for the transaction audit log."""
import pytest

from rip_northbound.utils.audit_log import (
    ChangeRecord,
    audit_logger,
    get_recent_changes,
    log_change,
    setup_audit_logging,
)


@pytest.fixture
def audit_file(tmp_path):
    """Audit log written under tmp_path."""
    path = setup_audit_logging(str(tmp_path))
    yield path
    for handler in list(audit_logger.handlers):
        handler.close()
        audit_logger.removeHandler(handler)


def record(operation="commit", success=True, **kwargs):
    return ChangeRecord(
        timestamp="2026-01-01T00:00:00+00:00",
        transaction_id=kwargs.pop("transaction_id", 1),
        operation=operation,
        user="tester",
        dry_run=operation == "dry_run",
        success=success,
        **kwargs,
    )


class TestAuditLog:
    """Tests for writing and reading audit records."""

    def test_missing_file(self, tmp_path):
        assert get_recent_changes(str(tmp_path / "absent.log")) == []

    def test_most_recent_first(self, audit_file):
        for i in range(3):
            log_change(record(transaction_id=i))

        records = get_recent_changes(audit_file)

        assert [r.transaction_id for r in records] == [2, 1, 0]

    def test_limit(self, audit_file):
        for i in range(5):
            log_change(record(transaction_id=i))

        assert [r.transaction_id for r in get_recent_changes(audit_file, limit=2)] == [4, 3]

    def test_filter_operation(self, audit_file):
        log_change(record("commit"))
        log_change(record("rpc", transaction_id=None))
        log_change(record("dry_run"))

        records = get_recent_changes(audit_file, operation="rpc")

        assert len(records) == 1
        assert records[0].transaction_id is None

    def test_malformed_lines_skipped(self, audit_file):
        log_change(record(transaction_id=7))
        with open(audit_file, "a") as f:
            f.write("not json\n")
            f.write('{"unexpected": true}\n')

        assert [r.transaction_id for r in get_recent_changes(audit_file)] == [7]


class TestEngineAudit:
    """Every apply_config call leaves one record."""

    def test_commit_recorded(self, engine, audit_file):
        engine.apply_config({"ripd": {"instance": {}}}, audit_context="enable rip", user="ops")

        latest = get_recent_changes(audit_file)[0]
        assert latest.operation == "commit"
        assert latest.success
        assert latest.user == "ops"
        assert latest.context == "enable rip"
        assert latest.config_checksum.startswith("sha256:")
        assert latest.transaction_id is not None

    def test_dry_run_recorded(self, engine, audit_file):
        engine.apply_config({"ripd": {"instance": {}}}, dry_run=True)

        latest = get_recent_changes(audit_file)[0]
        assert latest.operation == "dry_run"
        assert latest.dry_run
        assert latest.changes[0].startswith("[PREVIEW]")

    def test_failure_recorded(self, engine, audit_file):
        engine.apply_config({"ripd": {"instance": {"default-metric": 0}}})

        latest = get_recent_changes(audit_file)[0]
        assert not latest.success
        assert latest.error_kind == "schema-invalid"
        assert latest.error.startswith("Validation failed")
