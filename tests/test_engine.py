"""Tests for the NorthboundEngine commit workflow."""


class TestApplyConfig:
    """Tests for apply_config outcomes."""

    def test_dry_run_touches_nothing(self, engine, daemon, sockets):
        result = engine.apply_config({"ripd": {"instance": {"network": ["10.0.0.0/8"]}}}, dry_run=True)

        assert result.success
        assert result.dry_run
        assert not result.applied
        assert all(line.startswith("[PREVIEW] ") for line in result.changes_made)
        assert sockets.opened == []
        assert daemon.rip is None
        assert len(engine.running) == 0

    def test_dry_run_reports_validation_errors(self, engine):
        result = engine.apply_config({"ripd": {"instance": {"default-metric": 20}}}, dry_run=True)

        assert not result.success
        assert result.error.startswith("Validation failed")

    def test_reapply_is_noop(self, engine, sockets):
        config = {"ripd": {"instance": {"network": ["10.0.0.0/8"]}}}
        engine.apply_config(config)

        result = engine.apply_config(config)

        assert result.success
        assert result.changes_made == ["No changes needed - configuration already matches"]
        assert result.transaction_id is None
        assert len(sockets.opened) == 1

    def test_module_prefixes_optional(self, engine):
        engine.apply_config({"frr-ripd:ripd": {"instance": {"default-metric": 4}}})

        result = engine.apply_config({"ripd": {"instance": {"default-metric": 4}}})

        assert result.changes_made == ["No changes needed - configuration already matches"]

    def test_parse_error(self, engine, daemon):
        result = engine.apply_config({"ripd": {"instance": {"colour": "blue"}}})

        assert not result.success
        assert result.error.startswith("Parse error")
        assert result.error_kind == "schema-invalid"
        assert daemon.rip is None

    def test_state_is_not_configurable(self, engine):
        result = engine.apply_config({"ripd": {"state": {"neighbors": {}}}})

        assert result.error.startswith("Parse error")

    def test_failed_commit_keeps_running(self, engine):
        engine.apply_config({"ripd": {"instance": {"default-metric": 3}}})
        before = engine.running

        result = engine.apply_config({"ripd": {"instance": {"default-metric": 0}}})

        assert not result.applied
        assert engine.running is before

    def test_transaction_ids_increase(self, engine):
        first = engine.apply_config({"ripd": {"instance": {}}})
        second = engine.apply_config({"ripd": {"instance": {"default-metric": 2}}})

        assert second.transaction_id == first.transaction_id + 1


class TestPreviewAndFiles:
    """Tests for preview and YAML loading."""

    def test_preview(self, engine):
        summary = engine.preview({"ripd": {"instance": {"network": ["10.0.0.0/8"]}}})

        assert summary.startswith("Changes to apply")
        assert "[+] create /frr-ripd:ripd/instance" in summary
        assert "network[.='10.0.0.0/8']" in summary

    def test_preview_no_changes(self, engine):
        assert engine.preview({}) == "No changes needed - running configuration matches desired state"

    def test_load_file(self, engine, daemon, tmp_path):
        path = tmp_path / "ripd.yaml"
        path.write_text(
            "ripd:\n"
            "  instance:\n"
            "    network:\n"
            "      - 10.0.0.0/8\n"
            "    timers:\n"
            "      update-interval: 15\n"
        )

        result = engine.load_file(str(path), audit_context="from file")

        assert result.success, result.error
        assert daemon.rip.update_time == 15
