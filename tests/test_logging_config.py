"""Tests for logging setup and timing helpers."""
import logging

import pytest

from rip_northbound.utils.logging_config import (
    PACKAGE_LOGGER,
    perf_logger,
    setup_logging,
    timed,
    timed_section,
    timed_section_sync,
)


@pytest.fixture
def perf_records(monkeypatch, caplog):
    """Perf lines, captured through the root logger."""
    monkeypatch.setattr(perf_logger, "propagate", True)
    caplog.set_level(logging.DEBUG, logger=perf_logger.name)
    return lambda: [r for r in caplog.records if r.name == perf_logger.name]


@pytest.fixture
def bare_loggers():
    """Package and perf loggers with no handlers, restored afterwards."""
    saved = {}
    for lg in (logging.getLogger(PACKAGE_LOGGER), perf_logger):
        saved[lg] = (list(lg.handlers), lg.level, lg.propagate)
        lg.handlers = []
    yield
    for lg, (handlers, level, propagate) in saved.items():
        for handler in lg.handlers:
            handler.close()
        lg.handlers = handlers
        lg.setLevel(level)
        lg.propagate = propagate


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_log_files_from_env(self, monkeypatch, tmp_path, bare_loggers):
        log_file = tmp_path / "logs" / "ripd-nb.log"
        monkeypatch.setenv("RIPNB_LOG_FILE", str(log_file))

        setup_logging()
        logging.getLogger(f"{PACKAGE_LOGGER}.northbound.engine").debug("hello")
        perf_logger.info("commit | 1.00ms | OK")
        for lg in (logging.getLogger(PACKAGE_LOGGER), perf_logger):
            for handler in lg.handlers:
                handler.flush()

        assert "hello" in log_file.read_text()
        assert "PERF | commit" in (tmp_path / "logs" / "ripd-nb-perf.log").read_text()
        assert perf_logger.propagate is False

    def test_second_call_adds_nothing(self, monkeypatch, tmp_path, bare_loggers):
        monkeypatch.setenv("RIPNB_LOG_FILE", str(tmp_path / "ripnb.log"))

        setup_logging()
        count = len(logging.getLogger(PACKAGE_LOGGER).handlers)
        setup_logging()

        assert len(logging.getLogger(PACKAGE_LOGGER).handlers) == count


class TestTiming:
    """Tests for the perf timing helpers."""

    def test_timed_logs_ok(self, perf_records):
        @timed("transaction")
        def commit(x):
            return x + 1

        assert commit(1) == 2
        records = perf_records()
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert records[0].getMessage().startswith("transaction")
        assert records[0].getMessage().endswith("OK")

    def test_timed_logs_failure(self, perf_records):
        @timed("transaction")
        def commit():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            commit()
        records = perf_records()
        assert records[0].levelno == logging.WARNING
        assert "FAIL: boom" in records[0].getMessage()

    def test_sync_section_extra(self, perf_records):
        with timed_section_sync("oper_walk", label="route", count=3):
            pass

        message = perf_records()[0].getMessage()
        assert "route" in message
        assert message.endswith("OK | count=3")

    @pytest.mark.asyncio
    async def test_async_section_failure(self, perf_records):
        with pytest.raises(KeyError):
            async with timed_section("tool:get_state"):
                raise KeyError("route")

        assert "FAIL" in perf_records()[0].getMessage()
