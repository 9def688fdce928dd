"""Tests for stage observers and tracing helpers."""

import logging

import pytest

from finstatement.infrastructure.tracing import trace_operation
from finstatement.pipeline.observer import LoggingObserver, ObserverGroup, PipelineObserver


class TestLoggingObserver:
    """Tests for LoggingObserver."""

    def test_is_observer(self):
        assert isinstance(LoggingObserver(), PipelineObserver)

    def test_completed_logs_structured_record(self, caplog):
        observer = LoggingObserver(logging.getLogger("finstatement.test.stages"))
        with caplog.at_level(logging.INFO, logger="finstatement.test.stages"):
            observer.stage_completed("retrieve", 12.345, candidate_count=5)

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.extra_fields["operation"] == "pipeline.retrieve"
        assert record.extra_fields["success"] is True
        assert record.extra_fields["candidate_count"] == 5

    def test_failed_logs_error(self, caplog):
        observer = LoggingObserver(logging.getLogger("finstatement.test.stages"))
        with caplog.at_level(logging.INFO, logger="finstatement.test.stages"):
            observer.stage_failed("select", 1.0, ValueError("boom"))

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.extra_fields["error_type"] == "ValueError"


def test_observer_group_isolates_failures():
    """Test one broken observer does not stop the others."""
    received = []

    class Broken:
        def stage_started(self, stage, **attributes):
            raise RuntimeError("broken")

    class Recording:
        def stage_started(self, stage, **attributes):
            received.append(stage)

    ObserverGroup([Broken(), Recording()]).stage_started("retrieve")
    assert received == ["retrieve"]


def test_trace_operation_reraises():
    """Test spans never swallow errors."""
    with pytest.raises(KeyError):
        with trace_operation("pipeline.test", {"stage": "x"}):
            raise KeyError("missing")
