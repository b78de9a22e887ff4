"""Tests for JSON logging, step timing and the prompt registry."""

import json
import logging

import pytest

from appraisal_docs.observability.logging import JSONFormatter, correlation_id, timed_step
from appraisal_docs.observability.prompts import get_active_prompt, get_prompt_version, list_prompts


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("appraisal_docs.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "appraisal_docs.test"
        assert entry["message"] == "hello"
        assert "correlation_id" not in entry

    def test_correlation_id_included(self):
        token = correlation_id.set("req-42")
        try:
            entry = json.loads(JSONFormatter().format(_record()))
        finally:
            correlation_id.reset(token)
        assert entry["correlation_id"] == "req-42"

    def test_extra_fields(self):
        entry = json.loads(JSONFormatter().format(_record(post_id="142", document_id="doc-1", ignored="x")))
        assert entry["post_id"] == "142"
        assert entry["document_id"] == "doc-1"
        assert "ignored" not in entry


class TestTimedStep:
    def test_logs_duration(self, caplog):
        logger = logging.getLogger("appraisal_docs.test.timed")
        with caplog.at_level(logging.INFO, logger="appraisal_docs.test.timed"):
            with timed_step(logger, "EXPORT_PDF", post_id="142"):
                pass
        (record,) = caplog.records
        assert record.step == "EXPORT_PDF"
        assert record.post_id == "142"
        assert record.duration_ms >= 0

    def test_no_log_on_error(self, caplog):
        logger = logging.getLogger("appraisal_docs.test.timed")
        with caplog.at_level(logging.INFO, logger="appraisal_docs.test.timed"):
            with pytest.raises(RuntimeError):
                with timed_step(logger, "EXPORT_PDF"):
                    raise RuntimeError("boom")
        assert caplog.records == []


class TestPrompts:
    def test_document_formatter_registered(self):
        assert list_prompts() == [{"name": "document_formatter", "version": "v1"}]
        assert get_prompt_version("document_formatter") == "v1"

    def test_prompt_formats(self):
        text = get_active_prompt("document_formatter").format(template="T", data="{}")
        assert "TEMPLATE:\nT" in text
        assert "APPRAISAL DATA:\n{}" in text

    def test_unknown_prompt(self):
        with pytest.raises(KeyError, match="Unknown prompt"):
            get_active_prompt("zoning_analysis")
