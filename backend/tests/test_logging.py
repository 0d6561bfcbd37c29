"""Tests for the JSON log format."""

import json
import logging

from lms_quiz.core.logging import build_formatter


def test_records_render_as_json_with_service_fields():
    record = logging.LogRecord(
        name="lms_quiz.jobs.reconcile",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Quiz reconciliation completed",
        args=(),
        exc_info=None,
    )
    record.quiz_id = "q-1"

    data = json.loads(build_formatter().format(record))

    assert data["message"] == "Quiz reconciliation completed"
    assert data["level"] == "INFO"
    assert data["logger"] == "lms_quiz.jobs.reconcile"
    assert data["service"] == "LMS Quiz API"
    assert data["env"] == "test"
    assert data["quiz_id"] == "q-1"
    assert "timestamp" in data
