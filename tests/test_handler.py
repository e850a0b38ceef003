"""Tests for revu.handler end-to-end pass handling."""
from __future__ import annotations

import json

from revu.config import ErrorCommentConfig, RevuConfig
from revu.handler import (
    error_comment_handler,
    format_error_comment,
    format_result_message,
    format_summary,
    handle_line_comments,
)
from revu.markers import ERROR_MARKER, SUMMARY_MARKER
from revu.reconcile import ReconciliationStats

DIFF = "\n".join(
    [
        "diff --git a/app.py b/app.py",
        "@@ -1,1 +1,3 @@",
        " import os",
        "+x = 1",
        "+y = 2",
        "",
    ]
)

ANALYSIS = json.dumps(
    {
        "summary": "Two small nits.",
        "comments": [
            {"path": "app.py", "line": 2, "body": "Name this better."},
            {"path": "app.py", "line": 1, "body": "Not in the diff."},
        ],
    }
)


def _events(capsys) -> list[dict]:
    out = capsys.readouterr().out
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


def test_format_summary():
    assert format_summary("All good") == f"{SUMMARY_MARKER}\n\nAll good"


def test_format_result_message():
    stats = ReconciliationStats(created=2, updated=1, deleted=3, skipped=4)
    assert format_result_message(9, stats) == "PR #9: Created 2, updated 1, deleted 3, and skipped 4 line comments"


class TestFormatErrorComment:
    def test_single_line(self):
        body = format_error_comment("boom", config=RevuConfig())
        assert body == f"{ERROR_MARKER}\n\nAn error occurred: boom"

    def test_details_and_logs_link(self):
        config = RevuConfig(error_comment=ErrorCommentConfig(logs_url="https://example.com/run/1"))
        body = format_error_comment("boom\nTraceback line 1\nline 2", config=config)

        assert body.startswith(f"{ERROR_MARKER}\n\nAn error occurred: boom\n\n<details>")
        assert "<summary>Error details</summary>" in body
        assert "Traceback line 1\nline 2" in body
        assert body.endswith("[Revu logs](https://example.com/run/1)")


def test_error_comment_is_upserted_not_duplicated(platform):
    error_comment_handler(platform, 3, "first failure", config=RevuConfig())
    message = error_comment_handler(platform, 3, "second failure\nmore", config=RevuConfig())

    assert message == "PR #3: posted error comment (second failure)"
    (body,) = platform.issue_comments.values()
    assert "second failure" in body


class TestHandleLineComments:
    def test_successful_pass(self, platform, capsys):
        platform.diff = DIFF
        platform.files["app.py"] = "import os\nx = 1\ny = 2\n"

        message = handle_line_comments(platform, 5, ANALYSIS, config=RevuConfig(), repository="o/r")

        assert message == "PR #5: Created 1, updated 0, deleted 0, and skipped 1 line comments"
        assert platform.reviews == [f"{SUMMARY_MARKER}\n\nTwo small nits."]
        assert platform.ops("create") == [("create", "app.py", 2, None)]

        events = _events(capsys)
        assert [e["event_type"] for e in events] == ["review_started", "review_completed"]
        completed = events[-1]
        assert completed["service"] == "revu"
        assert completed["pr_number"] == 5
        assert completed["repository"] == "o/r"
        assert completed["review_type"] == "on-demand"
        assert completed["comments"] == {"created": 1, "updated": 0, "deleted": 0, "skipped": 1}
        assert isinstance(completed["duration_ms"], int)

    def test_malformed_analysis_posts_error_comment(self, platform, capsys):
        message = handle_line_comments(platform, 5, "{broken", config=RevuConfig(), repository="o/r")

        assert message.startswith("PR #5: posted error comment (Error processing line comments: invalid JSON")
        assert platform.reviews == []
        (body,) = platform.issue_comments.values()
        assert body.startswith(ERROR_MARKER)

        events = _events(capsys)
        assert [e["event_type"] for e in events] == ["review_started", "review_failed", "system_error"]
        assert events[-1]["level"] == "error"

    def test_listing_failure_posts_error_comment(self, platform):
        platform.diff = DIFF
        platform.fail_list = RuntimeError("HTTP 502")

        message = handle_line_comments(platform, 5, ANALYSIS, config=RevuConfig(), repository="o/r")

        assert "HTTP 502" in message
        assert len(platform.issue_comments) == 1
