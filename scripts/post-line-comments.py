#!/usr/bin/env python3
"""Post a review analysis to a PR as a summary review plus line comments.

Existing revu line comments are reconciled rather than duplicated: comments
that no longer point at changed code are deleted, changed code gets its
comment updated, and unchanged code is left alone.
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path

from revu.config import ConfigError, process_config, resolve_config_path
from revu.github import CommentPermissionError, GhReviewPlatform, TransientGitHubError
from revu.handler import handle_line_comments
from revu.log import error, notice, warn


def fail(message: str, code: int = 2) -> None:
    """Fail."""
    print(f"post-line-comments: {message}", file=sys.stderr)
    sys.exit(code)


def read_analysis(path: str | None) -> str:
    """Read the analysis JSON from a file, or stdin when no file (or "-") is given."""
    if not path or path == "-":
        return sys.stdin.read()
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        fail(f"unable to read {path}: {exc}")
    return ""


def main(argv: list[str] | None = None) -> None:
    """Main."""
    p = argparse.ArgumentParser(description="Post revu line comments on a PR.")
    p.add_argument("--repo", required=True, help="owner/repo")
    p.add_argument("--pr", type=int, required=True, help="PR number")
    p.add_argument("--analysis-file", default=None, help="Analysis JSON (default: stdin)")
    p.add_argument("--config", default=None, help="Path to .revu.yml (default: env REVU_CONFIG)")
    p.add_argument("--review-type", default="on-demand", help="Label recorded in review logs")
    args = p.parse_args(argv)

    try:
        config = process_config(resolve_config_path(args.config))
    except ConfigError as exc:
        fail(str(exc))
        return

    analysis_text = read_analysis(args.analysis_file)
    platform = GhReviewPlatform(args.repo)

    try:
        message = handle_line_comments(
            platform,
            args.pr,
            analysis_text,
            config=config,
            repository=args.repo,
            review_type=args.review_type,
        )
    except CommentPermissionError as exc:
        error(str(exc))
        sys.exit(1)
    except TransientGitHubError as exc:
        # Treat transient errors as non-fatal - warn but don't fail the job
        warn(str(exc))
        warn("Line comments were not posted due to a GitHub outage; rerun the review to retry.")
        sys.exit(0)
    except subprocess.CalledProcessError as exc:
        print(f"gh command failed: {exc.stderr}", file=sys.stderr)
        sys.exit(1)

    notice(message)


if __name__ == "__main__":
    main()
