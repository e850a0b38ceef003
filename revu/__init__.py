"""Reconcile AI review line comments on GitHub pull requests."""

from .analysis import Analysis, AnalysisError, Comment, SearchReplaceBlock, parse_analysis
from .config import ConfigError, RevuConfig, load_config, process_config
from .diff_model import DiffFileMap, DiffHunk, DiffInfo, parse_diff
from .handler import error_comment_handler, handle_line_comments
from .platform import (
    Absence,
    CommentExistence,
    CommentNotFoundError,
    ExistingComment,
    ReviewPlatform,
    check_comment_existence,
)
from .reconcile import ReconciliationStats, reconcile_line_comments

__all__ = [
    "Absence",
    "Analysis",
    "AnalysisError",
    "Comment",
    "CommentExistence",
    "CommentNotFoundError",
    "ConfigError",
    "DiffFileMap",
    "DiffHunk",
    "DiffInfo",
    "ExistingComment",
    "ReconciliationStats",
    "ReviewPlatform",
    "RevuConfig",
    "SearchReplaceBlock",
    "check_comment_existence",
    "error_comment_handler",
    "handle_line_comments",
    "load_config",
    "parse_analysis",
    "parse_diff",
    "process_config",
    "reconcile_line_comments",
]
