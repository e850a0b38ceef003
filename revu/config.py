"""Typed loader for .revu.yml.

Centralizes parsing/validation; the resulting RevuConfig is built once by the
caller and handed to the reconciler explicitly. It is read-only afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = Path(".revu.yml")
CONFIG_PATH_ENV = "REVU_CONFIG"


class ConfigError(RuntimeError):
    """Data class for Config Error."""
    pass


@dataclass(frozen=True)
class LineCommentsConfig:
    """Data class for line comment placement."""
    enable_search_replace: bool = True
    cleanup_obsolete: bool = True
    constrain_cross_hunk: bool = False
    max_comments: int | None = None


@dataclass(frozen=True)
class ErrorCommentConfig:
    """Data class for the fallback error comment."""
    logs_url: str | None = None


@dataclass(frozen=True)
class RevuConfig:
    """Data class for Revu Config."""
    line_comments: LineCommentsConfig = field(default_factory=LineCommentsConfig)
    error_comment: ErrorCommentConfig = field(default_factory=ErrorCommentConfig)


def _require_mapping(value: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{ctx}: expected mapping")
    return value


def _require_bool(value: Any, ctx: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{ctx}: expected boolean")
    return value


def _require_positive_int(value: Any, ctx: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{ctx}: expected integer")
    if value < 1:
        raise ConfigError(f"{ctx}: must be >= 1")
    return value


def _optional_str(value: Any, ctx: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{ctx}: expected string")
    s = value.strip()
    return s or None


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text())
    except FileNotFoundError:
        return None
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e


def _parse_line_comments(raw: Any) -> LineCommentsConfig:
    if raw is None:
        return LineCommentsConfig()
    cfg = _require_mapping(raw, "config.lineComments")
    defaults = LineCommentsConfig()
    max_comments = cfg.get("maxComments")
    return LineCommentsConfig(
        enable_search_replace=_require_bool(
            cfg.get("enableSearchReplace", defaults.enable_search_replace),
            "config.lineComments.enableSearchReplace",
        ),
        cleanup_obsolete=_require_bool(
            cfg.get("cleanupObsolete", defaults.cleanup_obsolete),
            "config.lineComments.cleanupObsolete",
        ),
        constrain_cross_hunk=_require_bool(
            cfg.get("constrainCrossHunk", defaults.constrain_cross_hunk),
            "config.lineComments.constrainCrossHunk",
        ),
        max_comments=(
            _require_positive_int(max_comments, "config.lineComments.maxComments")
            if max_comments is not None
            else None
        ),
    )


def load_config(path: Path) -> RevuConfig:
    """Load config; a missing file yields the defaults."""
    raw = _load_yaml(path)
    if raw is None:
        return RevuConfig()

    cfg = _require_mapping(raw, "config")

    error_comment = ErrorCommentConfig()
    error_raw = cfg.get("errorComment")
    if error_raw is not None:
        error_cfg = _require_mapping(error_raw, "config.errorComment")
        error_comment = ErrorCommentConfig(
            logs_url=_optional_str(error_cfg.get("logsUrl"), "config.errorComment.logsUrl"),
        )

    return RevuConfig(
        line_comments=_parse_line_comments(cfg.get("lineComments")),
        error_comment=error_comment,
    )


def resolve_config_path(cli_path: str | None = None) -> Path:
    return Path(cli_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


_process_config: RevuConfig | None = None


def process_config(path: Path | None = None) -> RevuConfig:
    """Config for this process, loaded on first use and fixed afterwards."""
    global _process_config
    if _process_config is None:
        _process_config = load_config(path or resolve_config_path())
    return _process_config


def _reset_process_config_for_tests() -> None:
    global _process_config
    _process_config = None
