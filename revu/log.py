"""Workflow annotations and structured review events.

Human-facing diagnostics go to stderr as GitHub Actions annotations
(`::warning::` etc.) so they surface on the workflow run. Review lifecycle
events go to stdout as one JSON object per line for log shipping.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone

SERVICE = "revu"


def notice(message: str) -> None:
    """Notice."""
    print(f"::notice::{message}", file=sys.stderr)


def warn(message: str) -> None:
    """Warn."""
    print(f"::warning::{message}", file=sys.stderr)


def error(message: str) -> None:
    """Error."""
    print(f"::error::{message}", file=sys.stderr)


def log_event(event_type: str, *, level: str = "info", **fields: object) -> None:
    """Emit one JSON log line: timestamp, level, service, event_type + fields."""
    entry: dict[str, object] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "service": SERVICE,
        "event_type": event_type,
    }
    entry.update({k: v for k, v in fields.items() if v is not None})
    print(json.dumps(entry, default=str), flush=True)
