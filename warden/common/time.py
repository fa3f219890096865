"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp, used for commit author dates."""
    return dt.datetime.now(dt.UTC)
