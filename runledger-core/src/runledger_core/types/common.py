"""Common types used across runledger modules.

This module provides foundational types used throughout runledger: type
aliases for identifiers and units, and the helpers that coerce loosely typed
engine values into them.

Type Aliases:
    DurationMS: Non-negative duration in milliseconds.
    TimestampMS: Milliseconds since the Unix epoch.
    CommitId: Full git commit hash.
    AttachmentId: Content identity (hex digest) of an attachment.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import NewType

DurationMS = NewType("DurationMS", int)
"""Type alias for durations in milliseconds. Never negative."""

TimestampMS = NewType("TimestampMS", int)
"""Type alias for Unix timestamps in milliseconds."""

CommitId = NewType("CommitId", str)
"""Type alias for git commit hashes."""

AttachmentId = NewType("AttachmentId", str)
"""Type alias for attachment content identities."""


def to_duration_ms(value: float | int | None) -> DurationMS:
    """Coerce an engine-reported duration into a DurationMS.

    Some engines report -1 for a duration that was never set. Negative
    values, non-finite values and None are floored to zero; fractional
    milliseconds are truncated.

    Args:
        value: Duration in milliseconds as reported by the engine.

    Returns:
        A non-negative integer duration.
    """
    if value is None:
        return DurationMS(0)
    value = float(value)
    if not math.isfinite(value) or value < 0:
        return DurationMS(0)
    return DurationMS(int(value))


def to_timestamp_ms(value: datetime | float | int) -> TimestampMS:
    """Coerce a datetime or epoch-milliseconds number into a TimestampMS.

    Args:
        value: A datetime, or milliseconds since the Unix epoch.

    Returns:
        Integer milliseconds since the Unix epoch.
    """
    if isinstance(value, datetime):
        return TimestampMS(int(value.timestamp() * 1000))
    return TimestampMS(int(value))
