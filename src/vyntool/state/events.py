"""Snapshot update events.

Both ingestion paths (the one-shot pull and the push stream) convert their
inputs into these events. Only the state/store layer is allowed to apply them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vyntool.models.snapshot import Snapshot


class SnapshotSource(StrEnum):
    DEFAULT = "default"
    PULL = "pull"
    PUSH = "push"


class SnapshotUpdate(BaseModel):
    """A complete snapshot replacement to apply to the store."""

    model_config = ConfigDict(frozen=True)

    snapshot: Snapshot
    source: SnapshotSource
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    raw: dict[str, Any] = Field(default_factory=dict, description="Original payload (as received)")

    @field_validator("received_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
