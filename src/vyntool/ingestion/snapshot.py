"""Snapshot ingestion helpers.

Both ingestion paths share one conversion: validate the raw payload into a
:class:`~vyntool.models.snapshot.Snapshot` and wrap it in a
:class:`~vyntool.state.events.SnapshotUpdate` tagged with its source.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from vyntool.exceptions import VynPayloadError
from vyntool.models.snapshot import Phase, Snapshot
from vyntool.state.events import SnapshotSource, SnapshotUpdate

_logger = logging.getLogger(__name__)


def parse_snapshot(raw: Any) -> Snapshot:
    """Validate *raw* into a snapshot.

    Raises
    ------
    VynPayloadError
        The payload is not a JSON object or does not validate.
    """
    if not isinstance(raw, dict):
        raise VynPayloadError(f"Snapshot payload must be an object, got {type(raw).__name__}")

    phase = raw.get("phase")
    if phase is not None and not Phase.is_known(phase):
        _logger.warning("Unknown snapshot phase %r; treating as %s", phase, Phase.DISCONNECTED)

    try:
        return Snapshot.model_validate(raw)
    except ValidationError as exc:
        raise VynPayloadError(f"Invalid snapshot payload: {exc}") from exc


def build_update(raw: Any, source: SnapshotSource) -> SnapshotUpdate:
    """Build a whole-snapshot replacement event from a raw payload."""
    snapshot = parse_snapshot(raw)
    return SnapshotUpdate(snapshot=snapshot, source=source, raw=raw)
