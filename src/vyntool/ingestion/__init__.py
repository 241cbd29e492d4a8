"""Ingestion layer.

Adapters that turn raw backend payloads (the one-shot pull and the push
stream) into :class:`vyntool.state.events.SnapshotUpdate` events.
"""

__all__: list[str] = []
