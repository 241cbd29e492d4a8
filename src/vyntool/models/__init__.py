"""Data models for backend payloads."""

from vyntool.models._base import VynBaseModel, VynStrEnum
from vyntool.models.adapter import AdapterStatus
from vyntool.models.snapshot import (
    IN_PROGRESS_PHASES,
    Bus,
    ErrorInfo,
    Module,
    ModuleStatus,
    Phase,
    Progress,
    SessionSummary,
    Snapshot,
    Topology,
    TransportMode,
    TroubleCode,
)

__all__ = [
    "IN_PROGRESS_PHASES",
    "AdapterStatus",
    "Bus",
    "ErrorInfo",
    "Module",
    "ModuleStatus",
    "Phase",
    "Progress",
    "SessionSummary",
    "Snapshot",
    "Topology",
    "TransportMode",
    "TroubleCode",
    "VynBaseModel",
    "VynStrEnum",
]
