"""Snapshot model.

The snapshot is the single authoritative record of scan state. The backend
delivers it whole; the core replaces its current value on every delivery
and never patches a field.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import Field, field_validator, model_validator

from vyntool.ingestion.normalize import clamp_percent, non_negative_or_zero, parse_timestamp, safe_int, safe_str
from vyntool.models._base import VynBaseModel, VynStrEnum


class Phase(VynStrEnum):
    """Discrete stage of a scan session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    IDENTIFYING = "identifying"
    DISCOVERING = "discovering"
    SCANNING_DTC = "scanningDtc"
    READY = "ready"
    ERROR = "error"

    @classmethod
    def _fallback(cls) -> Phase:
        return cls.DISCONNECTED

    @property
    def is_in_progress(self) -> bool:
        return self in IN_PROGRESS_PHASES


IN_PROGRESS_PHASES: frozenset[Phase] = frozenset(
    {Phase.CONNECTING, Phase.IDENTIFYING, Phase.DISCOVERING, Phase.SCANNING_DTC}
)


class TransportMode(VynStrEnum):
    """Channel used for the current or most recent scan."""

    SIMULATION = "simulation"
    LIVE_ADAPTER = "liveAdapter"

    @classmethod
    def _fallback(cls) -> TransportMode:
        return cls.SIMULATION

    @classmethod
    def _aliases(cls) -> dict[str, VynStrEnum]:
        return {"j2534": cls.LIVE_ADAPTER, "live": cls.LIVE_ADAPTER}


class ModuleStatus(VynStrEnum):
    OK = "ok"
    NO_RESPONSE = "noResponse"
    ERROR = "error"

    @classmethod
    def _fallback(cls) -> ModuleStatus:
        return cls.ERROR


class TroubleCode(VynBaseModel):
    """A diagnostic fault record owned by a module."""

    code: str = ""
    description: str = ""
    status: str = ""
    """Free-form status string (e.g. ``"active"``, ``"pending"``, ``"stored"``)."""

    @field_validator("code", "description", "status", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return safe_str(value) or ""


class Module(VynBaseModel):
    """One electronic control unit discovered on the vehicle network."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {
        "txId": "requestAddress",
        "rxId": "responseAddress",
        "dtcCount": "troubleCodeCount",
    }

    id: str
    name: str = ""
    bus: str = ""
    category: str = ""
    request_address: int = 0
    response_address: int = 0
    status: ModuleStatus = ModuleStatus.OK
    trouble_code_count: int = 0
    """Cached count; reconciled against ``Snapshot.trouble_codes_by_module``."""

    @field_validator("name", "bus", "category", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        text = str(value).strip() if value is not None else ""
        if not text:
            raise ValueError("module id must be non-empty")
        return text

    @field_validator("request_address", "response_address", mode="before")
    @classmethod
    def _coerce_address(cls, value: Any) -> int:
        parsed = safe_int(value)
        return parsed if parsed is not None else 0

    @field_validator("trouble_code_count", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        return non_negative_or_zero(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> ModuleStatus:
        return ModuleStatus(value)


class Bus(VynBaseModel):
    """A vehicle bus and the module identifiers discovered on it."""

    name: str = ""
    modules: list[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("modules", mode="before")
    @classmethod
    def _coerce_module_ids(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [text for text in (safe_str(item) for item in value) if text]


class Topology(VynBaseModel):
    buses: list[Bus] = Field(default_factory=list)


class Progress(VynBaseModel):
    """Stage/percent/message triple, meaningful only while a scan is in progress."""

    stage: str = ""
    percent: int = 0
    message: str = ""

    @field_validator("percent", mode="before")
    @classmethod
    def _clamp_percent(cls, value: Any) -> int:
        return clamp_percent(value)

    @field_validator("stage", "message", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return safe_str(value) or ""


class ErrorInfo(VynBaseModel):
    """Summary/detail pair, meaningful only in the ``error`` phase."""

    summary: str = "Scan failed"
    details: str = ""

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, value: Any) -> str:
        return safe_str(value) or "Scan failed"

    @field_validator("details", mode="before")
    @classmethod
    def _coerce_details(cls, value: Any) -> str:
        return safe_str(value) or ""


class SessionSummary(VynBaseModel):
    """Record of the previous completed session."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {
        "vin": "vehicleId",
        "dtcCount": "troubleCodeCount",
    }

    session_id: str = ""
    timestamp: datetime | None = None
    vehicle_id: str | None = None
    module_count: int = 0
    trouble_code_count: int = 0

    @field_validator("session_id", mode="before")
    @classmethod
    def _coerce_session_id(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("vehicle_id", mode="before")
    @classmethod
    def _coerce_vehicle_id(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("module_count", "trouble_code_count", mode="before")
    @classmethod
    def _coerce_counts(cls, value: Any) -> int:
        return non_negative_or_zero(value)


class Snapshot(VynBaseModel):
    """Complete, authoritative state of a diagnostic session.

    Optional fields default safely: an absent ``progress`` reads as 0 %,
    an absent ``last_error`` suppresses the error detail.

    Wire keys from older backends (``transport``, ``vin``, ``dtcs``,
    ``lastSession``) are accepted alongside the current ones.
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {
        "transport": "transportMode",
        "vin": "vehicleId",
        "dtcs": "troubleCodesByModule",
        "lastSession": "lastSessionSummary",
    }

    phase: Phase = Phase.DISCONNECTED
    transport_mode: TransportMode = TransportMode.SIMULATION
    adapter_connected: bool = False
    vehicle_id: str | None = None
    modules: list[Module] = Field(default_factory=list)
    trouble_codes_by_module: dict[str, list[TroubleCode]] = Field(default_factory=dict)
    topology: Topology = Field(default_factory=Topology)
    progress: Progress | None = None
    last_error: ErrorInfo | None = None
    session_id: str | None = None
    logs_path: str | None = None
    last_session_summary: SessionSummary | None = None

    @classmethod
    def empty(cls) -> Snapshot:
        """The default instance used before the first delivery."""
        return cls()

    @field_validator("phase", mode="before")
    @classmethod
    def _coerce_phase(cls, value: Any) -> Phase:
        return Phase(value)

    @field_validator("transport_mode", mode="before")
    @classmethod
    def _coerce_transport(cls, value: Any) -> TransportMode:
        return TransportMode(value)

    @field_validator("vehicle_id", "session_id", "logs_path", mode="before")
    @classmethod
    def _coerce_optional_text(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("modules", mode="before")
    @classmethod
    def _drop_modules_without_id(cls, value: Any) -> Any:
        """Entries that are not objects or carry no usable id are skipped."""
        if not isinstance(value, list):
            return []
        kept: list[Any] = []
        for item in value:
            if isinstance(item, Module):
                kept.append(item)
            elif isinstance(item, dict) and (safe_str(item.get("id")) or "").strip():
                kept.append(item)
        return kept

    @field_validator("trouble_codes_by_module", mode="before")
    @classmethod
    def _drop_malformed_code_lists(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        return {
            str(key): [code for code in codes if isinstance(code, dict | TroubleCode)]
            for key, codes in value.items()
            if isinstance(codes, list)
        }

    @model_validator(mode="after")
    def _reconcile_modules(self) -> Snapshot:
        """Drop duplicate module ids and recompute cached trouble-code counts.

        The first occurrence of an id wins. A module's cached count is
        replaced by the length of its code list whenever that list exists.
        """
        seen: set[str] = set()
        reconciled: list[Module] = []
        changed = False
        for module in self.modules:
            if module.id in seen:
                changed = True
                continue
            seen.add(module.id)
            codes = self.trouble_codes_by_module.get(module.id)
            if codes is not None and module.trouble_code_count != len(codes):
                module = module.model_copy(update={"trouble_code_count": len(codes)})
                changed = True
            reconciled.append(module)
        if changed:
            object.__setattr__(self, "modules", reconciled)
        return self

    def module_ids(self) -> list[str]:
        return [module.id for module in self.modules]
