"""Phase state machine.

The core never decides phase transitions itself: it reacts to the phase
carried by each arriving snapshot. :func:`reduce_phase` is a pure reducer
over snapshot replacements and :func:`project_screen` maps a snapshot onto
exactly one phase-scoped screen. Failures are represented as data in the
``error`` phase; nothing here raises.
"""

from __future__ import annotations

import logging
import re
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from vyntool.models.snapshot import (
    IN_PROGRESS_PHASES,
    ErrorInfo,
    Module,
    Phase,
    Progress,
    SessionSummary,
    Snapshot,
    TransportMode,
)
from vyntool.state.selection import SelectionController
from vyntool.state.views import total_trouble_code_count

_logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


class ScreenKind(StrEnum):
    CONNECT = "connect"
    SCANNING = "scanning"
    READY = "ready"
    ERROR = "error"


class ConnectScreen(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[ScreenKind.CONNECT] = ScreenKind.CONNECT
    last_session: SessionSummary | None = None


class ScanningScreen(BaseModel):
    """Shared view for every in-progress phase; only the title differs."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ScreenKind.SCANNING] = ScreenKind.SCANNING
    phase: Phase
    title: str
    progress: Progress
    modules: list[Module] = Field(default_factory=list)


class ReadyScreen(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[ScreenKind.READY] = ScreenKind.READY
    vehicle_id: str | None = None
    module_count: int = 0
    trouble_code_count: int = 0


class ErrorScreen(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[ScreenKind.ERROR] = ScreenKind.ERROR
    error: ErrorInfo = Field(default_factory=ErrorInfo)

    @property
    def details_text(self) -> str:
        return self.error.details or "Please retry the connection."


Screen = Annotated[
    ConnectScreen | ScanningScreen | ReadyScreen | ErrorScreen,
    Field(discriminator="kind"),
]


def phase_title(phase: Phase) -> str:
    """``"scanningDtc"`` → ``"Scanning Dtc"``."""
    text = _CAMEL_BOUNDARY.sub(r" \1", phase.value).strip()
    return text[:1].upper() + text[1:]


def project_screen(snapshot: Snapshot) -> Screen:
    """Map the snapshot's phase onto its screen variant."""
    phase = snapshot.phase
    if phase == Phase.DISCONNECTED:
        return ConnectScreen(last_session=snapshot.last_session_summary)
    if phase in IN_PROGRESS_PHASES:
        progress = snapshot.progress or Progress(stage=phase.value, percent=0, message="Working")
        return ScanningScreen(
            phase=phase,
            title=phase_title(phase),
            progress=progress,
            modules=list(snapshot.modules),
        )
    if phase == Phase.READY:
        return ReadyScreen(
            vehicle_id=snapshot.vehicle_id,
            module_count=len(snapshot.modules),
            trouble_code_count=total_trouble_code_count(snapshot),
        )
    return ErrorScreen(error=snapshot.last_error or ErrorInfo())


class PhaseState(BaseModel):
    """Locally remembered phase context."""

    model_config = ConfigDict(frozen=True)

    phase: Phase | None = None
    """Phase of the last applied snapshot; ``None`` before the first one."""
    connect_mode: TransportMode = TransportMode.SIMULATION
    """Transport mode offered on the connect screen."""
    transport: TransportMode | None = None
    """Transport reported by the last applied snapshot."""


class PhaseTransition(BaseModel):
    model_config = ConfigDict(frozen=True)

    previous: Phase | None
    state: PhaseState

    @property
    def current(self) -> Phase:
        assert self.state.phase is not None  # noqa: S101
        return self.state.phase

    @property
    def entered(self) -> bool:
        return self.previous != self.current


def reduce_phase(state: PhaseState, snapshot: Snapshot) -> PhaseTransition:
    """Apply one snapshot to *state*.

    Entering ``disconnected`` resets the connect mode to the transport the
    backend reports. A repeated ``disconnected`` snapshot only resets it when
    that transport changed, so a local choice on the connect screen survives
    unrelated updates such as the adapter being plugged in.
    """
    connect_mode = state.connect_mode
    if snapshot.phase == Phase.DISCONNECTED and (
        state.phase != Phase.DISCONNECTED or state.transport != snapshot.transport_mode
    ):
        connect_mode = snapshot.transport_mode
    return PhaseTransition(
        previous=state.phase,
        state=PhaseState(phase=snapshot.phase, connect_mode=connect_mode, transport=snapshot.transport_mode),
    )


class PhaseMachine:
    """Stateful driver around :func:`reduce_phase`.

    Owns the phase context and drives the selection side effects:
    revalidation on every snapshot and a one-shot auto-select when the
    session enters ``ready``.
    """

    def __init__(self, selection: SelectionController | None = None) -> None:
        self._state = PhaseState()
        self._selection = selection or SelectionController()

    @property
    def state(self) -> PhaseState:
        return self._state

    @property
    def selection(self) -> SelectionController:
        return self._selection

    @property
    def connect_mode(self) -> TransportMode:
        return self._state.connect_mode

    def set_connect_mode(self, mode: TransportMode) -> None:
        """Local operator choice on the connect screen."""
        self._state = self._state.model_copy(update={"connect_mode": TransportMode(mode)})

    def apply(self, snapshot: Snapshot) -> PhaseTransition:
        transition = reduce_phase(self._state, snapshot)
        self._state = transition.state
        if transition.entered:
            _logger.debug("Phase %s -> %s", transition.previous, transition.current)

        self._selection.revalidate(snapshot)
        if transition.current == Phase.READY:
            if transition.entered:
                self._selection.arm_auto_select()
            self._selection.apply_auto_select(snapshot)
        else:
            self._selection.disarm_auto_select()
        return transition
