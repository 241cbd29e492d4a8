"""vyntool - Async client-side state core for a vehicle diagnostic backend."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vyntool")
except PackageNotFoundError:
    __version__ = "0+local"
from vyntool.channel import SnapshotChannel
from vyntool.client import VynClient
from vyntool.config import VynConfig
from vyntool.dispatcher import CommandDispatcher
from vyntool.exceptions import (
    VynBackendError,
    VynConfigError,
    VynError,
    VynPayloadError,
    VynTransportError,
)
from vyntool.models import (
    AdapterStatus,
    ErrorInfo,
    Module,
    ModuleStatus,
    Phase,
    Progress,
    SessionSummary,
    Snapshot,
    TransportMode,
    TroubleCode,
)
from vyntool.state.phase import (
    ConnectScreen,
    ErrorScreen,
    PhaseMachine,
    ReadyScreen,
    ScanningScreen,
    Screen,
    ScreenKind,
    project_screen,
)
from vyntool.state.selection import SelectionController
from vyntool.state.store import SnapshotStore

__all__ = [
    "__version__",
    "AdapterStatus",
    "CommandDispatcher",
    "ConnectScreen",
    "ErrorInfo",
    "ErrorScreen",
    "Module",
    "ModuleStatus",
    "Phase",
    "PhaseMachine",
    "Progress",
    "ReadyScreen",
    "ScanningScreen",
    "Screen",
    "ScreenKind",
    "SelectionController",
    "SessionSummary",
    "Snapshot",
    "SnapshotChannel",
    "SnapshotStore",
    "TransportMode",
    "TroubleCode",
    "VynBackendError",
    "VynClient",
    "VynConfig",
    "VynConfigError",
    "VynError",
    "VynPayloadError",
    "VynTransportError",
    "project_screen",
]
