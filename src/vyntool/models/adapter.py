"""Adapter driver status model."""

from __future__ import annotations

from typing import ClassVar

from vyntool.models._base import VynBaseModel


class AdapterStatus(VynBaseModel):
    """Availability of the live-adapter driver, polled once at startup."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {"dllPath": "driverPath"}

    available: bool = False
    message: str = ""
    driver_path: str | None = None

    @classmethod
    def unknown(cls) -> AdapterStatus:
        """Status used when the backend could not be asked; rendered as driver-missing."""
        return cls(available=False, message="Adapter status unknown")

    @property
    def label(self) -> str:
        return "Driver ready" if self.available else "Driver missing"
