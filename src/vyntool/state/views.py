"""Derived view engine.

Pure projections over a :class:`Snapshot`. They are cheap enough to redo on
every replacement; :class:`SnapshotViews` bundles them so the store can
compute them once per version.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from vyntool.models.snapshot import Module, Snapshot, TroubleCode


class ModuleTroubleCode(TroubleCode):
    """A trouble code annotated with its owning module."""

    module_id: str


class ResolvedBus(BaseModel):
    """A bus with its module identifiers resolved against ``Snapshot.modules``."""

    model_config = ConfigDict(frozen=True)

    name: str
    modules: list[Module] = Field(default_factory=list)


def total_trouble_code_count(snapshot: Snapshot) -> int:
    return sum(len(codes) for codes in snapshot.trouble_codes_by_module.values())


def _module_iteration_order(snapshot: Snapshot) -> list[str]:
    """Module ids in ``modules`` order, then any remaining mapping keys."""
    order: list[str] = []
    for module in snapshot.modules:
        if module.id in snapshot.trouble_codes_by_module:
            order.append(module.id)
    listed = set(order)
    order.extend(key for key in snapshot.trouble_codes_by_module if key not in listed)
    return order


def aggregated_trouble_codes(snapshot: Snapshot) -> list[ModuleTroubleCode]:
    """Flatten all code lists into one sequence tagged with module ids."""
    aggregated: list[ModuleTroubleCode] = []
    for module_id in _module_iteration_order(snapshot):
        for code in snapshot.trouble_codes_by_module[module_id]:
            aggregated.append(
                ModuleTroubleCode(
                    code=code.code,
                    description=code.description,
                    status=code.status,
                    module_id=module_id,
                )
            )
    return aggregated


def trouble_codes_for_module(snapshot: Snapshot, module_id: str) -> list[TroubleCode]:
    """Codes for *module_id*; empty when the module has not been queried."""
    return list(snapshot.trouble_codes_by_module.get(module_id, ()))


def find_module(snapshot: Snapshot, module_id: str | None) -> Module | None:
    if module_id is None:
        return None
    for module in snapshot.modules:
        if module.id == module_id:
            return module
    return None


def resolve_topology(snapshot: Snapshot) -> list[ResolvedBus]:
    """Resolve bus membership; dangling identifiers are skipped."""
    by_id = {module.id: module for module in snapshot.modules}
    resolved: list[ResolvedBus] = []
    for bus in snapshot.topology.buses:
        members = [by_id[module_id] for module_id in bus.modules if module_id in by_id]
        resolved.append(ResolvedBus(name=bus.name, modules=members))
    return resolved


class SnapshotViews(BaseModel):
    """Aggregates computed for exactly one snapshot."""

    model_config = ConfigDict(frozen=True)

    total_trouble_code_count: int = 0
    aggregated_trouble_codes: list[ModuleTroubleCode] = Field(default_factory=list)
    topology: list[ResolvedBus] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> SnapshotViews:
        return cls(
            total_trouble_code_count=total_trouble_code_count(snapshot),
            aggregated_trouble_codes=aggregated_trouble_codes(snapshot),
            topology=resolve_topology(snapshot),
        )
