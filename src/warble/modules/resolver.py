"""Dependency admission for discovered modules.

``resolve_dependencies`` keeps the largest subset of modules whose
declared dependencies are all present, dropping unsatisfied modules
transitively. It filters; it does not reorder. Admitted modules keep
their discovery order, which is also the dispatcher's match order.

There is no cycle detection: modules that depend on each other are
admitted as long as every name they reference is present.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from warble.modules.module import Module

logger = logging.getLogger("warble.modules")

ExclusionHook = Callable[[str, str], None]


@dataclass(frozen=True, slots=True)
class Exclusion:
    """A module dropped because a dependency is not installed."""

    name: str
    missing: str


@dataclass(frozen=True, slots=True)
class ResolutionReport:
    """Admitted modules plus what was excluded, in exclusion order."""

    modules: dict[str, Module]
    excluded: tuple[Exclusion, ...]

    @property
    def ok(self) -> bool:
        return not self.excluded


def resolve_with_report(modules: Mapping[str, Module]) -> ResolutionReport:
    """Resolve *modules* and report every exclusion.

    Repeats a scan until nothing changes: the first module found with a
    dependency missing from the working set is removed and the scan
    restarts, since one removal can invalidate modules already checked.
    At most ``len(modules)`` restarts happen because the set only shrinks.
    """
    available: dict[str, tuple[str, ...]] = {
        name: tuple(module.dependencies) for name, module in modules.items()
    }
    excluded: list[Exclusion] = []

    while True:
        removed = _find_unsatisfied(available)
        if removed is None:
            break
        name, missing = removed
        del available[name]
        excluded.append(Exclusion(name=name, missing=missing))
        logger.warning(
            "Unable to load module %s: dependency %s is not installed", name, missing
        )

    admitted = {name: modules[name] for name in available}
    return ResolutionReport(modules=admitted, excluded=tuple(excluded))


def resolve_dependencies(
    modules: Mapping[str, Module],
    *,
    on_excluded: ExclusionHook | None = None,
) -> dict[str, Module]:
    """Return the modules whose dependencies are all admitted.

    Args:
        modules: Discovered modules keyed by name, in discovery order.
        on_excluded: Called as ``on_excluded(name, missing)`` for each
            dropped module, in the order they were dropped.
    """
    report = resolve_with_report(modules)
    if on_excluded is not None:
        for exclusion in report.excluded:
            on_excluded(exclusion.name, exclusion.missing)
    return report.modules


def _find_unsatisfied(available: Mapping[str, tuple[str, ...]]) -> tuple[str, str] | None:
    for name, dependencies in available.items():
        for dependency in dependencies:
            if dependency not in available:
                return name, dependency
    return None
