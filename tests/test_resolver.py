"""Tests for warble.modules.resolver — dependency admission."""

import logging

from warble.modules.module import Module
from warble.modules.resolver import (
    Exclusion,
    resolve_dependencies,
    resolve_with_report,
)


def _mod(name: str, *deps: str) -> Module:
    return Module(name, dependencies=deps)


def _modules(*mods: Module) -> dict[str, Module]:
    return {m.name: m for m in mods}


def _assert_closed(resolved: dict[str, Module]) -> None:
    for module in resolved.values():
        for dep in module.dependencies:
            assert dep in resolved, f"{module.name} kept without {dep}"


class TestResolveDependencies:
    def test_all_satisfied_kept_in_order(self) -> None:
        mods = _modules(_mod("c"), _mod("a", "c"), _mod("b", "a", "c"))
        resolved = resolve_dependencies(mods)
        assert list(resolved) == ["c", "a", "b"]

    def test_no_dependencies(self) -> None:
        mods = _modules(_mod("a"), _mod("b"))
        assert list(resolve_dependencies(mods)) == ["a", "b"]

    def test_empty(self) -> None:
        assert resolve_dependencies({}) == {}

    def test_missing_dependency_excluded(self) -> None:
        mods = _modules(_mod("a"), _mod("b", "missing"))
        assert list(resolve_dependencies(mods)) == ["a"]

    def test_transitive_exclusion(self) -> None:
        mods = _modules(_mod("a", "b"), _mod("b", "x"), _mod("c", "a"), _mod("d"))
        assert list(resolve_dependencies(mods)) == ["d"]

    def test_dependency_declared_after_dependent_still_satisfies(self) -> None:
        mods = _modules(_mod("shop", "users"), _mod("users"))
        assert list(resolve_dependencies(mods)) == ["shop", "users"]

    def test_mutual_pair_is_admitted(self) -> None:
        """Mutually dependent modules stay; there is no cycle detection."""
        mods = _modules(_mod("a", "b"), _mod("b", "a"))
        resolved = resolve_dependencies(mods)
        assert "a" in resolved
        assert "b" in resolved

    def test_self_dependency_is_admitted(self) -> None:
        mods = _modules(_mod("a", "a"))
        assert list(resolve_dependencies(mods)) == ["a"]

    def test_cycle_with_external_missing_dependency_dropped(self) -> None:
        mods = _modules(_mod("a", "b"), _mod("b", "a", "x"), _mod("c"))
        assert list(resolve_dependencies(mods)) == ["c"]

    def test_output_is_closed_subset(self) -> None:
        cases = [
            _modules(_mod("a", "b"), _mod("b"), _mod("c", "z")),
            _modules(_mod("a", "b", "c"), _mod("b", "c"), _mod("c", "d")),
            _modules(_mod("p", "q"), _mod("q", "p"), _mod("r", "p", "s")),
            _modules(_mod("one"), _mod("two", "one"), _mod("three", "two")),
        ]
        for mods in cases:
            resolved = resolve_dependencies(mods)
            assert set(resolved) <= set(mods)
            _assert_closed(resolved)
            for name, module in resolved.items():
                assert module is mods[name]

    def test_input_not_mutated(self) -> None:
        mods = _modules(_mod("a", "missing"), _mod("b"))
        resolve_dependencies(mods)
        assert list(mods) == ["a", "b"]

    def test_on_excluded_reports_in_removal_order(self) -> None:
        mods = _modules(_mod("a", "b"), _mod("b", "x"), _mod("c", "a"))
        seen: list[tuple[str, str]] = []
        resolve_dependencies(mods, on_excluded=lambda name, dep: seen.append((name, dep)))
        assert seen == [("b", "x"), ("a", "b"), ("c", "a")]

    def test_exclusion_is_logged(self, caplog) -> None:
        mods = _modules(_mod("shop", "payments"))
        with caplog.at_level(logging.WARNING, logger="warble.modules"):
            resolve_dependencies(mods)
        assert "shop" in caplog.text
        assert "payments" in caplog.text


class TestResolveWithReport:
    def test_ok_when_nothing_excluded(self) -> None:
        report = resolve_with_report(_modules(_mod("a"), _mod("b", "a")))
        assert report.ok
        assert report.excluded == ()

    def test_excluded_entries(self) -> None:
        report = resolve_with_report(_modules(_mod("a", "gone"), _mod("b")))
        assert not report.ok
        assert report.excluded == (Exclusion(name="a", missing="gone"),)
        assert list(report.modules) == ["b"]
