"""Modules — discovery, dependency admission, and the module stack.

Discovery runs once at startup, resolution once over its output; the
dispatcher then consults the admitted set on every request.
"""

from warble.modules.actions import ActionTable
from warble.modules.discovery import discover_modules
from warble.modules.module import Module
from warble.modules.resolver import ResolutionReport, resolve_dependencies, resolve_with_report
from warble.modules.stack import ModuleStack

__all__ = [
    "ActionTable",
    "Module",
    "ModuleStack",
    "ResolutionReport",
    "discover_modules",
    "resolve_dependencies",
    "resolve_with_report",
]
