"""Filesystem module discovery.

Scans module source directories in order (user modules first, then the
built-in native modules) and builds one ``Module`` per immediate
subdirectory. Hidden directories (leading ``.``) are skipped.

Later directories override earlier ones by name. With the default order
(user, then native) a native module replaces a same-named user module.
"""

from __future__ import annotations

import logging
from pathlib import Path

from warble.errors import ModuleLoadError
from warble.injections import InjectionRegistry
from warble.modules.module import Module

logger = logging.getLogger("warble.modules")


def discover_modules(
    *source_dirs: str | Path,
    injections: InjectionRegistry | None = None,
    json_indent: int | None = None,
) -> dict[str, Module]:
    """Discover modules in *source_dirs*, keyed by module name.

    A source directory that is missing or unreadable contributes zero
    modules and logs a warning; a deployment may have no user modules
    at all. A subdirectory with a broken manifest is logged and skipped.

    Returns:
        Mapping of module name to ``Module`` in discovery order. A name
        seen again in a later directory keeps its first position but
        takes the later module (last write wins).
    """
    modules: dict[str, Module] = {}
    for source in source_dirs:
        for module_dir in _list_module_dirs(Path(source)):
            try:
                module = Module.from_directory(
                    module_dir, injections=injections, json_indent=json_indent
                )
            except ModuleLoadError as exc:
                logger.error("Skipping module: %s", exc)
                continue
            if module.name in modules:
                logger.info(
                    "Module %s from %s overrides %s",
                    module.name,
                    module_dir,
                    modules[module.name].path,
                )
            modules[module.name] = module

    logger.info("Discovered %d modules: %s", len(modules), ", ".join(modules) or "(none)")
    return modules


def _list_module_dirs(source: Path) -> list[Path]:
    """Immediate, non-hidden subdirectories of *source* in sorted order."""
    try:
        entries = sorted(source.iterdir())
    except OSError as exc:
        logger.warning("Module directory %s is not readable (%s); no modules loaded from it", source, exc)
        return []
    return [entry for entry in entries if entry.is_dir() and not entry.name.startswith(".")]
