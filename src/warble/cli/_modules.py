"""``warble modules`` — print the admitted module table and exclusions."""

import argparse
import sys

from warble.cli._logging import configure_logging
from warble.cli._resolve import resolve_app
from warble.modules.resolver import ResolutionReport


def list_modules(args: argparse.Namespace) -> None:
    """Print admitted modules in dispatch order, then excluded ones.

    Exits with status 1 when any module was excluded.
    """
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging(args.log_level or app.config.log_level)

    report = app.resolution
    print(format_report(report))
    if not report.ok:
        raise SystemExit(1)


def format_report(report: ResolutionReport) -> str:
    """Render a resolution report as a plain-text table."""
    lines: list[str] = []
    if report.modules:
        width = max(len(name) for name in report.modules)
        lines.append(f"Admitted modules ({len(report.modules)}), in dispatch order:")
        for name, module in report.modules.items():
            deps = ", ".join(module.dependencies) or "-"
            lines.append(f"  {name:<{width}}  {module.domain:<20} ns={module.namespace}  deps: {deps}")
    else:
        lines.append("No modules admitted.")

    if report.excluded:
        lines.append("")
        lines.append(f"Excluded modules ({len(report.excluded)}):")
        for exclusion in report.excluded:
            lines.append(f"  {exclusion.name}: missing dependency {exclusion.missing!r}")
    return "\n".join(lines)
