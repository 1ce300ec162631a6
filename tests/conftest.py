"""Shared fixtures: module directories written into tmp_path."""

import json
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

WriteModule = Callable[..., Path]


@pytest.fixture
def write_module() -> WriteModule:
    """Create ``root/dirname`` with an optional manifest and actions.py."""

    def _write(
        root: Path,
        dirname: str,
        *,
        manifest: dict[str, Any] | None = None,
        actions: str | None = None,
    ) -> Path:
        directory = root / dirname
        directory.mkdir(parents=True)
        if manifest is not None:
            (directory / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")
        if actions is not None:
            (directory / "actions.py").write_text(textwrap.dedent(actions), encoding="utf-8")
        return directory

    return _write
