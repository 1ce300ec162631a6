"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path

# Built-in modules shipped inside the package
NATIVE_MODULES_DIR = Path(__file__).parent / "native"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(modules_path="app/modules", port=3000)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    workers: int = 1

    # Modules
    modules_path: str | Path = "modules"
    native_path: str | Path | None = None  # None = bundled native modules
    load_native: bool = True

    # Responses
    json_indent: int | None = 4

    # Logging
    log_level: str = "info"

    @property
    def module_dirs(self) -> tuple[Path, ...]:
        """Module source directories in scan order (user first, then native)."""
        dirs = [Path(self.modules_path)]
        if self.load_native:
            dirs.append(Path(self.native_path) if self.native_path else NATIVE_MODULES_DIR)
        return tuple(dirs)
