"""ThemeForge pattern registry.

Loads the JSON pattern catalogs and serves immutable snapshots of them.

Key classes:
    RegistrySnapshot  - Read-only industries/presets/patterns for one request
    PatternRegistry   - Handle that swaps snapshots atomically on reload
"""

from .catalog import (
    BUILTIN_CATALOG_DIR,
    SHARED_PRESET,
    PatternRegistry,
    RegistrySnapshot,
    load_snapshot,
)

__all__ = [
    "BUILTIN_CATALOG_DIR",
    "SHARED_PRESET",
    "PatternRegistry",
    "RegistrySnapshot",
    "load_snapshot",
]
