"""Pattern catalog loading and the immutable registry snapshot.

Catalog content lives in JSON files, each holding ``industries``, ``presets``
and ``patterns`` arrays. Files are loaded in sorted order from the built-in
``data/`` directory followed by any extra directories, validated into
pydantic models and frozen into a ``RegistrySnapshot``.

A snapshot never changes once built. ``PatternRegistry`` is the long-lived
handle that hands out the current snapshot and swaps in a new one on reload.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from themeforge.content.mappers import MAPPERS
from themeforge.errors import PatternNotFoundError, RegistryLoadError, UnknownPresetError
from themeforge.models import (
    IndustryDefinition,
    PatternDefinition,
    PresetDefinition,
    SectionType,
)

BUILTIN_CATALOG_DIR = Path(__file__).parent / "data"
SHARED_PRESET = "shared"


# ---------------------------------------------------------------------------
# RegistrySnapshot
# ---------------------------------------------------------------------------


class RegistrySnapshot:
    """Read-only view over one loaded catalog.

    All lookups are served from ``MappingProxyType`` views so a snapshot can
    be shared between concurrently running section tasks.
    """

    def __init__(
        self,
        industries: Mapping[str, IndustryDefinition],
        presets: Mapping[str, PresetDefinition],
        patterns: Mapping[str, PatternDefinition],
    ) -> None:
        self._industries = MappingProxyType(dict(industries))
        self._presets = MappingProxyType(dict(presets))
        self._patterns = MappingProxyType(dict(patterns))
        self._validate()

    # -- Accessors ---------------------------------------------------------

    @property
    def industries(self) -> Mapping[str, IndustryDefinition]:
        return self._industries

    @property
    def presets(self) -> Mapping[str, PresetDefinition]:
        return self._presets

    @property
    def patterns(self) -> Mapping[str, PatternDefinition]:
        return self._patterns

    def industry(self, industry_id: str) -> Optional[IndustryDefinition]:
        return self._industries.get(industry_id)

    def get_definition(self, pattern_id: str) -> PatternDefinition:
        """Return the pattern registered as *pattern_id*.

        Raises:
            PatternNotFoundError: If no such pattern exists.
        """
        try:
            return self._patterns[pattern_id]
        except KeyError:
            raise PatternNotFoundError(f"Pattern {pattern_id!r} is not registered") from None

    # -- Preset resolution -------------------------------------------------

    def get_preset(self, industry: str, preset: str) -> PresetDefinition:
        """Return the preset registered for (*industry*, *preset*).

        Raises:
            UnknownPresetError: If the pair is not registered. The shared
                preset is accepted under any industry.
        """
        found = self._presets.get(preset)
        if found is None or (found.industry != industry and found.id != SHARED_PRESET):
            raise UnknownPresetError(f"Unknown preset {industry}/{preset}")
        return found

    def resolve_preset(self, industry: str, preset: str) -> tuple[PresetDefinition, bool]:
        """Return the preset for (*industry*, *preset*) and whether it fell back.

        An unregistered pair, or a preset registered under a different
        industry, resolves to the shared preset with ``fell_back=True``.
        """
        try:
            return self.get_preset(industry, preset), False
        except UnknownPresetError:
            return self._presets[SHARED_PRESET], True

    def lookup_candidates(
        self,
        industry: str,
        preset: str,
        section_type: SectionType,
    ) -> tuple[PatternDefinition, ...]:
        """Return candidate patterns for one section, most-preferred first.

        The preset's own ordered list comes first, followed by the shared
        preset's list for the same section type. Duplicates keep their first
        position.
        """
        resolved, _ = self.resolve_preset(industry, preset)
        ordered: list[str] = list(resolved.patterns.get(section_type, []))
        if resolved.id != SHARED_PRESET:
            ordered.extend(self._presets[SHARED_PRESET].patterns.get(section_type, []))

        seen: set[str] = set()
        candidates: list[PatternDefinition] = []
        for pattern_id in ordered:
            if pattern_id in seen:
                continue
            seen.add(pattern_id)
            candidates.append(self._patterns[pattern_id])
        return tuple(candidates)

    # -- Internal ----------------------------------------------------------

    def _validate(self) -> None:
        if SHARED_PRESET not in self._presets:
            raise RegistryLoadError(f"Catalog has no {SHARED_PRESET!r} preset")

        for pattern in self._patterns.values():
            for slot_name, slot in pattern.slots.items():
                if slot.item_kind is not None and slot.item_kind not in MAPPERS:
                    raise RegistryLoadError(
                        f"Pattern {pattern.id!r} slot {slot_name!r} uses unknown "
                        f"item kind {slot.item_kind!r}"
                    )

        for preset in self._presets.values():
            if preset.industry not in self._industries:
                raise RegistryLoadError(
                    f"Preset {preset.id!r} references unknown industry {preset.industry!r}"
                )
            for section_type, pattern_ids in preset.patterns.items():
                for pattern_id in pattern_ids:
                    pattern = self._patterns.get(pattern_id)
                    if pattern is None:
                        raise RegistryLoadError(
                            f"Preset {preset.id!r} references unknown pattern {pattern_id!r}"
                        )
                    if pattern.section_type != section_type:
                        raise RegistryLoadError(
                            f"Preset {preset.id!r} lists {pattern_id!r} under "
                            f"{section_type.value!r} but it implements "
                            f"{pattern.section_type.value!r}"
                        )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def catalog_files(directories: Iterable[Path]) -> list[Path]:
    """Return every ``*.json`` catalog file, directory by directory, sorted."""
    files: list[Path] = []
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            raise RegistryLoadError(f"Catalog directory not found: {directory}")
        files.extend(sorted(directory.glob("*.json")))
    return files


def load_snapshot(extra_dirs: Iterable[Path] = ()) -> RegistrySnapshot:
    """Load the built-in catalog plus *extra_dirs* into a new snapshot.

    Raises:
        RegistryLoadError: On malformed JSON, schema violations, duplicate
            ids or inconsistent preset references.
    """
    industries: dict[str, IndustryDefinition] = {}
    presets: dict[str, PresetDefinition] = {}
    patterns: dict[str, PatternDefinition] = {}

    for path in catalog_files([BUILTIN_CATALOG_DIR, *extra_dirs]):
        data = _read_catalog(path)
        _add_all(industries, data.get("industries", []), IndustryDefinition, path, "industry")
        _add_all(presets, data.get("presets", []), PresetDefinition, path, "preset")
        _add_all(patterns, data.get("patterns", []), PatternDefinition, path, "pattern")

    return RegistrySnapshot(industries, presets, patterns)


def _read_catalog(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RegistryLoadError(f"{path.name}: invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise RegistryLoadError(f"{path.name}: expected a JSON object at the top level")
    return data


def _add_all(target: dict, entries: list, model: type, path: Path, label: str) -> None:
    for raw in entries:
        try:
            record = model.model_validate(raw)
        except ValidationError as exc:
            raise RegistryLoadError(f"{path.name}: invalid {label} entry: {exc}") from exc
        if record.id in target:
            raise RegistryLoadError(f"{path.name}: duplicate {label} id {record.id!r}")
        target[record.id] = record


# ---------------------------------------------------------------------------
# PatternRegistry
# ---------------------------------------------------------------------------


class PatternRegistry:
    """Long-lived handle over the current ``RegistrySnapshot``.

    Callers take ``registry.snapshot`` once per request and use it
    throughout; ``reload()`` and ``swap()`` replace the reference atomically
    and never touch a snapshot that is already in use.
    """

    def __init__(
        self,
        extra_dirs: Iterable[Path] = (),
        *,
        snapshot: Optional[RegistrySnapshot] = None,
    ) -> None:
        self._extra_dirs = [Path(d) for d in extra_dirs]
        self._lock = threading.Lock()
        self._snapshot = snapshot if snapshot is not None else load_snapshot(self._extra_dirs)

    @property
    def snapshot(self) -> RegistrySnapshot:
        with self._lock:
            return self._snapshot

    def swap(self, snapshot: RegistrySnapshot) -> RegistrySnapshot:
        """Install *snapshot* and return the one it replaced."""
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot
        return previous

    def reload(self) -> RegistrySnapshot:
        """Re-read every catalog file and swap in the result.

        The new snapshot is fully built before the swap, so a failing reload
        leaves the current snapshot in place.
        """
        fresh = load_snapshot(self._extra_dirs)
        self.swap(fresh)
        return fresh
