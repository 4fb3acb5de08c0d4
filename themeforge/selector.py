"""Pattern variant selection.

Chooses exactly one ``PatternDefinition`` per requested section from the
candidates the registry snapshot offers for the blueprint's
(industry, preset, section type).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from themeforge.errors import PatternNotFoundError
from themeforge.models import Blueprint, PageSpec, PatternDefinition, SectionDescriptor
from themeforge.registry import RegistrySnapshot


@dataclass(frozen=True)
class Selection:
    """One section descriptor paired with its chosen pattern.

    ``pattern`` is ``None`` when the registry offers no candidate at all for
    a section without an explicit variant; the compiler records a
    section-scoped error and drops it.
    """

    page: PageSpec
    position: int
    descriptor: SectionDescriptor
    pattern: Optional[PatternDefinition]

    @property
    def key(self) -> str:
        return self.descriptor.key

    @property
    def ref(self) -> str:
        return f"{self.page.slug}/{self.key}"


def select_pattern(
    candidates: tuple[PatternDefinition, ...],
    descriptor: SectionDescriptor,
    *,
    ref: str = "",
) -> Optional[PatternDefinition]:
    """Pick one pattern for *descriptor* out of *candidates*.

    * An explicit ``variant_id`` must be among the candidates; otherwise
      ``PatternNotFoundError`` is raised. Explicit requests never fall back.
    * Otherwise the first candidate whose tags intersect the descriptor's
      hints wins.
    * With no hints, or no tag match, the first candidate wins.

    Returns ``None`` only when there are no candidates and no explicit id.
    """
    if descriptor.variant_id:
        for candidate in candidates:
            if candidate.id == descriptor.variant_id:
                return candidate
        offered = ", ".join(c.id for c in candidates) or "none"
        raise PatternNotFoundError(
            f"Pattern {descriptor.variant_id!r} is not a {descriptor.type.value} "
            f"candidate (available: {offered})",
            page=ref.split("/", 1)[0] or None,
            section=ref or None,
        )

    if not candidates:
        return None

    if descriptor.hints:
        hints = set(descriptor.hints)
        for candidate in candidates:
            if hints.intersection(candidate.tags):
                return candidate

    return candidates[0]


def select_all(blueprint: Blueprint, snapshot: RegistrySnapshot) -> list[Selection]:
    """Select a pattern for every section in declared page/section order.

    Raises:
        PatternNotFoundError: On the first explicit variant id that is not
            among its section's candidates.
    """
    selections: list[Selection] = []
    for page in blueprint.pages:
        for position, descriptor in enumerate(page.sections):
            candidates = snapshot.lookup_candidates(
                blueprint.industry, blueprint.preset, descriptor.type
            )
            pattern = select_pattern(
                candidates, descriptor, ref=f"{page.slug}/{descriptor.key}"
            )
            selections.append(
                Selection(page=page, position=position, descriptor=descriptor, pattern=pattern)
            )
    return selections
