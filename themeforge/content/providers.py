"""Content provider interface and the in-memory snapshot provider.

The compiler only ever talks to a ``ContentProvider``: one awaitable call per
section that returns a slot -> value mapping. How that content is produced
(an LLM, a CMS export, a fixture file) is the provider's business.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from themeforge.errors import ContentProviderFailure
from themeforge.models import (
    Blueprint,
    IndustryDefinition,
    PageSpec,
    PatternDefinition,
    SectionDescriptor,
    SectionType,
)


class PromptContext(BaseModel):
    """Everything a provider may need to write content for one section."""

    company_name: str
    industry: str
    tone: str = Field(default="professional and approachable")
    tagline: str = Field(default="")
    description: str = Field(default="")
    location: str = Field(default="", description="'City, State' or empty")
    page_slug: str
    section_key: str
    section_type: SectionType
    pattern_id: str
    slots: dict[str, str] = Field(default_factory=dict, description="Slot name -> slot type")

    @property
    def ref(self) -> str:
        return f"{self.page_slug}/{self.section_key}"


def build_prompt_context(
    blueprint: Blueprint,
    industry: Optional[IndustryDefinition],
    page: PageSpec,
    descriptor: SectionDescriptor,
    pattern: PatternDefinition,
) -> PromptContext:
    """Assemble the ``PromptContext`` for one selected section."""
    company = blueprint.client_profile.company
    return PromptContext(
        company_name=company.name,
        industry=industry.name if industry is not None else blueprint.industry,
        tone=industry.tone if industry is not None else "professional and approachable",
        tagline=company.tagline,
        description=company.description,
        location=blueprint.client_profile.contact.location,
        page_slug=page.slug,
        section_key=descriptor.key,
        section_type=descriptor.type,
        pattern_id=pattern.id,
        slots={name: slot.type.value for name, slot in pattern.slots.items()},
    )


@runtime_checkable
class ContentProvider(Protocol):
    """Source of AI-written section content.

    Implementations raise ``ContentProviderFailure`` for unusable responses
    and may raise ``ContentProviderTimeout``; the caller additionally bounds
    every call with its own timeout.
    """

    async def fetch_content(
        self, section_type: SectionType, prompt_context: PromptContext
    ) -> dict[str, Any]:
        ...


class StaticContentProvider:
    """Serves content from a fixed snapshot.

    Snapshot keys are tried from most to least specific: ``"page/key"``,
    the section key, then the section type. Sections with no entry get an
    empty mapping.
    """

    def __init__(self, snapshot: Mapping[str, Mapping[str, Any]]) -> None:
        self._snapshot = {key: dict(value) for key, value in snapshot.items()}

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticContentProvider":
        """Load a snapshot from a JSON file."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ContentProviderFailure(f"Invalid content snapshot {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ContentProviderFailure(f"Content snapshot {path} must be a JSON object")
        return cls(data)

    async def fetch_content(
        self, section_type: SectionType, prompt_context: PromptContext
    ) -> dict[str, Any]:
        for key in (prompt_context.ref, prompt_context.section_key, section_type.value):
            if key in self._snapshot:
                return dict(self._snapshot[key])
        return {}
