"""Shared pytest fixtures for the ThemeForge test suite.

Provides reusable fixtures for:
- The built-in pattern registry and its snapshot
- Sample blueprints (construction / industrial-modern)
- Static, slow and failing content providers
- A fixed clock for byte-stable results
"""

from __future__ import annotations

import asyncio
import copy
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from themeforge.config import CompilerConfig, ContentConfig
from themeforge.content import PromptContext, StaticContentProvider
from themeforge.errors import ContentProviderFailure
from themeforge.models import Blueprint, SectionType
from themeforge.registry import PatternRegistry, RegistrySnapshot

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def registry() -> PatternRegistry:
    """Registry over the built-in catalog, loaded once per session."""
    return PatternRegistry()


@pytest.fixture
def snapshot(registry: PatternRegistry) -> RegistrySnapshot:
    return registry.snapshot


# ---------------------------------------------------------------------------
# Blueprints
# ---------------------------------------------------------------------------

_BASE_BLUEPRINT: dict[str, Any] = {
    "industry": "construction",
    "preset": "industrial-modern",
    "client_profile": {
        "company": {
            "name": "Acme Builders",
            "tagline": "Building Tomorrow Today",
            "description": "Family-owned general contractor serving Springfield since 1998.",
        },
        "contact": {
            "email": "hello@acme.test",
            "phone": "555-0100",
            "address": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "hours": "Mon-Fri 8-5",
        },
    },
    "design_tokens": {
        "colors": {"primary": "#1E3A5F", "secondary": "#F97316"},
        "typography": {"headings": "Montserrat", "body": "Open Sans"},
        "border_radius": "0.5rem",
    },
    "pages": [
        {"slug": "home", "title": "Home", "sections": [{"type": "hero"}]},
    ],
}


@pytest.fixture
def blueprint_data() -> dict[str, Any]:
    """Plain-dict blueprint: one home page with an unconfigured hero."""
    return copy.deepcopy(_BASE_BLUEPRINT)


@pytest.fixture
def blueprint(blueprint_data: dict[str, Any]) -> Blueprint:
    return Blueprint.model_validate(blueprint_data)


@pytest.fixture
def multi_section_data(blueprint_data: dict[str, Any]) -> dict[str, Any]:
    """Home page with hero, services, about and cta sections."""
    blueprint_data["pages"] = [
        {
            "slug": "home",
            "sections": [
                {"type": "hero"},
                {"type": "services"},
                {"type": "about"},
                {"type": "cta"},
            ],
        }
    ]
    return blueprint_data


# ---------------------------------------------------------------------------
# Content providers
# ---------------------------------------------------------------------------

HERO_CONTENT = {"headline": "Built to Last", "cta_primary_text": "Request a Quote"}

SERVICES_CONTENT = {
    "heading": "What We Build",
    "services": [
        {"name": "Home Renovation", "description": "Kitchens, baths and additions."},
        {"name": "Commercial Builds", "description": "Offices and retail fit-outs."},
    ],
}


@pytest.fixture
def static_provider() -> StaticContentProvider:
    return StaticContentProvider(
        {
            "hero": HERO_CONTENT,
            "services": SERVICES_CONTENT,
            "about": {"body": "We build homes.\n\nAnd we build them well."},
            "cta": {"headline": "Start Your Build Today"},
        }
    )


class SlowProvider:
    """Answers from *content* but sleeps first for the section types in *slow*."""

    def __init__(self, content: dict[str, dict[str, Any]], slow: set[SectionType], delay: float = 5.0):
        self.content = content
        self.slow = slow
        self.delay = delay
        self.calls: list[str] = []

    async def fetch_content(self, section_type: SectionType, prompt_context: PromptContext) -> dict[str, Any]:
        self.calls.append(prompt_context.ref)
        if section_type in self.slow:
            await asyncio.sleep(self.delay)
        return dict(self.content.get(section_type.value, {}))


class FailingProvider:
    """Always raises ``ContentProviderFailure``."""

    async def fetch_content(self, section_type: SectionType, prompt_context: PromptContext) -> dict[str, Any]:
        raise ContentProviderFailure("model unavailable", section=prompt_context.ref)


class BlockingProvider:
    """Never answers until ``release`` is set."""

    def __init__(self) -> None:
        self.release = asyncio.Event()

    async def fetch_content(self, section_type: SectionType, prompt_context: PromptContext) -> dict[str, Any]:
        await self.release.wait()
        return {}


@pytest.fixture
def fast_config() -> CompilerConfig:
    """Compiler config with a short per-section fetch timeout."""
    return CompilerConfig(content=ContentConfig(timeout=0.05))


# ---------------------------------------------------------------------------
# Clock & files
# ---------------------------------------------------------------------------

@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """Empty directory for extra catalog files."""
    directory = tmp_path / "catalog"
    directory.mkdir()
    return directory


# ---------------------------------------------------------------------------
# Provider fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_slow_provider():
    """Factory for ``SlowProvider`` instances."""
    return SlowProvider


@pytest.fixture
def failing_provider() -> FailingProvider:
    return FailingProvider()


@pytest.fixture
def blocking_provider() -> BlockingProvider:
    return BlockingProvider()
