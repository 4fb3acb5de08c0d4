"""ThemeForge configuration.

Centralised, typed configuration for the compiler. All settings use Pydantic
v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from themeforge.models import FailurePolicy, SectionType


class ContentConfig(BaseModel):
    """Settings for the AI content fetch."""

    enabled: bool = Field(default=True, description="Whether to call the content provider at all")
    timeout: float = Field(default=20.0, gt=0, description="Per-section fetch timeout in seconds")


class ConcurrencyConfig(BaseModel):
    """Tuning knobs for per-section parallelism."""

    max_parallel_sections: int = Field(
        default=4, ge=1, description="Maximum sections resolved and rendered concurrently"
    )


class OllamaConfig(BaseModel):
    """Configuration for the local Ollama content provider."""

    url: str = Field(default="http://localhost:11434")
    model: str = Field(default="llama3.1:8b")
    timeout: int = Field(default=120, ge=10, description="Per-request timeout in seconds")


class ThemeConfig(BaseModel):
    """Values stamped into the generated theme."""

    version: str = Field(default="1.0.0", pattern=r"^[0-9A-Za-z.+\-]+$")
    author: str = Field(default="ThemeForge")
    include_report: bool = Field(default=True, description="Emit themeforge-report.json")


class SlotPolicy(BaseModel):
    """Run-level missing-slot policy.

    Required and optional slots each get a default policy; ``overrides``
    pins individual slots, keyed by ``"<section_type>.<slot>"`` (most
    specific) or by bare ``"<slot>"``.
    """

    required: FailurePolicy = Field(default=FailurePolicy.STRICT)
    optional: FailurePolicy = Field(default=FailurePolicy.LENIENT)
    overrides: dict[str, FailurePolicy] = Field(default_factory=dict)

    def for_slot(self, section_type: SectionType, slot_name: str, required: bool) -> FailurePolicy:
        """Return the policy that governs one slot."""
        scoped = f"{section_type.value}.{slot_name}"
        if scoped in self.overrides:
            return self.overrides[scoped]
        if slot_name in self.overrides:
            return self.overrides[slot_name]
        return self.required if required else self.optional

    @classmethod
    def lenient(cls) -> "SlotPolicy":
        """A policy that never drops a section."""
        return cls(required=FailurePolicy.LENIENT, optional=FailurePolicy.LENIENT)


class CompilerConfig(BaseModel):
    """Global ThemeForge configuration.

    Holds every tuneable parameter used by ``ThemeCompiler``. Instances are
    typically created once by the caller (or by the CLI entry point) and then
    passed through the rest of the system.
    """

    content: ContentConfig = Field(default_factory=ContentConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    theme: ThemeConfig = Field(default_factory=ThemeConfig)
    slot_policy: SlotPolicy = Field(default_factory=SlotPolicy)
    catalog_dirs: list[Path] = Field(
        default_factory=list, description="Extra directories of catalog JSON files"
    )
    lint_design: bool = Field(
        default=False, description="Report overused fonts and generic copy as warnings"
    )
    verbose: bool = Field(default=False, description="Print progress to the console")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Parent directories are created.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "CompilerConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "CompilerConfig":
        """Build a ``CompilerConfig`` from environment variables.

        Recognised variables (all optional):
            THEMEFORGE_CONTENT_ENABLED, THEMEFORGE_CONTENT_TIMEOUT,
            THEMEFORGE_MAX_PARALLEL_SECTIONS,
            THEMEFORGE_OLLAMA_URL, THEMEFORGE_OLLAMA_MODEL, THEMEFORGE_OLLAMA_TIMEOUT,
            THEMEFORGE_REQUIRED_SLOT_POLICY, THEMEFORGE_OPTIONAL_SLOT_POLICY,
            THEMEFORGE_CATALOG_DIRS (os.pathsep-separated), THEMEFORGE_LINT_DESIGN,
            THEMEFORGE_VERBOSE.
        """
        content_kwargs: dict[str, Any] = {}
        if os.environ.get("THEMEFORGE_CONTENT_ENABLED"):
            content_kwargs["enabled"] = _env_flag("THEMEFORGE_CONTENT_ENABLED")
        if os.environ.get("THEMEFORGE_CONTENT_TIMEOUT"):
            content_kwargs["timeout"] = float(os.environ["THEMEFORGE_CONTENT_TIMEOUT"])

        concurrency_kwargs: dict[str, Any] = {}
        if os.environ.get("THEMEFORGE_MAX_PARALLEL_SECTIONS"):
            concurrency_kwargs["max_parallel_sections"] = int(
                os.environ["THEMEFORGE_MAX_PARALLEL_SECTIONS"]
            )

        ollama_kwargs: dict[str, Any] = {}
        if os.environ.get("THEMEFORGE_OLLAMA_URL"):
            ollama_kwargs["url"] = os.environ["THEMEFORGE_OLLAMA_URL"]
        if os.environ.get("THEMEFORGE_OLLAMA_MODEL"):
            ollama_kwargs["model"] = os.environ["THEMEFORGE_OLLAMA_MODEL"]
        if os.environ.get("THEMEFORGE_OLLAMA_TIMEOUT"):
            ollama_kwargs["timeout"] = int(os.environ["THEMEFORGE_OLLAMA_TIMEOUT"])

        policy_kwargs: dict[str, Any] = {}
        if os.environ.get("THEMEFORGE_REQUIRED_SLOT_POLICY"):
            policy_kwargs["required"] = FailurePolicy(os.environ["THEMEFORGE_REQUIRED_SLOT_POLICY"])
        if os.environ.get("THEMEFORGE_OPTIONAL_SLOT_POLICY"):
            policy_kwargs["optional"] = FailurePolicy(os.environ["THEMEFORGE_OPTIONAL_SLOT_POLICY"])

        catalog_dirs_str = os.environ.get("THEMEFORGE_CATALOG_DIRS", "")
        catalog_dirs = [Path(p) for p in catalog_dirs_str.split(os.pathsep) if p.strip()]

        return cls(
            content=ContentConfig(**content_kwargs),
            concurrency=ConcurrencyConfig(**concurrency_kwargs),
            ollama=OllamaConfig(**ollama_kwargs),
            slot_policy=SlotPolicy(**policy_kwargs),
            catalog_dirs=catalog_dirs,
            lint_design=_env_flag("THEMEFORGE_LINT_DESIGN"),
            verbose=_env_flag("THEMEFORGE_VERBOSE"),
        )


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")
