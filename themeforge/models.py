"""Pydantic v2 models for the ThemeForge compilation pipeline.

Defines the blueprint that drives a generation request, the pattern catalog
records held by the registry, and the records produced while compiling a
blueprint into theme files (resolved sections, generated files, results).
"""

from __future__ import annotations

import hashlib
import re
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from themeforge.utils import title_from_key


SLUG_PATTERN = r"^[a-z0-9][a-z0-9-]*$"
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
FONT_NAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9 \-]*$"
_HEX_COLOR = re.compile(HEX_COLOR_PATTERN)
_FONT_NAME = re.compile(FONT_NAME_PATTERN)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class SectionType(str, Enum):
    """Page-section types a pattern can implement."""
    HERO = "hero"
    SERVICES = "services"
    ABOUT = "about"
    TESTIMONIALS = "testimonials"
    CONTACT = "contact"
    CTA = "cta"
    FEATURES = "features"
    FAQ = "faq"
    GALLERY = "gallery"
    PRICING = "pricing"
    HEADER = "header"
    FOOTER = "footer"
    TEAM = "team"
    PORTFOLIO = "portfolio"


class SlotType(str, Enum):
    """Shape of the value a content slot holds."""
    TEXT = "text"
    RICHTEXT = "richtext"
    IMAGE_URL = "image-url"
    LIST = "list"


class SlotTransform(str, Enum):
    """Text transforms applied to a slot after resolution."""
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    CAPITALIZE = "capitalize"
    TRUNCATE = "truncate"


class FileType(str, Enum):
    """Classification of a generated theme file."""
    MARKUP = "markup"
    STYLE = "style"
    SCRIPT = "script"
    CONFIG = "config"
    DOC = "doc"
    OTHER = "other"


class FailurePolicy(str, Enum):
    """What to do when a content slot cannot be resolved.

    ``strict`` drops the owning section and records an error; ``lenient``
    substitutes a placeholder and records a warning.
    """
    STRICT = "strict"
    LENIENT = "lenient"


class ErrorKind(str, Enum):
    """Kinds of errors a generation run can report."""
    UNKNOWN_PRESET = "unknown_preset"
    PATTERN_NOT_FOUND = "pattern_not_found"
    DUPLICATE_PATH = "duplicate_path"
    MISSING_REQUIRED_SLOT = "missing_required_slot"
    CONTENT_PROVIDER_TIMEOUT = "content_provider_timeout"
    CONTENT_PROVIDER_FAILURE = "content_provider_failure"
    INVALID_BLUEPRINT = "invalid_blueprint"
    EMPTY_PAGE = "empty_page"
    RENDER_FAILED = "render_failed"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Pattern configuration options
# ---------------------------------------------------------------------------

class _OptionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = Field(default="", description="What the option controls")

    def accepts(self, value: Any) -> bool:  # pragma: no cover - overridden
        raise NotImplementedError


class BooleanOption(_OptionBase):
    """An on/off switch."""
    type: Literal["boolean"] = "boolean"
    default: bool

    def accepts(self, value: Any) -> bool:
        return isinstance(value, bool)


class NumberOption(_OptionBase):
    """A numeric option with optional bounds."""
    type: Literal["number"] = "number"
    default: Union[int, float]
    min: Optional[float] = None
    max: Optional[float] = None

    def accepts(self, value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


class EnumOption(_OptionBase):
    """One value out of a fixed set."""
    type: Literal["enum"] = "enum"
    options: list[str] = Field(..., min_length=1)
    default: str

    @model_validator(mode="after")
    def _default_is_allowed(self) -> "EnumOption":
        if self.default not in self.options:
            raise ValueError(f"default {self.default!r} is not one of {self.options}")
        return self

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str) and value in self.options


class StringOption(_OptionBase):
    """Free-form string."""
    type: Literal["string"] = "string"
    default: str

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str)


class ColorOption(_OptionBase):
    """A ``#RRGGBB`` color, safe to place inside a ``style`` attribute."""
    type: Literal["color"] = "color"
    default: str = Field(..., pattern=HEX_COLOR_PATTERN)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str) and _HEX_COLOR.fullmatch(value) is not None


class FontOption(_OptionBase):
    """A font family name: letters, digits, spaces and hyphens."""
    type: Literal["font"] = "font"
    default: str = Field(..., pattern=FONT_NAME_PATTERN)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str) and _FONT_NAME.fullmatch(value) is not None


class ListOption(_OptionBase):
    """A list of strings, optionally restricted to an allowed set."""
    type: Literal["list"] = "list"
    default: list[str] = Field(default_factory=list)
    allowed: Optional[list[str]] = None

    def accepts(self, value: Any) -> bool:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            return False
        if self.allowed is not None:
            return all(v in self.allowed for v in value)
        return True


ConfigOption = Annotated[
    Union[BooleanOption, NumberOption, EnumOption, StringOption, ColorOption, FontOption, ListOption],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Pattern catalog records
# ---------------------------------------------------------------------------

class ContentSlot(BaseModel):
    """A named content field a pattern expects."""
    model_config = ConfigDict(frozen=True)

    type: SlotType = Field(default=SlotType.TEXT, description="Value shape")
    required: bool = Field(default=False, description="Whether the slot must be non-empty")
    fallback: Optional[Any] = Field(
        default=None, description="Pattern-declared fallback; an empty fallback means intentionally blank"
    )
    source: Optional[str] = Field(
        default=None, description="Dotted path into the blueprint, e.g. 'client_profile.contact.phone'"
    )
    transform: Optional[SlotTransform] = Field(default=None, description="Transform applied after resolution")
    item_kind: Optional[str] = Field(default=None, description="List-item mapper used to normalise list values")

    @property
    def has_fallback(self) -> bool:
        return self.fallback is not None


class PatternDefinition(BaseModel):
    """A reusable, parametrised template for one page-section type."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., pattern=SLUG_PATTERN, description="Stable registry id, e.g. 'hero-fullwidth'")
    name: str = Field(..., description="Human-readable pattern name")
    section_type: SectionType = Field(..., description="Section type the pattern implements")
    variant: str = Field(..., description="Variant name within the section type")
    description: str = Field(default="")
    tags: list[str] = Field(default_factory=list, description="Tags matched against section hints")
    options: dict[str, ConfigOption] = Field(default_factory=dict, description="Declared config options")
    slots: dict[str, ContentSlot] = Field(default_factory=dict, description="Declared content slots")
    template: str = Field(default="", description="Template path; defaults to 'patterns/<id>.php.j2'")

    @property
    def template_path(self) -> str:
        return self.template or f"patterns/{self.id}.php.j2"

    def defaults(self) -> dict[str, Any]:
        """Return the hard default for every declared option."""
        return {name: copy_value(option.default) for name, option in self.options.items()}


class IndustryDefinition(BaseModel):
    """Industry-level defaults shared by every preset of that industry."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., pattern=SLUG_PATTERN)
    name: str
    tone: str = Field(default="professional and approachable")
    pages: list[str] = Field(default_factory=lambda: ["home", "services", "about", "contact"])
    configuration_overrides: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Overrides keyed by section type or pattern id"
    )


class PresetDefinition(BaseModel):
    """An industry-specific bundle of default pattern-variant choices."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., pattern=SLUG_PATTERN)
    name: str
    industry: str
    style: str = Field(default="modern")
    description: str = Field(default="")
    patterns: dict[SectionType, list[str]] = Field(
        default_factory=dict, description="Ordered candidate pattern ids per section type"
    )
    configuration_overrides: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Overrides keyed by section type or pattern id"
    )
    colors: dict[str, str] = Field(default_factory=dict)
    typography: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Blueprint
# ---------------------------------------------------------------------------

class CompanyProfile(BaseModel):
    name: str = Field(..., min_length=1, description="Company display name")
    tagline: str = Field(default="")
    description: str = Field(default="")


class ContactInfo(BaseModel):
    email: str = Field(default="")
    phone: str = Field(default="")
    address: str = Field(default="")
    city: str = Field(default="")
    state: str = Field(default="")
    hours: str = Field(default="")

    @property
    def location(self) -> str:
        return ", ".join(part for part in (self.city, self.state) if part)


class ClientProfile(BaseModel):
    company: CompanyProfile
    contact: ContactInfo = Field(default_factory=ContactInfo)


class ColorTokens(BaseModel):
    primary: str = Field(default="#0F2942")
    secondary: str = Field(default="#4DA6FF")
    accent: Optional[str] = Field(default=None)
    background: str = Field(default="#FFFFFF")
    text: str = Field(default="#1F2937")
    muted: Optional[str] = Field(default=None)
    border: Optional[str] = Field(default=None)

    @field_validator("primary", "secondary", "accent", "background", "text", "muted", "border")
    @classmethod
    def _hex_color(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _HEX_COLOR.match(value):
            raise ValueError(f"expected a #RRGGBB color, got {value!r}")
        return value


class TypographyTokens(BaseModel):
    headings: str = Field(default="Inter", pattern=FONT_NAME_PATTERN)
    body: str = Field(default="Inter", pattern=FONT_NAME_PATTERN)
    headings_weight: str = Field(default="700", pattern=r"^[1-9]00$")
    body_weight: str = Field(default="400", pattern=r"^[1-9]00$")


class DesignTokens(BaseModel):
    colors: ColorTokens = Field(default_factory=ColorTokens)
    typography: TypographyTokens = Field(default_factory=TypographyTokens)
    border_radius: str = Field(default="0.5rem", pattern=r"^\d+(\.\d+)?(px|rem|em|%)$")


class SectionDescriptor(BaseModel):
    """One requested section on a page."""
    type: SectionType = Field(..., description="Section type")
    variant_id: Optional[str] = Field(
        default=None, description="Explicit pattern id; must exist among the candidates"
    )
    slug: Optional[str] = Field(
        default=None, pattern=SLUG_PATTERN, description="Output key; defaults to the section type"
    )
    hints: list[str] = Field(default_factory=list, description="Config hints matched against pattern tags")
    config: dict[str, Any] = Field(default_factory=dict, description="Explicit config overrides")
    content: dict[str, Any] = Field(default_factory=dict, description="Literal content by slot")

    @property
    def key(self) -> str:
        return self.slug or self.type.value


class PageSpec(BaseModel):
    slug: str = Field(..., pattern=SLUG_PATTERN)
    title: str = Field(default="")
    required: bool = Field(default=True, description="An empty required page fails the run")
    sections: list[SectionDescriptor] = Field(default_factory=list)

    @property
    def display_title(self) -> str:
        return self.title or title_from_key(self.slug)


class Blueprint(BaseModel):
    """Structured description of a project to compile into a theme."""
    industry: str = Field(..., min_length=1)
    preset: str = Field(..., min_length=1)
    client_profile: ClientProfile
    design_tokens: DesignTokens = Field(default_factory=DesignTokens)
    pages: list[PageSpec] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_page_slugs(self) -> "Blueprint":
        seen: set[str] = set()
        for page in self.pages:
            if page.slug in seen:
                raise ValueError(f"duplicate page slug {page.slug!r}")
            seen.add(page.slug)
        return self


# ---------------------------------------------------------------------------
# Generation records
# ---------------------------------------------------------------------------

class ResolvedSection(BaseModel):
    """A section with its chosen pattern, merged config and resolved content."""
    model_config = ConfigDict(frozen=True)

    page: str
    key: str
    position: int = Field(..., ge=0, description="Index of the section on its page")
    pattern: PatternDefinition
    config: dict[str, Any] = Field(default_factory=dict)
    content: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    @property
    def ref(self) -> str:
        return f"{self.page}/{self.key}"


class GeneratedFile(BaseModel):
    """One unit of final output content with its target path and type."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Relative, slash-separated, unique path")
    content: str = Field(..., description="Literal file content")
    type: FileType = Field(default=FileType.OTHER)
    metadata: dict[str, str] = Field(default_factory=dict, description="Encoding/permission metadata")

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.content.encode("utf-8")).hexdigest()


class GenerationError(BaseModel):
    """A run-level or section-scoped error entry."""
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    page: Optional[str] = None
    section: Optional[str] = Field(default=None, description="Section reference 'page/key'")


class GenerationMetadata(BaseModel):
    industry: str
    preset: str = Field(default="", description="Effective preset after fallback")
    pages: list[str] = Field(default_factory=list)
    ai_content_used: bool = False
    generated_at: str = ""
    complete: bool = True
    warnings: list[str] = Field(default_factory=list)
    checksum: str = Field(default="", description="Aggregate sha256 over file paths and contents")


class GenerationResult(BaseModel):
    success: bool
    files: list[GeneratedFile] = Field(default_factory=list)
    errors: list[GenerationError] = Field(default_factory=list)
    metadata: GenerationMetadata

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def file(self, path: str) -> Optional[GeneratedFile]:
        """Return the file at *path*, or ``None``."""
        for generated in self.files:
            if generated.path == path:
                return generated
        return None


def aggregate_checksum(files: list[GeneratedFile]) -> str:
    """Hash every file path and content, in order, into one digest."""
    digest = hashlib.sha256()
    for generated in files:
        digest.update(generated.path.encode("utf-8"))
        digest.update(b"\0")
        digest.update(generated.checksum.encode("ascii"))
        digest.update(b"\n")
    return digest.hexdigest()


def copy_value(value: Any) -> Any:
    if isinstance(value, list):
        return [copy_value(v) for v in value]
    if isinstance(value, dict):
        return {k: copy_value(v) for k, v in value.items()}
    return value
