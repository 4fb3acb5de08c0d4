"""Layered configuration merge.

The effective config of a section is built from, lowest to highest
precedence:

1. the pattern's declared option defaults,
2. the industry's ``configuration_overrides``,
3. the preset's ``configuration_overrides`` (section-type key, then
   pattern-id key),
4. design tokens, for the color/typography keys the pattern declares,
5. the section's explicit ``config`` in the blueprint.

Merging is key-wise last-writer-wins. List values are deep-copied and
replace the lower value wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from themeforge.models import (
    DesignTokens,
    IndustryDefinition,
    PatternDefinition,
    PresetDefinition,
    SectionDescriptor,
    copy_value,
)

# Config keys a pattern may declare to pick up blueprint design tokens.
TOKEN_KEYS: dict[str, tuple[str, str]] = {
    "primary_color": ("colors", "primary"),
    "secondary_color": ("colors", "secondary"),
    "accent_color": ("colors", "accent"),
    "background_color": ("colors", "background"),
    "text_color": ("colors", "text"),
    "heading_font": ("typography", "headings"),
    "body_font": ("typography", "body"),
}


@dataclass(frozen=True)
class ConfigLayer:
    """A named mapping of config values applied at one precedence level."""

    name: str
    values: Mapping[str, Any]


@dataclass
class MergeResult:
    config: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def merge_layers(pattern: PatternDefinition, layers: Iterable[ConfigLayer]) -> MergeResult:
    """Merge *layers* over the pattern defaults, in the order given.

    * A declared key whose value the option rejects is skipped with a
      warning; the lower layer's value stands.
    * An undeclared key is passed through untouched with a warning.
    * Warnings are de-duplicated in first-seen order, so applying the same
      layer twice yields the same result as applying it once.
    """
    result = MergeResult(config=pattern.defaults())
    seen: set[str] = set()

    def warn(message: str) -> None:
        if message not in seen:
            seen.add(message)
            result.warnings.append(message)

    for layer in layers:
        for key, value in layer.values.items():
            option = pattern.options.get(key)
            if option is None:
                warn(f"undeclared config key {key!r} from {layer.name} passed through")
            elif not option.accepts(value):
                warn(f"rejected {key}={value!r} from {layer.name} for {pattern.id}")
                continue
            result.config[key] = copy_value(value)

    return result


def token_layer(pattern: PatternDefinition, tokens: DesignTokens) -> ConfigLayer:
    """Project *tokens* onto the token keys *pattern* declares.

    Tokens that are unset (an optional color left empty) contribute nothing.
    """
    values: dict[str, Any] = {}
    for key, (group, name) in TOKEN_KEYS.items():
        if key not in pattern.options:
            continue
        value = getattr(getattr(tokens, group), name)
        if value:
            values[key] = value
    return ConfigLayer("design tokens", values)


def build_layers(
    pattern: PatternDefinition,
    descriptor: SectionDescriptor,
    *,
    industry: Optional[IndustryDefinition],
    preset: Optional[PresetDefinition],
    tokens: DesignTokens,
) -> list[ConfigLayer]:
    """Return the override layers for one section, lowest precedence first."""
    section_key = pattern.section_type.value
    layers: list[ConfigLayer] = []

    if industry is not None:
        for scope in (section_key, pattern.id):
            if scope in industry.configuration_overrides:
                layers.append(
                    ConfigLayer(f"industry {industry.id}", industry.configuration_overrides[scope])
                )

    if preset is not None:
        for scope in (section_key, pattern.id):
            if scope in preset.configuration_overrides:
                layers.append(
                    ConfigLayer(f"preset {preset.id}", preset.configuration_overrides[scope])
                )

    layers.append(token_layer(pattern, tokens))
    layers.append(ConfigLayer("section config", descriptor.config))
    return layers


def effective_config(
    pattern: PatternDefinition,
    descriptor: SectionDescriptor,
    *,
    industry: Optional[IndustryDefinition],
    preset: Optional[PresetDefinition],
    tokens: DesignTokens,
) -> MergeResult:
    """Compute the merged config for one section."""
    layers = build_layers(
        pattern, descriptor, industry=industry, preset=preset, tokens=tokens
    )
    return merge_layers(pattern, layers)
