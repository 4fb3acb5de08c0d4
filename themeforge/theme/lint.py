"""Design lint: flags choices that make a theme look generic.

Checks the blueprint's typography against a list of overused font
families and its company copy against stock marketing phrases. Findings
are advisory; the compiler reports them as run warnings when
``CompilerConfig.lint_design`` is set.
"""

from __future__ import annotations

from dataclasses import dataclass

from themeforge.models import Blueprint, CompanyProfile, TypographyTokens

BANNED_FONTS = ("Inter", "Roboto", "Arial", "Helvetica", "Open Sans", "Montserrat")
_BANNED_FONTS = {f.casefold() for f in BANNED_FONTS}

# (heading, body) per industry; "default" covers the rest.
FONT_ALTERNATIVES: dict[str, tuple[str, str]] = {
    "default": ("Bricolage Grotesque", "Instrument Sans"),
}

BANNED_PHRASES = (
    "Welcome to our website",
    "Lorem ipsum",
    "Click here",
    "Learn more",
    "We are a leading",
)


@dataclass(frozen=True)
class LintFinding:
    """One advisory finding against a blueprint field."""

    field: str
    message: str
    suggestion: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}; {self.suggestion}"


def recommended_fonts(industry: str) -> tuple[str, str]:
    """Return the (heading, body) pair suggested for *industry*."""
    return FONT_ALTERNATIVES.get(industry, FONT_ALTERNATIVES["default"])


def lint_fonts(typography: TypographyTokens, industry: str = "default") -> list[LintFinding]:
    heading_alt, body_alt = recommended_fonts(industry)
    findings: list[LintFinding] = []
    for field, family, alternative in (
        ("typography.headings", typography.headings, heading_alt),
        ("typography.body", typography.body, body_alt),
    ):
        if family.casefold() in _BANNED_FONTS:
            findings.append(
                LintFinding(field, f"font {family!r} is overused", f"consider {alternative!r}")
            )
    return findings


def lint_copy(company: CompanyProfile) -> list[LintFinding]:
    findings: list[LintFinding] = []
    for field, text in (
        ("company.tagline", company.tagline),
        ("company.description", company.description),
    ):
        lowered = text.casefold()
        for phrase in BANNED_PHRASES:
            if phrase.casefold() in lowered:
                findings.append(
                    LintFinding(
                        field,
                        f"generic phrase {phrase!r}",
                        "use more specific, authentic language",
                    )
                )
    return findings


def lint_blueprint(blueprint: Blueprint) -> list[LintFinding]:
    """Run every design check over *blueprint*, fonts first."""
    return [
        *lint_fonts(blueprint.design_tokens.typography, blueprint.industry),
        *lint_copy(blueprint.client_profile.company),
    ]
