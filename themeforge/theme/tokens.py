"""Design-token derivation.

Turns the blueprint's ``DesignTokens`` into the values the base theme
needs: a resolved palette, shade ramps for Tailwind, a WordPress
``theme.json`` (schema version 3) and the CSS custom-property table.
"""

from __future__ import annotations

from typing import Any

from themeforge.models import DesignTokens

SHADES = (50, 100, 200, 300, 400, 500, 600, 700, 800, 900, 950)
DEFAULT_MUTED = "#6B7280"
DEFAULT_BORDER = "#E5E7EB"
FONT_STACK = "ui-sans-serif, system-ui, sans-serif"

FONT_SIZES = [
    ("xs", "0.75rem", "Extra Small"),
    ("sm", "0.875rem", "Small"),
    ("base", "1rem", "Base"),
    ("lg", "1.125rem", "Large"),
    ("xl", "1.25rem", "Extra Large"),
    ("2xl", "1.5rem", "2X Large"),
    ("3xl", "1.875rem", "3X Large"),
    ("4xl", "2.25rem", "4X Large"),
    ("5xl", "3rem", "5X Large"),
    ("6xl", "3.75rem", "6X Large"),
]


def _round(value: float) -> int:
    # Half-up, matching how browsers and design tools round channel values.
    return int(value + 0.5)


def color_variants(hex_color: str) -> dict[str, str]:
    """Return the 50-950 shade ramp for *hex_color* plus ``DEFAULT``.

    Shades below 500 are mixed towards white, shades above towards black;
    500 is the color itself.

    Examples::

        color_variants("#000000")["50"]  -> "#e6e6e6"
        color_variants("#FFFFFF")["950"] -> "#191919"
    """
    r, g, b = (int(hex_color[i:i + 2], 16) for i in (1, 3, 5))
    variants: dict[str, str] = {}
    for shade in SHADES:
        factor = (shade - 500) / 500
        if factor < 0:
            mix = -factor
            channels = [_round(c + (255 - c) * mix) for c in (r, g, b)]
        else:
            channels = [_round(c * (1 - factor)) for c in (r, g, b)]
        variants[str(shade)] = "#" + "".join(f"{c:02x}" for c in channels)
    variants["DEFAULT"] = hex_color
    return variants


def palette(tokens: DesignTokens) -> dict[str, str]:
    """Resolve optional colors to their defaults."""
    colors = tokens.colors
    return {
        "primary": colors.primary,
        "secondary": colors.secondary,
        "accent": colors.accent or colors.secondary,
        "background": colors.background,
        "foreground": colors.text,
        "muted": colors.muted or DEFAULT_MUTED,
        "border": colors.border or DEFAULT_BORDER,
    }


def font_family(name: str) -> str:
    return f'"{name}", {FONT_STACK}'


def theme_json(tokens: DesignTokens) -> dict[str, Any]:
    """Build the WordPress ``theme.json`` document."""
    colors = palette(tokens)
    typography = tokens.typography
    heading_weight = typography.headings_weight

    def heading(size: str, line_height: str, weight: str = heading_weight, colored: bool = True) -> dict:
        element: dict[str, Any] = {
            "typography": {
                "fontFamily": "var(--wp--preset--font-family--headings)",
                "fontSize": f"var(--wp--preset--font-size--{size})",
                "fontWeight": weight,
                "lineHeight": line_height,
            }
        }
        if colored:
            element["color"] = {"text": "var(--wp--preset--color--primary)"}
        return element

    return {
        "$schema": "https://schemas.wp.org/trunk/theme.json",
        "version": 3,
        "settings": {
            "appearanceTools": True,
            "color": {
                "custom": True,
                "defaultGradients": False,
                "defaultPalette": False,
                "palette": [
                    {"slug": slug, "color": value, "name": slug.capitalize()}
                    for slug, value in colors.items()
                ]
                + [
                    {"slug": "white", "color": "#FFFFFF", "name": "White"},
                    {"slug": "black", "color": "#000000", "name": "Black"},
                ],
            },
            "typography": {
                "customFontSize": True,
                "dropCap": False,
                "fluid": True,
                "fontFamilies": [
                    {"fontFamily": font_family(typography.headings), "name": "Headings", "slug": "headings"},
                    {"fontFamily": font_family(typography.body), "name": "Body", "slug": "body"},
                ],
                "fontSizes": [
                    {"slug": slug, "size": size, "name": name} for slug, size, name in FONT_SIZES
                ],
            },
            "spacing": {
                "customSpacingSize": True,
                "spacingScale": {"steps": 10},
                "units": ["px", "em", "rem", "%", "vw", "vh"],
            },
            "layout": {"contentSize": "1200px", "wideSize": "1400px"},
            "border": {"color": True, "radius": True, "style": True, "width": True},
        },
        "styles": {
            "color": {
                "background": "var(--wp--preset--color--background)",
                "text": "var(--wp--preset--color--foreground)",
            },
            "typography": {
                "fontFamily": "var(--wp--preset--font-family--body)",
                "fontSize": "var(--wp--preset--font-size--base)",
                "lineHeight": "1.6",
            },
            "elements": {
                "h1": heading("5xl", "1.2"),
                "h2": heading("4xl", "1.25"),
                "h3": heading("3xl", "1.3"),
                "h4": heading("2xl", "1.35", "600", colored=False),
                "h5": heading("xl", "1.4", "600", colored=False),
                "h6": heading("lg", "1.4", "600", colored=False),
                "link": {
                    "color": {"text": "var(--wp--preset--color--secondary)"},
                    ":hover": {"color": {"text": "var(--wp--preset--color--primary)"}},
                },
                "button": {
                    "color": {
                        "background": "var(--wp--preset--color--primary)",
                        "text": "var(--wp--preset--color--white)",
                    },
                    "typography": {"fontWeight": "600"},
                    "border": {"radius": tokens.border_radius},
                },
            },
        },
        "customTemplates": [],
        "templateParts": [],
    }


def token_context(tokens: DesignTokens) -> dict[str, Any]:
    """Template context shared by the CSS and Tailwind theme files."""
    colors = palette(tokens)
    return {
        "palette": colors,
        "ramps": {
            "primary": color_variants(colors["primary"]),
            "secondary": color_variants(colors["secondary"]),
            "accent": color_variants(colors["accent"]),
        },
        "fonts": {
            "headings": tokens.typography.headings,
            "body": tokens.typography.body,
            "headings_weight": tokens.typography.headings_weight,
            "body_weight": tokens.typography.body_weight,
        },
        "font_stack": FONT_STACK,
        "radius": tokens.border_radius,
    }
