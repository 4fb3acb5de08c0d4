"""Unit tests for ThemeCompiler (themeforge.compiler).

Tests cover:
- Structural aborts: invalid blueprint, duplicate path, explicit pattern miss
- Section-scoped errors: missing required slot, no candidate pattern,
  missing or broken template
- Preset fallback, merge and design-lint warnings
- Run-level timeout and cancellation
- Metadata: clock, checksum, AI usage, verbose output
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from jinja2 import UndefinedError

from themeforge.assembler import REPORT_PATH
from themeforge.compiler import ThemeCompiler, generate
from themeforge.config import CompilerConfig, ConcurrencyConfig, ContentConfig, SlotPolicy
from themeforge.models import ErrorKind, aggregate_checksum
from themeforge.registry import PatternRegistry

FIXED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def compiler(registry: PatternRegistry, static_provider, fixed_clock) -> ThemeCompiler:
    return ThemeCompiler(registry=registry, content_provider=static_provider, clock=fixed_clock)


# ---------------------------------------------------------------------------
# Structural aborts
# ---------------------------------------------------------------------------


class TestAborts:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_blueprint(self, compiler: ThemeCompiler):
        result = await compiler.generate({"industry": "construction"})
        assert result.success is False
        assert result.files == []
        assert [e.kind for e in result.errors] == [ErrorKind.INVALID_BLUEPRINT]
        assert result.metadata.industry == "construction"
        assert result.metadata.complete is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_mapping_blueprint(self, compiler: ThemeCompiler):
        result = await compiler.generate(["not", "a", "blueprint"])  # type: ignore[arg-type]
        assert result.success is False
        assert result.errors[0].kind == ErrorKind.INVALID_BLUEPRINT
        assert result.metadata.industry == ""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duplicate_path(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        blueprint_data["pages"][0]["sections"] = [{"type": "hero"}, {"type": "hero"}]
        result = await compiler.generate(blueprint_data)
        assert result.success is False
        assert result.files == []
        assert [e.kind for e in result.errors] == [ErrorKind.DUPLICATE_PATH]
        assert "patterns/home-hero.php" in result.errors[0].message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_explicit_pattern_miss(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        blueprint_data["pages"][0]["sections"][0]["variant_id"] = "hero-video"
        result = await compiler.generate(blueprint_data)
        assert result.success is False
        assert result.files == []
        assert result.errors[0].kind == ErrorKind.PATTERN_NOT_FOUND
        assert result.errors[0].section == "home/hero"
        assert result.metadata.preset == "industrial-modern"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_abort_does_no_section_work(
        self, registry: PatternRegistry, make_slow_provider, blueprint_data: dict[str, Any]
    ):
        provider = make_slow_provider({}, set())
        blueprint_data["pages"][0]["sections"] = [{"type": "hero"}, {"type": "hero"}]
        await ThemeCompiler(registry=registry, content_provider=provider).generate(blueprint_data)
        assert provider.calls == []


# ---------------------------------------------------------------------------
# Section-scoped errors
# ---------------------------------------------------------------------------


class TestSectionErrors:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_slot_drops_only_that_section(
        self, registry: PatternRegistry, blueprint_data: dict[str, Any]
    ):
        blueprint_data["pages"][0]["sections"] = [
            {"type": "hero"},
            {"type": "about"},
        ]
        result = await ThemeCompiler(registry=registry).generate(blueprint_data)

        assert result.success is True
        assert "patterns/home-hero.php" not in result.paths
        assert "patterns/home-about.php" in result.paths
        assert [e.kind for e in result.errors] == [ErrorKind.MISSING_REQUIRED_SLOT]
        assert result.errors[0].section == "home/hero"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_candidate_pattern(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        blueprint_data["pages"][0]["sections"].append({"type": "pricing"})
        result = await compiler.generate(blueprint_data)

        assert result.success is True
        assert "patterns/home-pricing.php" not in result.paths
        assert "patterns/home-hero.php" in result.paths
        assert [e.kind for e in result.errors] == [ErrorKind.PATTERN_NOT_FOUND]
        assert result.errors[0].section == "home/pricing"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_pattern_without_template(
        self, catalog_dir: Path, static_provider, blueprint_data: dict[str, Any]
    ):
        extra = {
            "presets": [
                {
                    "id": "extra-bold",
                    "name": "Extra Bold",
                    "industry": "construction",
                    "patterns": {"hero": ["hero-extra"]},
                }
            ],
            "patterns": [
                {
                    "id": "hero-extra",
                    "name": "Hero Extra",
                    "section_type": "hero",
                    "variant": "extra",
                    "slots": {"headline": {"type": "text", "required": True}},
                }
            ],
        }
        (catalog_dir / "extra.json").write_text(json.dumps(extra), encoding="utf-8")
        blueprint_data["preset"] = "extra-bold"
        blueprint_data["pages"][0]["sections"] = [{"type": "hero"}, {"type": "cta"}]

        compiler = ThemeCompiler(registry=PatternRegistry([catalog_dir]), content_provider=static_provider)
        result = await compiler.generate(blueprint_data)

        assert result.success is True
        assert "patterns/home-hero.php" not in result.paths
        assert "patterns/home-cta.php" in result.paths
        assert [e.kind for e in result.errors] == [ErrorKind.PATTERN_NOT_FOUND]
        assert result.errors[0].section == "home/hero"
        assert "patterns/hero-extra.php.j2" in result.errors[0].message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_template_error_drops_section(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        with patch.object(compiler.renderer, "render", side_effect=UndefinedError("'content' is undefined")):
            result = await compiler.generate(blueprint_data)

        assert result.success is False
        assert [e.kind for e in result.errors] == [ErrorKind.RENDER_FAILED, ErrorKind.EMPTY_PAGE]
        assert result.errors[0].section == "home/hero"
        assert "'content' is undefined" in result.errors[0].message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_per_run_policy_override(self, registry: PatternRegistry, blueprint_data: dict[str, Any]):
        compiler = ThemeCompiler(registry=registry)
        strict = await compiler.generate(blueprint_data)
        lenient = await compiler.generate(blueprint_data, policy=SlotPolicy.lenient())
        assert strict.success is False
        assert lenient.success is True


# ---------------------------------------------------------------------------
# Presets & merge warnings
# ---------------------------------------------------------------------------


class TestPresets:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_preset_falls_back(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        blueprint_data["preset"] = "brutalist"
        result = await compiler.generate(blueprint_data)

        assert result.success is True
        assert result.metadata.preset == "shared"
        assert result.metadata.warnings[0] == (
            "Unknown preset construction/brutalist; using the 'shared' patterns"
        )
        assert result.file("patterns/home-hero.php").metadata["pattern"] == "hero-centered"
        assert all(e.kind != ErrorKind.UNKNOWN_PRESET for e in result.errors)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_merge_warnings_are_prefixed(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        blueprint_data["pages"][0]["sections"][0]["config"] = {"height": "giant", "parallax": True}
        result = await compiler.generate(blueprint_data)

        assert result.success is True
        assert "home/hero: rejected height='giant' from section config for hero-fullwidth" in result.metadata.warnings
        assert (
            "home/hero: undeclared config key 'parallax' from section config passed through"
            in result.metadata.warnings
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_design_lint_warnings(
        self, registry: PatternRegistry, static_provider, blueprint_data: dict[str, Any]
    ):
        blueprint_data["preset"] = "brutalist"
        config = CompilerConfig(lint_design=True)
        compiler = ThemeCompiler(config, registry=registry, content_provider=static_provider)
        result = await compiler.generate(blueprint_data)

        assert result.success is True
        assert result.metadata.warnings[:3] == [
            "Unknown preset construction/brutalist; using the 'shared' patterns",
            "design lint: typography.headings: font 'Montserrat' is overused; consider 'Bricolage Grotesque'",
            "design lint: typography.body: font 'Open Sans' is overused; consider 'Instrument Sans'",
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_design_lint_off_by_default(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        result = await compiler.generate(blueprint_data)
        assert not any(w.startswith("design lint:") for w in result.metadata.warnings)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_style_values_cannot_add_css(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        blueprint_data["pages"][0]["sections"][0]["config"] = {"primary_color": "red;position:fixed;top:0"}
        result = await compiler.generate(blueprint_data)

        hero = result.file("patterns/home-hero.php").content
        assert "position:fixed" not in hero
        assert 'style="background-color: #1E3A5F; opacity: 0.6"' in hero
        assert (
            "home/hero: rejected primary_color='red;position:fixed;top:0' from section config for hero-fullwidth"
            in result.metadata.warnings
        )


# ---------------------------------------------------------------------------
# Timeout & cancellation
# ---------------------------------------------------------------------------


class TestInterruption:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_run_timeout_returns_partial_result(
        self, registry: PatternRegistry, make_slow_provider, multi_section_data: dict[str, Any]
    ):
        from themeforge.models import SectionType

        provider = make_slow_provider(
            {"hero": {"headline": "Fast"}, "services": {"services": [{"name": "Framing"}]}},
            {SectionType.ABOUT},
            delay=30.0,
        )
        compiler = ThemeCompiler(registry=registry, content_provider=provider)
        result = await compiler.generate(multi_section_data, timeout=0.5)

        assert result.success is False
        assert result.metadata.complete is False
        assert "patterns/home-hero.php" in result.paths
        assert "patterns/home-about.php" not in result.paths
        cancelled = [e for e in result.errors if e.kind == ErrorKind.CANCELLED]
        assert len(cancelled) == 1
        assert "home/about" in cancelled[0].message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancel_event(self, registry: PatternRegistry, blocking_provider, blueprint_data: dict[str, Any]):
        compiler = ThemeCompiler(registry=registry, content_provider=blocking_provider)
        cancel = asyncio.Event()

        async def trigger():
            await asyncio.sleep(0.05)
            cancel.set()

        trigger_task = asyncio.create_task(trigger())
        result = await asyncio.wait_for(compiler.generate(blueprint_data, cancel=cancel), timeout=5)
        await trigger_task

        assert result.success is False
        assert result.metadata.complete is False
        assert any(e.kind == ErrorKind.CANCELLED for e in result.errors)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancel_before_start(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        cancel = asyncio.Event()
        cancel.set()
        result = await compiler.generate(blueprint_data, cancel=cancel)

        assert result.success is False
        assert result.metadata.complete is False
        kinds = [e.kind for e in result.errors]
        assert ErrorKind.CANCELLED in kinds
        assert ErrorKind.EMPTY_PAGE in kinds

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_concurrency_bounded(self, registry: PatternRegistry, multi_section_data: dict[str, Any]):
        active = 0
        peak = 0

        class CountingProvider:
            async def fetch_content(self, section_type, prompt_context):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                return {}

        config = CompilerConfig(concurrency=ConcurrencyConfig(max_parallel_sections=2))
        compiler = ThemeCompiler(config, registry=registry, content_provider=CountingProvider())
        await compiler.generate(multi_section_data, policy=SlotPolicy.lenient())
        assert peak <= 2


# ---------------------------------------------------------------------------
# Metadata & configuration
# ---------------------------------------------------------------------------


class TestMetadata:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_metadata(self, compiler: ThemeCompiler, blueprint_data: dict[str, Any]):
        result = await compiler.generate(blueprint_data)

        assert result.success is True
        assert result.metadata.generated_at == FIXED.isoformat()
        assert result.metadata.pages == ["home"]
        assert result.metadata.ai_content_used is True
        assert result.metadata.checksum == aggregate_checksum(result.files)
        assert result.paths[-1] == REPORT_PATH

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_content_disabled_ignores_provider(
        self, registry: PatternRegistry, make_slow_provider, blueprint_data: dict[str, Any]
    ):
        provider = make_slow_provider({"hero": {"headline": "AI"}}, set())
        config = CompilerConfig(content=ContentConfig(enabled=False))
        compiler = ThemeCompiler(config, registry=registry, content_provider=provider)
        result = await compiler.generate(blueprint_data, policy=SlotPolicy.lenient())

        assert provider.calls == []
        assert result.metadata.ai_content_used is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_report_toggle(self, registry: PatternRegistry, static_provider, blueprint_data: dict[str, Any]):
        config = CompilerConfig()
        config.theme.include_report = False
        compiler = ThemeCompiler(config, registry=registry, content_provider=static_provider)
        result = await compiler.generate(blueprint_data)
        assert REPORT_PATH not in result.paths

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_verbose_prints_summary(self, registry: PatternRegistry, static_provider, blueprint_data: dict[str, Any]):
        config = CompilerConfig(verbose=True)
        compiler = ThemeCompiler(config, registry=registry, content_provider=static_provider)
        with patch("themeforge.compiler.print_summary_table") as summary:
            result = await compiler.generate(blueprint_data)
        assert result.success is True
        summary.assert_called_once()
        assert summary.call_args[1]["title"] == "Generation Results"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_module_level_generate(self, static_provider, fixed_clock, blueprint_data: dict[str, Any]):
        result = await generate(blueprint_data, content_provider=static_provider, clock=fixed_clock)
        assert result.success is True
        assert result.metadata.generated_at == FIXED.isoformat()
