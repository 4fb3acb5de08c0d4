"""ThemeForge compiler.

Drives one blueprint through the whole pipeline:

1. VALIDATE -- Coerce the input into a ``Blueprint``.
2. RESOLVE  -- Take a registry snapshot and resolve the preset.
3. BASE     -- Generate the fixed base-theme files.
4. PLAN     -- Reserve every output path; a collision aborts the run.
5. SELECT   -- Choose one pattern per section.
6. SECTIONS -- Per section, concurrently: merge config, fetch AI content,
               resolve slots, render.
7. ASSEMBLE -- Re-sort into declared order and emit the final file list.

Usage::

    result = await ThemeCompiler().generate(blueprint)
    result = await generate(blueprint, timeout=30)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from jinja2 import TemplateError, TemplateNotFound
from pydantic import ValidationError

from themeforge.assembler import RenderedSection, SiteAssembler
from themeforge.config import CompilerConfig, SlotPolicy
from themeforge.content import (
    ContentProvider,
    ContentResolver,
    build_prompt_context,
)
from themeforge.errors import (
    DuplicatePathError,
    InvalidBlueprintError,
    MissingRequiredSlotError,
    PatternNotFoundError,
    RenderFailedError,
    ThemeForgeError,
)
from themeforge.merge import effective_config
from themeforge.models import (
    Blueprint,
    ErrorKind,
    GenerationError,
    GenerationMetadata,
    GenerationResult,
    PresetDefinition,
    ResolvedSection,
    aggregate_checksum,
)
from themeforge.registry import PatternRegistry, RegistrySnapshot
from themeforge.render import Sanitizer, TemplateRenderer
from themeforge.selector import Selection, select_all
from themeforge.theme import BaseThemeGenerator, ThemeFileGenerator, lint_blueprint, theme_slug_for
from themeforge.utils import (
    console,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SectionOutcome:
    """What one section task produced."""

    rendered: Optional[RenderedSection] = None
    error: Optional[GenerationError] = None
    warnings: list[str] = field(default_factory=list)
    ai_used: bool = False


@dataclass
class _RunContext:
    blueprint: Blueprint
    blueprint_data: dict[str, Any]
    snapshot: RegistrySnapshot
    preset: PresetDefinition
    theme_slug: str
    resolver: ContentResolver
    semaphore: asyncio.Semaphore
    cancel: Optional[asyncio.Event]


class ThemeCompiler:
    """Compiles blueprints into WordPress theme files.

    Args:
        config: Compiler configuration; defaults to ``CompilerConfig()``.
        registry: Pattern registry; defaults to the built-in catalog plus
            ``config.catalog_dirs``.
        content_provider: AI content source. ``None`` disables fetching.
        base_theme: Generator for the fixed base-theme files.
        sanitizer: Escaping disciplines injected into the renderer.
        clock: Source of ``metadata.generated_at``; the only time-dependent
            field of a result.
    """

    def __init__(
        self,
        config: Optional[CompilerConfig] = None,
        *,
        registry: Optional[PatternRegistry] = None,
        content_provider: Optional[ContentProvider] = None,
        base_theme: Optional[ThemeFileGenerator] = None,
        sanitizer: Optional[Sanitizer] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or CompilerConfig()
        self.registry = registry or PatternRegistry(self.config.catalog_dirs)
        self.content_provider = content_provider if self.config.content.enabled else None
        self.renderer = TemplateRenderer(sanitizer)
        self.base_theme = base_theme or BaseThemeGenerator(self.renderer, self.config.theme)
        self.assembler = SiteAssembler(
            self.renderer, include_report=self.config.theme.include_report
        )
        self.clock = clock or _utc_now

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(
        self,
        blueprint: Union[Blueprint, dict[str, Any]],
        *,
        policy: Optional[SlotPolicy] = None,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> GenerationResult:
        """Compile *blueprint* into a ``GenerationResult``.

        Args:
            blueprint: A ``Blueprint`` or a plain mapping to validate.
            policy: Missing-slot policy for this run; defaults to
                ``config.slot_policy``.
            timeout: Overall deadline in seconds for section work. Sections
                still pending at the deadline are abandoned.
            cancel: Event the caller sets to abandon pending section work.

        Returns:
            The result. Structural defects (invalid blueprint, duplicate
            path, explicit pattern not found) yield ``success=False`` and no
            files; they are never raised.
        """
        started = time.monotonic()

        # 1. VALIDATE
        if not isinstance(blueprint, Blueprint):
            try:
                blueprint = Blueprint.model_validate(blueprint)
            except ValidationError as exc:
                industry = blueprint.get("industry") if isinstance(blueprint, dict) else None
                return self._aborted(
                    industry if isinstance(industry, str) else "",
                    [],
                    InvalidBlueprintError(f"Invalid blueprint: {exc}"),
                )

        # 2. RESOLVE
        snapshot = self.registry.snapshot
        preset, fell_back = snapshot.resolve_preset(blueprint.industry, blueprint.preset)
        run_warnings: list[str] = []
        if fell_back:
            run_warnings.append(
                f"Unknown preset {blueprint.industry}/{blueprint.preset}; "
                f"using the {preset.id!r} patterns"
            )
        if self.config.lint_design:
            run_warnings.extend(f"design lint: {finding}" for finding in lint_blueprint(blueprint))

        if self.config.verbose:
            print_stage_header(f"ThemeForge: {blueprint.client_profile.company.name}")
            for message in run_warnings:
                print_warning(f"  {message}")

        # 3. BASE  4. PLAN  5. SELECT
        theme_slug = theme_slug_for(blueprint)
        base_files = self.base_theme.generate(blueprint, theme_slug)
        try:
            self.assembler.plan(blueprint, base_files)
            selections = select_all(blueprint, snapshot)
        except (DuplicatePathError, InvalidBlueprintError, PatternNotFoundError) as exc:
            if self.config.verbose:
                print_error(f"  {exc.message}")
            return self._aborted(blueprint.industry, run_warnings, exc, preset=preset.id)

        # 6. SECTIONS
        run = _RunContext(
            blueprint=blueprint,
            blueprint_data=blueprint.model_dump(mode="json"),
            snapshot=snapshot,
            preset=preset,
            theme_slug=theme_slug,
            resolver=ContentResolver(
                self.content_provider,
                timeout=self.config.content.timeout,
                policy=policy or self.config.slot_policy,
            ),
            semaphore=asyncio.Semaphore(self.config.concurrency.max_parallel_sections),
            cancel=cancel,
        )
        outcomes, abandoned = await self._run_sections(run, selections, timeout)

        # 7. ASSEMBLE
        errors: list[GenerationError] = []
        warnings = list(run_warnings)
        rendered: list[RenderedSection] = []
        ai_used = False
        for index in sorted(outcomes):
            outcome = outcomes[index]
            warnings.extend(outcome.warnings)
            ai_used = ai_used or outcome.ai_used
            if outcome.error is not None:
                errors.append(outcome.error)
            if outcome.rendered is not None:
                rendered.append(outcome.rendered)

        complete = not abandoned
        if abandoned:
            errors.append(
                GenerationError(
                    kind=ErrorKind.CANCELLED,
                    message=(
                        f"Generation interrupted; abandoned {len(abandoned)} section(s): "
                        f"{', '.join(abandoned)}"
                    ),
                )
            )

        assembly = self.assembler.assemble(
            blueprint,
            base_files,
            rendered,
            theme_slug=theme_slug,
            preset=preset.id,
            complete=complete,
            warnings=warnings,
            errors=errors,
        )
        errors.extend(assembly.errors)

        success = complete and not any(e.kind == ErrorKind.EMPTY_PAGE for e in errors)
        result = GenerationResult(
            success=success,
            files=assembly.files,
            errors=errors,
            metadata=GenerationMetadata(
                industry=blueprint.industry,
                preset=preset.id,
                pages=[page.slug for page in blueprint.pages],
                ai_content_used=ai_used,
                generated_at=self.clock().isoformat(),
                complete=complete,
                warnings=warnings,
                checksum=aggregate_checksum(assembly.files),
            ),
        )

        if self.config.verbose:
            self._print_summary(result, time.monotonic() - started)
        return result

    # ------------------------------------------------------------------
    # Section work
    # ------------------------------------------------------------------

    async def _run_sections(
        self,
        run: _RunContext,
        selections: list[Selection],
        timeout: Optional[float],
    ) -> tuple[dict[int, SectionOutcome], list[str]]:
        """Run every selected section; return outcomes and abandoned refs.

        Outcomes are keyed by declared index, so callers can re-sort them
        regardless of completion order.
        """
        outcomes: dict[int, SectionOutcome] = {}
        tasks: dict[asyncio.Task, int] = {}

        for index, selection in enumerate(selections):
            if selection.pattern is None:
                outcomes[index] = SectionOutcome(
                    error=PatternNotFoundError(
                        f"No {selection.descriptor.type.value} pattern is registered for "
                        f"{run.blueprint.industry}/{run.preset.id}; section dropped",
                        page=selection.page.slug,
                        section=selection.ref,
                    ).to_entry()
                )

        if run.cancel is not None and run.cancel.is_set():
            return outcomes, [s.ref for s in selections if s.pattern is not None]

        for index, selection in enumerate(selections):
            if selection.pattern is not None:
                tasks[asyncio.create_task(self._run_section(run, selection))] = index

        pending = await self._wait(set(tasks), timeout, run.cancel)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for task, index in tasks.items():
            if task not in pending:
                outcomes[index] = task.result()

        abandoned = sorted(tasks[t] for t in pending)
        return outcomes, [selections[i].ref for i in abandoned]

    @staticmethod
    async def _wait(
        tasks: set[asyncio.Task],
        timeout: Optional[float],
        cancel: Optional[asyncio.Event],
    ) -> set[asyncio.Task]:
        """Wait for *tasks* until done, deadline or cancel; return the pending ones."""
        if not tasks:
            return set()

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        waiter = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        pending = set(tasks)
        try:
            while pending:
                remaining = None if deadline is None else deadline - loop.time()
                if remaining is not None and remaining <= 0:
                    break
                watched = pending | {waiter} if waiter is not None else pending
                done, _ = await asyncio.wait(
                    watched, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                )
                pending -= done
                if waiter is not None and waiter in done:
                    break
        finally:
            if waiter is not None and not waiter.done():
                waiter.cancel()
        return pending

    async def _run_section(self, run: _RunContext, selection: Selection) -> SectionOutcome:
        """Merge, fetch, resolve and render one section."""
        pattern = selection.pattern
        descriptor = selection.descriptor
        ref = selection.ref
        industry = run.snapshot.industry(run.blueprint.industry)

        async with run.semaphore:
            merged = effective_config(
                pattern,
                descriptor,
                industry=industry,
                preset=run.preset,
                tokens=run.blueprint.design_tokens,
            )
            warnings = [f"{ref}: {message}" for message in merged.warnings]

            context = build_prompt_context(
                run.blueprint, industry, selection.page, descriptor, pattern
            )
            fetched = await run.resolver.fetch(pattern.section_type, context, cancel=run.cancel)
            warnings.extend(fetched.warnings)

            try:
                resolution = run.resolver.resolve(
                    pattern, descriptor, run.blueprint_data, fetched.content, ref=ref
                )
            except MissingRequiredSlotError as exc:
                return SectionOutcome(error=exc.to_entry(), warnings=warnings, ai_used=fetched.used)
            warnings.extend(resolution.warnings)

            section = ResolvedSection(
                page=selection.page.slug,
                key=selection.key,
                position=selection.position,
                pattern=pattern,
                config=merged.config,
                content=resolution.content,
                warnings=warnings,
            )
            try:
                content = self.renderer.render_pattern_file(section, run.theme_slug)
            except TemplateNotFound as exc:
                error = PatternNotFoundError(
                    f"Pattern {pattern.id!r} has no template {exc.name!r}; section dropped",
                    page=selection.page.slug,
                    section=ref,
                )
                return SectionOutcome(error=error.to_entry(), warnings=warnings, ai_used=fetched.used)
            except TemplateError as exc:
                error = RenderFailedError(
                    f"Pattern {pattern.id!r} failed to render: {exc}; section dropped",
                    page=selection.page.slug,
                    section=ref,
                )
                return SectionOutcome(error=error.to_entry(), warnings=warnings, ai_used=fetched.used)
            rendered = RenderedSection(section=section, content=content)
        return SectionOutcome(rendered=rendered, warnings=warnings, ai_used=fetched.used)

    # ------------------------------------------------------------------
    # Result helpers
    # ------------------------------------------------------------------

    def _aborted(
        self,
        industry: str,
        warnings: list[str],
        exc: ThemeForgeError,
        *,
        preset: str = "",
    ) -> GenerationResult:
        return GenerationResult(
            success=False,
            files=[],
            errors=[exc.to_entry()],
            metadata=GenerationMetadata(
                industry=industry,
                preset=preset,
                generated_at=self.clock().isoformat(),
                complete=False,
                warnings=warnings,
                checksum=aggregate_checksum([]),
            ),
        )

    def _print_summary(self, result: GenerationResult, elapsed: float) -> None:
        print_summary_table(
            {
                "Files": str(len(result.files)),
                "Errors": str(len(result.errors)),
                "Warnings": str(len(result.metadata.warnings)),
                "AI content": "yes" if result.metadata.ai_content_used else "no",
                "Duration": format_duration(elapsed),
            },
            title="Generation Results",
        )
        for error in result.errors:
            console.print(f"  [red]-[/red] {error.kind.value}: {error.message}")
        if result.success:
            print_success("Theme generated successfully.")
        else:
            print_error("Theme generation failed.")


async def generate(
    blueprint: Union[Blueprint, dict[str, Any]],
    *,
    config: Optional[CompilerConfig] = None,
    content_provider: Optional[ContentProvider] = None,
    policy: Optional[SlotPolicy] = None,
    timeout: Optional[float] = None,
    cancel: Optional[asyncio.Event] = None,
    clock: Optional[Clock] = None,
) -> GenerationResult:
    """Compile *blueprint* with a one-off ``ThemeCompiler``."""
    compiler = ThemeCompiler(config, content_provider=content_provider, clock=clock)
    return await compiler.generate(blueprint, policy=policy, timeout=timeout, cancel=cancel)
