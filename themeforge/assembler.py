"""Site assembly: path planning and final file ordering.

The assembler reserves every output path before any section is rendered, so
a path collision aborts the run before work is wasted. After rendering it
emits files in the blueprint's declared order: base files, then per page
the section files followed by the page template, then the report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from themeforge.errors import DuplicatePathError, InvalidBlueprintError
from themeforge.models import (
    Blueprint,
    ErrorKind,
    FileType,
    GeneratedFile,
    GenerationError,
    ResolvedSection,
)
from themeforge.render.renderer import (
    TemplateRenderer,
    page_template_path,
    pattern_file_path,
)
from themeforge.utils import dump_json

REPORT_PATH = "themeforge-report.json"


def validate_path(path: str) -> str:
    """Reject anything that is not a clean relative slash-separated path.

    Raises:
        InvalidBlueprintError: On absolute paths, backslashes, empty
            segments or ``.``/``..`` segments.
    """
    if not path or path.startswith("/") or "\\" in path:
        raise InvalidBlueprintError(f"Unsafe output path {path!r}")
    for segment in path.split("/"):
        if segment in ("", ".", ".."):
            raise InvalidBlueprintError(f"Unsafe output path {path!r}")
    return path


class PathPlan:
    """Ordered reservation table of output path -> owner description."""

    def __init__(self) -> None:
        self._owners: dict[str, str] = {}

    def reserve(self, path: str, owner: str) -> None:
        validate_path(path)
        if path in self._owners:
            raise DuplicatePathError(
                f"Output path {path!r} is claimed by both {self._owners[path]} and {owner}"
            )
        self._owners[path] = owner

    def owner(self, path: str) -> Optional[str]:
        return self._owners.get(path)

    def __contains__(self, path: str) -> bool:
        return path in self._owners

    def __len__(self) -> int:
        return len(self._owners)


class FileSet:
    """Append-only, order-preserving collection of generated files."""

    def __init__(self) -> None:
        self._files: list[GeneratedFile] = []
        self._paths: set[str] = set()

    def add(self, generated: GeneratedFile) -> None:
        validate_path(generated.path)
        if generated.path in self._paths:
            raise DuplicatePathError(f"Output path {generated.path!r} was emitted twice")
        self._paths.add(generated.path)
        self._files.append(generated)

    def extend(self, files: Iterable[GeneratedFile]) -> None:
        for generated in files:
            self.add(generated)

    @property
    def files(self) -> list[GeneratedFile]:
        return list(self._files)


@dataclass(frozen=True)
class RenderedSection:
    """A resolved section together with its rendered pattern-file text."""

    section: ResolvedSection
    content: str

    @property
    def position(self) -> int:
        return self.section.position


@dataclass
class Assembly:
    files: list[GeneratedFile] = field(default_factory=list)
    errors: list[GenerationError] = field(default_factory=list)


class SiteAssembler:
    """Orders rendered sections into pages and emits the final file list."""

    def __init__(self, renderer: TemplateRenderer, *, include_report: bool = True) -> None:
        self.renderer = renderer
        self.include_report = include_report

    def plan(self, blueprint: Blueprint, base_files: Iterable[GeneratedFile]) -> PathPlan:
        """Reserve every path the run may emit.

        Raises:
            DuplicatePathError: If two files would share a path.
            InvalidBlueprintError: If a derived path is unsafe.
        """
        plan = PathPlan()
        for generated in base_files:
            plan.reserve(generated.path, f"base file {generated.path}")
        for page in blueprint.pages:
            for descriptor in page.sections:
                plan.reserve(
                    pattern_file_path(page.slug, descriptor.key),
                    f"section {page.slug}/{descriptor.key}",
                )
            plan.reserve(page_template_path(page.slug), f"page {page.slug}")
        if self.include_report:
            plan.reserve(REPORT_PATH, "generation report")
        return plan

    def assemble(
        self,
        blueprint: Blueprint,
        base_files: Iterable[GeneratedFile],
        sections: Iterable[RenderedSection],
        *,
        theme_slug: str,
        preset: str,
        complete: bool = True,
        warnings: Iterable[str] = (),
        errors: Iterable[GenerationError] = (),
    ) -> Assembly:
        """Emit the final ordered file list.

        *sections* may arrive in any order; they are grouped by page and
        sorted by their declared position. A page without any rendered
        section gets no template, and an ``empty_page`` error when it is
        required.
        """
        by_page: dict[str, list[RenderedSection]] = {}
        for rendered_section in sections:
            by_page.setdefault(rendered_section.section.page, []).append(rendered_section)

        output = FileSet()
        output.extend(base_files)
        assembly = Assembly()

        ordered: list[ResolvedSection] = []
        for page in blueprint.pages:
            rendered = sorted(by_page.get(page.slug, []), key=lambda s: s.position)
            ordered.extend(r.section for r in rendered)
            for item in rendered:
                section = item.section
                output.add(
                    GeneratedFile(
                        path=pattern_file_path(section.page, section.key),
                        content=item.content,
                        type=FileType.MARKUP,
                        metadata={"encoding": "utf-8", "pattern": section.pattern.id},
                    )
                )
            if not rendered:
                if page.required:
                    assembly.errors.append(
                        GenerationError(
                            kind=ErrorKind.EMPTY_PAGE,
                            message=f"Required page {page.slug!r} has no rendered sections",
                            page=page.slug,
                        )
                    )
                continue
            output.add(
                GeneratedFile(
                    path=page_template_path(page.slug),
                    content=self.renderer.render_page(
                        page, [r.section.key for r in rendered], theme_slug
                    ),
                    type=FileType.MARKUP,
                    metadata={"encoding": "utf-8"},
                )
            )

        if self.include_report:
            report = build_report(
                blueprint,
                preset,
                ordered,
                complete=complete,
                warnings=list(warnings),
                errors=[*errors, *assembly.errors],
            )
            output.add(
                GeneratedFile(
                    path=REPORT_PATH,
                    content=dump_json(report),
                    type=FileType.CONFIG,
                    metadata={"encoding": "utf-8"},
                )
            )

        assembly.files = output.files
        return assembly


def build_report(
    blueprint: Blueprint,
    preset: str,
    sections: list[ResolvedSection],
    *,
    complete: bool,
    warnings: list[str],
    errors: list[GenerationError],
) -> dict[str, Any]:
    """Summarise the run for ``themeforge-report.json``. Holds no timestamps."""
    pages: list[dict[str, Any]] = []
    for page in blueprint.pages:
        pages.append(
            {
                "slug": page.slug,
                "title": page.display_title,
                "sections": [
                    {
                        "key": s.key,
                        "pattern": s.pattern.id,
                        "config": s.config,
                        "warnings": s.warnings,
                    }
                    for s in sections
                    if s.page == page.slug
                ],
            }
        )
    return {
        "industry": blueprint.industry,
        "preset": preset,
        "complete": complete,
        "pages": pages,
        "warnings": warnings,
        "errors": [e.model_dump(mode="json") for e in errors],
    }
