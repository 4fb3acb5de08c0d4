"""Command-line entry point for ``python -m themeforge``."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from themeforge.compiler import ThemeCompiler
from themeforge.config import CompilerConfig, SlotPolicy
from themeforge.content import ContentProvider, OllamaContentProvider, StaticContentProvider
from themeforge.errors import ContentProviderFailure
from themeforge.models import GenerationResult
from themeforge.utils import console, load_json, print_summary_table, write_text


def build_content_provider(
    config: CompilerConfig,
    *,
    use_ollama: bool = False,
    content_file: Optional[Path] = None,
) -> Optional[ContentProvider]:
    """Return the provider a CLI run should use, or ``None``."""
    if not config.content.enabled:
        return None
    if content_file is not None:
        return StaticContentProvider.from_file(content_file)
    if use_ollama:
        return OllamaContentProvider(config.ollama)
    return None


def resolve_output_path(output_dir: Path, relative: str) -> Path:
    """Join *relative* below *output_dir*, refusing anything that escapes it."""
    root = output_dir.resolve()
    target = (root / relative).resolve()
    if not target.is_relative_to(root):
        raise ValueError(f"Refusing to write outside {root}: {relative}")
    return target


async def write_files(result: GenerationResult, output_dir: Path) -> list[Path]:
    """Write every generated file below *output_dir*."""
    targets = [resolve_output_path(output_dir, f.path) for f in result.files]
    return list(
        await asyncio.gather(
            *(write_text(target, f.content) for target, f in zip(targets, result.files))
        )
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="themeforge",
        description="ThemeForge -- compile a site blueprint into a WordPress theme",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m themeforge blueprint.json\n"
            "  python -m themeforge blueprint.json -o ./theme --lenient\n"
            "  python -m themeforge blueprint.json -o ./theme --ollama --timeout 60\n"
            "  python -m themeforge blueprint.json --content content.json\n"
        ),
    )
    parser.add_argument("blueprint", help="Path to the blueprint JSON file")
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the generated files below this directory (default: dry run)",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Substitute placeholders for unresolved required slots instead of dropping sections",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline in seconds for section work",
    )
    parser.add_argument(
        "--ollama",
        action="store_true",
        help="Fetch section copy from a local Ollama server",
    )
    parser.add_argument(
        "--content",
        default=None,
        help="JSON content snapshot used instead of a live provider",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Compiler configuration JSON (default: THEMEFORGE_* environment variables)",
    )
    parser.add_argument(
        "--lint",
        action="store_true",
        help="Warn about overused fonts and generic copy in the blueprint",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Print progress")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``python -m themeforge``."""
    args = build_parser().parse_args(argv)

    blueprint_path = Path(args.blueprint)
    if not blueprint_path.exists():
        console.print(f"[bold red]Error:[/bold red] Blueprint file not found: {blueprint_path}")
        sys.exit(1)

    try:
        blueprint = load_json(blueprint_path)
    except json.JSONDecodeError as exc:
        console.print(f"[bold red]Error:[/bold red] Blueprint is not valid JSON: {exc}")
        sys.exit(1)

    config = CompilerConfig.load(Path(args.config)) if args.config else CompilerConfig.from_env()
    if args.verbose:
        config.verbose = True
    if args.lint:
        config.lint_design = True

    try:
        provider = build_content_provider(
            config,
            use_ollama=args.ollama,
            content_file=Path(args.content) if args.content else None,
        )
    except (OSError, ContentProviderFailure) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)

    compiler = ThemeCompiler(config, content_provider=provider)
    policy = SlotPolicy.lenient() if args.lenient else None
    result = asyncio.run(compiler.generate(blueprint, policy=policy, timeout=args.timeout))

    if not config.verbose:
        print_summary_table(
            {
                "Industry": result.metadata.industry,
                "Preset": result.metadata.preset,
                "Files": str(len(result.files)),
                "Errors": str(len(result.errors)),
                "Warnings": str(len(result.metadata.warnings)),
                "Checksum": result.metadata.checksum[:12],
            },
            title="ThemeForge",
        )
        for error in result.errors:
            console.print(f"  [red]-[/red] {error.kind.value}: {error.message}")

    if args.output and result.files:
        output_dir = Path(args.output)
        try:
            written = asyncio.run(write_files(result, output_dir))
        except (OSError, ValueError) as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            sys.exit(1)
        console.print(f"Wrote {len(written)} files to [cyan]{output_dir}[/cyan]")

    if result.success:
        console.print("[bold green]Theme generated successfully![/bold green]")
    else:
        console.print("[bold red]Theme generation failed.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
