"""Unit tests for the command-line entry point (themeforge.cli)."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pytest

from themeforge.cli import build_content_provider, build_parser, main, resolve_output_path
from themeforge.config import CompilerConfig, ContentConfig, SlotPolicy
from themeforge.content import OllamaContentProvider, StaticContentProvider
from themeforge.errors import ContentProviderFailure


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("THEMEFORGE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def blueprint_file(tmp_path: Path, blueprint_data: dict[str, Any]) -> Path:
    path = tmp_path / "blueprint.json"
    path.write_text(json.dumps(blueprint_data), encoding="utf-8")
    return path


@pytest.fixture
def content_file(tmp_path: Path) -> Path:
    path = tmp_path / "content.json"
    path.write_text(json.dumps({"hero": {"headline": "Built to Last"}}), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    @pytest.mark.unit
    def test_parser_defaults(self):
        args = build_parser().parse_args(["bp.json"])
        assert args.blueprint == "bp.json"
        assert args.output is None
        assert args.lenient is False
        assert args.timeout is None
        assert args.ollama is False
        assert args.lint is False

    @pytest.mark.unit
    def test_parser_flags(self):
        args = build_parser().parse_args(
            ["bp.json", "-o", "out", "--lenient", "--timeout", "2.5", "--ollama", "--lint", "-v"]
        )
        assert args.output == "out"
        assert args.lenient is True
        assert args.timeout == 2.5
        assert args.ollama is True
        assert args.lint is True
        assert args.verbose is True

    @pytest.mark.unit
    def test_resolve_output_path(self, tmp_path: Path):
        assert resolve_output_path(tmp_path, "patterns/home-hero.php") == (
            tmp_path.resolve() / "patterns" / "home-hero.php"
        )

    @pytest.mark.unit
    @pytest.mark.parametrize("relative", ["../escape.php", "patterns/../../escape.php", "/etc/passwd"])
    def test_resolve_output_path_rejects_escapes(self, tmp_path: Path, relative: str):
        with pytest.raises(ValueError, match="Refusing to write outside"):
            resolve_output_path(tmp_path / "theme", relative)


class TestBuildContentProvider:
    @pytest.mark.unit
    def test_none_by_default(self):
        assert build_content_provider(CompilerConfig()) is None

    @pytest.mark.unit
    def test_static_from_file(self, content_file: Path):
        provider = build_content_provider(CompilerConfig(), content_file=content_file)
        assert isinstance(provider, StaticContentProvider)

    @pytest.mark.unit
    def test_ollama(self):
        provider = build_content_provider(CompilerConfig(), use_ollama=True)
        assert isinstance(provider, OllamaContentProvider)

    @pytest.mark.unit
    def test_disabled_content_wins(self, content_file: Path):
        config = CompilerConfig(content=ContentConfig(enabled=False))
        assert build_content_provider(config, use_ollama=True, content_file=content_file) is None

    @pytest.mark.unit
    def test_invalid_snapshot(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ContentProviderFailure):
            build_content_provider(CompilerConfig(), content_file=path)


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------


class TestMain:
    @pytest.mark.unit
    def test_missing_blueprint(self, tmp_path: Path):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1

    @pytest.mark.unit
    def test_malformed_blueprint(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path)])
        assert exc_info.value.code == 1

    @pytest.mark.unit
    def test_strict_failure_exits_nonzero(self, blueprint_file: Path, tmp_path: Path):
        output = tmp_path / "theme"
        with pytest.raises(SystemExit) as exc_info:
            main([str(blueprint_file), "-o", str(output)])
        assert exc_info.value.code == 1
        assert (output / "style.css").exists()
        assert not (output / "patterns" / "home-hero.php").exists()

    @pytest.mark.unit
    def test_lenient_writes_theme(self, blueprint_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture):
        output = tmp_path / "theme"
        main([str(blueprint_file), "-o", str(output), "--lenient"])

        hero = (output / "patterns" / "home-hero.php").read_text(encoding="utf-8")
        assert "Your Headline Here" in hero
        assert (output / "front-page.php").exists()
        assert (output / "theme.json").exists()
        assert "Theme generated successfully!" in capsys.readouterr().out

    @pytest.mark.unit
    def test_content_snapshot(self, blueprint_file: Path, content_file: Path, tmp_path: Path):
        output = tmp_path / "theme"
        main([str(blueprint_file), "-o", str(output), "--content", str(content_file)])

        hero = (output / "patterns" / "home-hero.php").read_text(encoding="utf-8")
        assert "Built to Last" in hero

    @pytest.mark.unit
    def test_dry_run_writes_nothing(self, blueprint_file: Path, tmp_path: Path):
        main([str(blueprint_file), "--lenient"])
        assert sorted(p.name for p in tmp_path.iterdir()) == ["blueprint.json"]

    @pytest.mark.unit
    def test_config_file(self, blueprint_file: Path, tmp_path: Path):
        config = CompilerConfig()
        config.slot_policy = SlotPolicy.lenient()
        config_path = config.save(tmp_path / "config.json")

        output = tmp_path / "theme"
        main([str(blueprint_file), "-o", str(output), "--config", str(config_path)])
        assert (output / "patterns" / "home-hero.php").exists()

    @pytest.mark.unit
    def test_invalid_blueprint_exits_nonzero(self, tmp_path: Path):
        path = tmp_path / "empty.json"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path), "-o", str(tmp_path / "theme")])
        assert exc_info.value.code == 1
        assert not (tmp_path / "theme").exists()
