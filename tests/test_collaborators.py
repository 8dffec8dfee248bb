from __future__ import annotations

import sys
from pathlib import Path

import pytest

from asset_bundler.bundle.builder import Bundler
from asset_bundler.bundle.collaborators import CommandCollaborator, build_collaborators
from asset_bundler.errors import ArgumentError, CommandFailedError, TransformError
from asset_bundler.settings import BundlerSettings, CommandSettings

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="uses POSIX shell commands")


@posix_only
def test_command_collaborator_substitutes_quoted_paths(tmp_path: Path) -> None:
    source = tmp_path / "my styles.css"
    source.write_text("a {}\n", encoding="utf-8")
    target = tmp_path / "out" / "my styles.min.css"

    assert CommandCollaborator("minify_css", "cp {input} {output}")(str(source), str(target)) is True
    assert target.read_text(encoding="utf-8") == "a {}\n"


@posix_only
def test_command_failure_raises(tmp_path: Path) -> None:
    step = CommandCollaborator("minify_js", "echo broken >&2; exit 3")

    with pytest.raises(CommandFailedError) as excinfo:
        step(str(tmp_path / "a.js"), str(tmp_path / "a.min.js"))

    assert excinfo.value.returncode == 3
    assert "broken" in excinfo.value.stderr


def test_unconfigured_command_raises(tmp_path: Path) -> None:
    with pytest.raises(CommandFailedError):
        CommandCollaborator("compile_less", None)(str(tmp_path / "a.less"), str(tmp_path / "a.less.css"))


def test_unknown_backend_is_rejected() -> None:
    with pytest.raises(ArgumentError):
        build_collaborators("webpack")


@posix_only
def test_bundler_with_command_backend(tmp_path: Path, write_file) -> None:
    write_file(tmp_path / "a.css", "a {}\n")
    write_file(tmp_path / "b.js", "var b;\n")
    (tmp_path / "site.css.bundle").write_text('<Bundle><Include File="a.css" /></Bundle>', encoding="utf-8")
    commands = CommandSettings(minify_css="cp {input} {output}")
    settings = BundlerSettings(commands=commands, case_sensitive_paths=True)
    bundler = Bundler(build_collaborators("command", commands=commands), settings=settings)

    report = bundler.build(tmp_path / "site.css.bundle")

    assert report.bundles == [tmp_path / "site.min.css"]
    assert (tmp_path / "a.min.css").read_text(encoding="utf-8") == "a {}\n"

    (tmp_path / "app.js.bundle").write_text('<Bundle><Include File="b.js" /></Bundle>', encoding="utf-8")
    with pytest.raises(TransformError) as excinfo:
        bundler.build(tmp_path / "app.js.bundle")
    assert isinstance(excinfo.value.__cause__, CommandFailedError)
