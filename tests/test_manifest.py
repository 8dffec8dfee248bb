"""Tests for manifest models and the XML reader/writer."""

from __future__ import annotations

from pathlib import Path

import pytest

from asset_bundler.bundle.manifest import dump_manifest, dumps_manifest, load_manifest, loads_manifest
from asset_bundler.errors import ArgumentError, ManifestError, NotFoundError
from asset_bundler.schemas.manifest import Bundle, BundleInclude, Include


@pytest.mark.parametrize(
    ("file", "expected"),
    [
        ("site.css", "site.min.css"),
        ("theme.less", "theme.min.css"),
        ("app.js", "app.min.js"),
        ("row.js.html", "row.min.js"),
        ("vendor/jquery.min.js", "vendor/jquery.min.js"),
        ("notes.txt", "notes.txt"),
    ],
)
def test_include_output_names(file: str, expected: str) -> None:
    assert Include(file=file).get_output_file() == expected


def test_explicit_include_output_wins() -> None:
    include = Include(file="a.css", output_file=" ../out/a.css ")

    assert include.get_output_file() == "../out/a.css"
    assert include.resolve_output_file("/srv/site/css") == str(Path("/srv/site/out/a.css"))


def test_backslash_paths_are_normalised(tmp_path: Path) -> None:
    include = Include(file="sub\\a.css")

    assert include.resolve_file(str(tmp_path)) == str(tmp_path / "sub" / "a.css")


def test_bundle_output_is_derived_from_manifest_name(tmp_path: Path) -> None:
    bundle = Bundle(file=str(tmp_path / "site.css.bundle"))

    assert bundle.get_output_file() == str(tmp_path / "site.min.css")


def test_bundle_output_requires_a_derivable_name(tmp_path: Path) -> None:
    bundle = Bundle(file=str(tmp_path / "site.bundle"))

    with pytest.raises(ArgumentError):
        bundle.get_output_file()

    explicit = bundle.model_copy(update={"output_file": "out/site.css"})
    assert explicit.get_output_file() == str(tmp_path / "out" / "site.css")


def test_load_manifest_reads_includes_and_nested_bundles(tmp_path: Path) -> None:
    path = tmp_path / "site.css.bundle"
    path.write_text(
        '\ufeff<?xml version="1.0" encoding="utf-8"?>\n'
        '<Bundle xmlns="http://schemas.example.com/bundle">\n'
        "  <OutputFile>dist/site.css</OutputFile>\n"
        '  <Include File="a.css" />\n'
        '  <Include File="b.less"><OutputFile>out/b.css</OutputFile></Include>\n'
        '  <Bundle File="shared.css.bundle" />\n'
        "</Bundle>\n",
        encoding="utf-8",
    )

    bundle = load_manifest(path)

    assert bundle.file == str(path)
    assert bundle.output_file == "dist/site.css"
    assert [type(include) for include in bundle.includes] == [Include, Include, BundleInclude]
    assert [include.file for include in bundle.includes] == ["a.css", "b.less", "shared.css.bundle"]
    assert bundle.includes[1].output_file == "out/b.css"


def test_manifest_round_trip(tmp_path: Path) -> None:
    bundle = Bundle(
        output_file="site.css",
        includes=[Include(file="a.css", output_file="a.min.css"), BundleInclude(file="b.css.bundle")],
    )

    path = dump_manifest(bundle, tmp_path / "nested" / "site.css.bundle")
    loaded = load_manifest(path)

    assert loaded.model_copy(update={"file": None}) == bundle
    assert dumps_manifest(bundle).startswith('<?xml version="1.0" encoding="utf-8"?>\n<Bundle>')


def test_load_manifest_missing_or_empty_path(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        load_manifest(tmp_path / "absent.css.bundle")
    with pytest.raises(NotFoundError):
        load_manifest("")


@pytest.mark.parametrize(
    "text",
    [
        "<Bundle><Include File='a.css'>",
        "<Manifest />",
        "<Bundle><Script File='a.js' /></Bundle>",
        "<Bundle><Include /></Bundle>",
    ],
)
def test_invalid_manifest_documents(text: str) -> None:
    with pytest.raises(ManifestError):
        loads_manifest(text)
