from __future__ import annotations

import json
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path

from asset_bundler.cli import bundle as bundle_cli


def _run_cli(argv: list[str]) -> tuple[int, dict]:
    buffer = StringIO()
    with redirect_stdout(buffer):
        exit_code = bundle_cli.main(argv)
    return exit_code, json.loads(buffer.getvalue())


def _workspace(tmp_path: Path, write_file) -> Path:
    write_file(tmp_path / "css" / "a.css", '@import "b.css";\n@import "gone.css";\na {}\n')
    write_file(tmp_path / "css" / "b.css", "b {}\n")
    (tmp_path / "site.css.bundle").write_text('<Bundle><Include File="css/a.css" /></Bundle>', encoding="utf-8")
    return tmp_path.resolve()


def test_cli_build_command(tmp_path: Path, write_file) -> None:
    root = _workspace(tmp_path, write_file)

    exit_code, payload = _run_cli(
        ["build", "site.css.bundle", "--backend", "copy", "--no-case-sensitive", "--workspace-root", str(root)]
    )

    assert exit_code == 0
    assert payload["ok"] is True
    assert payload["bundles"] == [str(root / "site.min.css")]
    assert payload["up_to_date"] is False
    assert str(root / "css" / "a.min.css") in payload["written"]
    assert [entry["import"] for entry in payload["missing_imports"]] == [str(root / "css" / "gone.css")]
    assert payload["appended"] == [{"output": str(root / "site.min.css"), "file": str(root / "css" / "a.min.css")}]

    exit_code, payload = _run_cli(["build", "site.css.bundle", "--backend", "copy", "--workspace-root", str(root)])
    assert exit_code == 0
    assert payload["up_to_date"] is True


def test_cli_resolve_and_imports(tmp_path: Path, write_file) -> None:
    root = _workspace(tmp_path, write_file)

    _, resolved = _run_cli(["resolve", "site.css.bundle", "--workspace-root", str(root)])
    _, imports = _run_cli(["imports", "site.css.bundle", "--workspace-root", str(root)])

    assert resolved["files"] == [str(root / "css" / "a.css")]
    assert imports["imports"] == [str(root / "css" / "b.css")]


def test_cli_reads_settings_file(tmp_path: Path, write_file) -> None:
    root = _workspace(tmp_path, write_file)
    (root / "bundler.yaml").write_text("backend: copy\n", encoding="utf-8")

    exit_code, payload = _run_cli(["build", "site.css.bundle", "--workspace-root", str(root)])

    assert exit_code == 0
    assert (root / "site.min.css").is_file()


def test_cli_build_failure_payload(tmp_path: Path) -> None:
    exit_code, payload = _run_cli(
        ["build", "absent.css.bundle", "--backend", "copy", "--workspace-root", str(tmp_path)]
    )

    assert exit_code == 1
    assert payload["ok"] is False
    assert payload["type"] == "NotFoundError"


def test_cli_keep_going_lists_failures(tmp_path: Path, write_file) -> None:
    root = _workspace(tmp_path, write_file)

    exit_code, payload = _run_cli(
        [
            "build",
            "absent.css.bundle",
            "site.css.bundle",
            "--backend",
            "copy",
            "--keep-going",
            "--workspace-root",
            str(root),
        ]
    )

    assert exit_code == 1
    assert payload["type"] == "BuildError"
    assert [failure["manifest"] for failure in payload["failures"]] == [str(root / "absent.css.bundle")]
    assert (root / "site.min.css").is_file()


def test_cli_manifest_validate(tmp_path: Path) -> None:
    (tmp_path / "site.bundle").write_text('<Bundle><Include File="a.less" /></Bundle>', encoding="utf-8")

    _, payload = _run_cli(["manifest", "validate", "--manifest", "site.bundle", "--workspace-root", str(tmp_path)])

    assert payload["valid"] is False
    assert payload["output_file"] is None
    assert payload["includes"] == [{"file": "a.less", "output_file": None, "bundle": False}]


def test_cli_reports_unreadable_stylesheet(tmp_path: Path) -> None:
    (tmp_path / "main.css").write_bytes(b"/* caf\xe9 */ body {}\n")
    (tmp_path / "site.css.bundle").write_text('<Bundle><Include File="main.css" /></Bundle>', encoding="utf-8")

    exit_code, payload = _run_cli(["build", "site.css.bundle", "--backend", "copy", "--workspace-root", str(tmp_path)])

    assert exit_code == 1
    assert payload["type"] == "TransformError"
    assert "main.css" in payload["error"]
