"""Command-line entry point for building asset bundles."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from asset_bundler.bundle.builder import BuildHooks, Bundler
from asset_bundler.bundle.collaborators import build_collaborators
from asset_bundler.bundle.manifest import load_manifest
from asset_bundler.errors import BuildError, BundlerError, NotFoundError
from asset_bundler.schemas.manifest import BundleInclude
from asset_bundler.settings import DEFAULT_SETTINGS_FILE, BundlerSettings, load_settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.command == "build":
            return _handle_build(args)
        if args.command == "resolve":
            return _handle_resolve(args)
        if args.command == "imports":
            return _handle_imports(args)
        if args.command == "manifest":
            if args.manifest_command == "validate":
                return _handle_manifest_validate(args)
            parser.error("manifest command requires a subcommand")
    except BundlerError as exc:
        payload: dict[str, object] = {"ok": False, "error": str(exc), "type": type(exc).__name__}
        if isinstance(exc, BuildError):
            payload["failures"] = [{"manifest": str(path), "error": str(error)} for path, error in exc.failures]
        _print_json(payload)
        return 1

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="asset-bundler", description="Incremental CSS/LESS/JS bundler.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build bundle outputs.")
    build.add_argument("manifests", nargs="+", help="Bundle manifest path (repeatable).")
    _add_common_arguments(build)
    build.add_argument("--backend", choices=["command", "copy"])
    build.add_argument("--keep-going", action=argparse.BooleanOptionalAction, default=None)

    resolve = subparsers.add_parser("resolve", help="List the files a manifest bundles.")
    resolve.add_argument("manifest")
    _add_common_arguments(resolve)

    imports = subparsers.add_parser("imports", help="List files pulled in through @import.")
    imports.add_argument("manifest")
    _add_common_arguments(imports)

    manifest = subparsers.add_parser("manifest", help="Manifest utilities.")
    manifest_sub = manifest.add_subparsers(dest="manifest_command", required=True)
    manifest_validate = manifest_sub.add_parser("validate", help="Validate a bundle manifest.")
    manifest_validate.add_argument("--manifest", required=True)
    manifest_validate.add_argument("--workspace-root")

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help=f"Settings file (default: {DEFAULT_SETTINGS_FILE} in the workspace).")
    parser.add_argument("--case-sensitive", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--workspace-root")


def _handle_build(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    settings = _load_settings(args, workspace)
    if args.backend:
        settings = settings.model_copy(update={"backend": args.backend})

    missing: List[dict[str, str]] = []
    appended: List[dict[str, str]] = []
    hooks = BuildHooks(
        on_missing_import=lambda file, import_file, statement: missing.append(
            {"file": file, "import": import_file, "statement": statement}
        ),
        on_file_appended=lambda output, file: appended.append({"output": output, "file": file}),
    )

    bundler = _create_bundler(settings, hooks)
    manifests = [_resolve_path(value, workspace) for value in args.manifests]
    report = bundler.build(manifests, keep_going=args.keep_going)

    payload = {
        "ok": True,
        "bundles": [str(path) for path in report.bundles],
        "written": [str(path) for path in report.written],
        "up_to_date": not report.written,
        "missing_imports": missing,
        "appended": appended,
    }
    _print_json(payload)
    return 0


def _handle_resolve(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    bundler = _create_bundler(_load_settings(args, workspace))
    manifest = _resolve_path(args.manifest, workspace)
    _print_json({"ok": True, "manifest": str(manifest), "files": bundler.resolve(manifest)})
    return 0


def _handle_imports(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    bundler = _create_bundler(_load_settings(args, workspace))
    manifest = _resolve_path(args.manifest, workspace)
    _print_json({"ok": True, "manifest": str(manifest), "imports": bundler.get_import_files(manifest)})
    return 0


def _handle_manifest_validate(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    manifest_path = _resolve_path(args.manifest, workspace)

    errors: List[str] = []
    output_file: Optional[str] = None
    includes: List[dict[str, object]] = []
    try:
        bundle = load_manifest(manifest_path)
    except BundlerError as exc:
        errors.append(str(exc))
    else:
        includes = [
            {
                "file": include.file,
                "output_file": include.output_file,
                "bundle": isinstance(include, BundleInclude),
            }
            for include in bundle.includes
        ]
        try:
            output_file = bundle.get_output_file()
        except BundlerError as exc:
            errors.append(str(exc))

    payload = {
        "manifest_path": str(manifest_path),
        "valid": not errors,
        "errors": errors,
        "output_file": output_file,
        "includes": includes,
    }
    _print_json(payload)
    return 0


def _create_bundler(settings: BundlerSettings, hooks: Optional[BuildHooks] = None) -> Bundler:
    collaborators = build_collaborators(settings.backend, commands=settings.commands)
    return Bundler(collaborators, settings=settings, hooks=hooks)


def _load_settings(args: argparse.Namespace, workspace: Path) -> BundlerSettings:
    config_path = _resolve_path(args.config, workspace) if args.config else workspace / DEFAULT_SETTINGS_FILE
    if args.config and not config_path.exists():
        raise NotFoundError(f"Settings file not found: {config_path}", config_path)
    settings = load_settings(config_path)
    if args.case_sensitive is not None:
        settings = settings.model_copy(update={"case_sensitive_paths": args.case_sensitive})
    return settings


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def _resolve_workspace(value: Optional[str]) -> Path:
    return Path(value).resolve() if value else Path.cwd()


def _resolve_path(value: str, workspace: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = workspace / path
    return path.resolve()


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))
