"""Configuration for bundler runs: YAML file plus environment overrides."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ArgumentError

DEFAULT_SETTINGS_FILE = "bundler.yaml"
ENV_PREFIX = "ASSET_BUNDLER_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class CommandSettings(BaseModel):
    """Shell command templates for the external compile/minify steps."""

    compile_less: Optional[str] = Field(default=None, description="e.g. 'lessc {input} {output}'")
    compile_template: Optional[str] = None
    minify_css: Optional[str] = None
    minify_js: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class BundlerSettings(BaseModel):
    backend: Literal["command", "copy"] = "command"
    case_sensitive_paths: Optional[bool] = Field(
        default=None,
        description="Path comparison mode; None picks the platform default.",
    )
    keep_going: bool = Field(default=False, description="Attempt every manifest before failing.")
    commands: CommandSettings = Field(default_factory=CommandSettings)

    model_config = ConfigDict(extra="forbid")

    def paths_case_sensitive(self) -> bool:
        if self.case_sensitive_paths is not None:
            return self.case_sensitive_paths
        return default_case_sensitive()


def default_case_sensitive(platform: Optional[str] = None) -> bool:
    """Windows and macOS filesystems are case-insensitive by default."""

    name = platform or sys.platform
    return not (name.startswith("win") or name == "darwin" or name == "cygwin")


def load_settings(
    path: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> BundlerSettings:
    """Load settings from ``path`` (if it exists) and apply environment overrides."""

    payload: Dict[str, Any] = {}
    if path is not None and path.exists():
        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ArgumentError(f"Settings file must contain a mapping: {path}")
        payload.update(loaded)

    _apply_env_overrides(payload, os.environ if env is None else env)

    try:
        return BundlerSettings.model_validate(payload)
    except ValidationError as exc:
        raise ArgumentError(f"Invalid bundler settings: {exc}") from exc


def _apply_env_overrides(payload: Dict[str, Any], env: Mapping[str, str]) -> None:
    backend = env.get(f"{ENV_PREFIX}BACKEND")
    if backend:
        payload["backend"] = backend.strip().lower()

    case_sensitive = env.get(f"{ENV_PREFIX}CASE_SENSITIVE")
    if case_sensitive:
        payload["case_sensitive_paths"] = _parse_bool(case_sensitive, "CASE_SENSITIVE")

    keep_going = env.get(f"{ENV_PREFIX}KEEP_GOING")
    if keep_going:
        payload["keep_going"] = _parse_bool(keep_going, "KEEP_GOING")

    commands = dict(payload.get("commands") or {})
    for field_name in CommandSettings.model_fields:
        value = env.get(f"{ENV_PREFIX}{field_name.upper()}")
        if value:
            commands[field_name] = value
    if commands:
        payload["commands"] = commands


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ArgumentError(f"{ENV_PREFIX}{name} must be a boolean (got '{value}')")
