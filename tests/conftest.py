from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from asset_bundler.bundle.builder import BuildHooks, Bundler
from asset_bundler.bundle.collaborators import Collaborators, copy_collaborators
from asset_bundler.settings import BundlerSettings

BASE_MTIME = 1_600_000_000

WriteFile = Callable[..., Path]


def _write_file(path: Path, content: str = "", mtime: Optional[int] = BASE_MTIME) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def write_file() -> WriteFile:
    """Write a file with a fixed modification time (seconds since the epoch)."""

    return _write_file


class RecordingCollaborators:
    """Copy backend that records every call."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str, str]] = []
        self._copy = copy_collaborators()

    def _step(self, name: str) -> Callable[[str, str], bool]:
        inner = getattr(self._copy, name)

        def _run(input_path: str, output_path: str) -> bool:
            self.calls.append((name, input_path, output_path))
            return bool(inner(input_path, output_path))

        return _run

    def table(self) -> Collaborators:
        return Collaborators(
            compile_less=self._step("compile_less"),
            compile_template=self._step("compile_template"),
            minify_css=self._step("minify_css"),
            minify_js=self._step("minify_js"),
        )


class EventLog:
    def __init__(self) -> None:
        self.missing: List[Tuple[str, str, str]] = []
        self.appended: List[Tuple[str, str]] = []

    def hooks(self) -> BuildHooks:
        return BuildHooks(
            on_missing_import=lambda file, import_file, statement: self.missing.append((file, import_file, statement)),
            on_file_appended=lambda output, file: self.appended.append((output, file)),
        )


@pytest.fixture
def recorder() -> RecordingCollaborators:
    return RecordingCollaborators()


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def bundler(recorder: RecordingCollaborators, events: EventLog) -> Bundler:
    settings = BundlerSettings(backend="copy", case_sensitive_paths=True)
    return Bundler(recorder.table(), settings=settings, hooks=events.hooks())
