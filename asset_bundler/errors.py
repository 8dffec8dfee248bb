"""Exception hierarchy raised by the bundling engine."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple


class BundlerError(RuntimeError):
    """Base class for every failure raised by asset-bundler."""


class ArgumentError(BundlerError, ValueError):
    """Raised when a call receives an invalid argument."""


class NotFoundError(BundlerError):
    """Raised when a manifest or a declared source file does not exist."""

    def __init__(self, message: str, path: Optional[Path | str] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path else None


class ManifestError(BundlerError):
    """Raised when a manifest document cannot be parsed."""

    def __init__(self, message: str, path: Optional[Path | str] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path else None


class ManifestCycleError(BundlerError):
    """Raised when nested bundles reference each other in a loop."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = list(chain)
        super().__init__("Bundle manifests include each other: " + " -> ".join(self.chain))


class TransformError(BundlerError):
    """Raised when compiling or minifying an include fails."""

    def __init__(self, message: str, path: Path | str) -> None:
        super().__init__(f"{message} File: {path}")
        self.path = Path(path)


class ConcatenationError(BundlerError):
    """Raised when a bundle output cannot be assembled from its includes."""

    def __init__(self, message: str, output_path: Path | str, inputs: Iterable[Path | str]) -> None:
        self.output_path = Path(output_path)
        self.inputs = [Path(item) for item in inputs]
        files = ", ".join(f'"{item}"' for item in self.inputs)
        super().__init__(f"{message} OutputFile: {self.output_path}, Files: {files}")


class CommandFailedError(BundlerError):
    """Raised when an external compiler or minifier command exits non-zero."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"Command failed ({returncode}) {command}{detail}")


class BuildError(BundlerError):
    """Raised after a keep-going build when one or more manifests failed."""

    def __init__(self, failures: Sequence[Tuple[Path, BundlerError]]) -> None:
        self.failures: List[Tuple[Path, BundlerError]] = list(failures)
        lines = [f"{path}: {error}" for path, error in self.failures]
        super().__init__(f"{len(self.failures)} bundle(s) failed to build:\n" + "\n".join(lines))
