"""Incremental bundling of CSS, LESS and JavaScript assets."""

__version__ = "0.1.0"
from .bundle.builder import BuildContext, BuildHooks, BuildReport, Bundler
from .bundle.collaborators import Collaborators, build_collaborators, command_collaborators, copy_collaborators
from .bundle.manifest import dump_manifest, load_manifest
from .errors import (
    ArgumentError,
    BuildError,
    BundlerError,
    CommandFailedError,
    ConcatenationError,
    ManifestCycleError,
    ManifestError,
    NotFoundError,
    TransformError,
)
from .schemas.manifest import Bundle, BundleInclude, Include
from .settings import BundlerSettings, CommandSettings, load_settings

__all__ = [
    "__version__",
    "ArgumentError",
    "BuildContext",
    "BuildError",
    "BuildHooks",
    "BuildReport",
    "Bundle",
    "BundleInclude",
    "Bundler",
    "BundlerError",
    "BundlerSettings",
    "Collaborators",
    "CommandFailedError",
    "CommandSettings",
    "ConcatenationError",
    "Include",
    "ManifestCycleError",
    "ManifestError",
    "NotFoundError",
    "TransformError",
    "build_collaborators",
    "command_collaborators",
    "copy_collaborators",
    "dump_manifest",
    "load_manifest",
    "load_settings",
]
