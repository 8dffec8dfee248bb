"""Bundle resolution and build utilities."""

from .builder import BuildContext, BuildHooks, BuildReport, Bundler
from .collaborators import Collaborators, build_collaborators, command_collaborators, copy_collaborators
from .manifest import dump_manifest, dumps_manifest, load_manifest, loads_manifest

__all__ = [
    "BuildContext",
    "BuildHooks",
    "BuildReport",
    "Bundler",
    "Collaborators",
    "build_collaborators",
    "command_collaborators",
    "copy_collaborators",
    "dump_manifest",
    "dumps_manifest",
    "load_manifest",
    "loads_manifest",
]
