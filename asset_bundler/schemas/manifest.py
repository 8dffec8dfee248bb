"""Pydantic models describing bundle manifests."""

from __future__ import annotations

import os
import re
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ArgumentError
from ..files import is_js_html, is_less, is_minified

INCLUDE_OUTPUT_PATTERN = re.compile(r"(?P<name>.+?)(?P<ext>\.(?:css|js))$", re.IGNORECASE | re.DOTALL)
BUNDLE_OUTPUT_PATTERN = re.compile(r"(?P<name>.+?)(?P<ext>\.(?:css|js))(?:\.bundle)$", re.IGNORECASE | re.DOTALL)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _native(path: str) -> str:
    return path.replace("\\", os.sep).replace("/", os.sep)


def _rooted(directory: str, path: str) -> str:
    native = _native(path)
    if os.path.isabs(native):
        return os.path.normpath(native)
    return os.path.normpath(os.path.join(directory, native))


class Include(BaseModel):
    """A source asset referenced by a manifest."""

    kind: Literal["include"] = "include"
    file: str = Field(..., description="Source path, relative to the manifest directory.")
    output_file: Optional[str] = Field(default=None, description="Explicit output path override.")

    model_config = ConfigDict(extra="forbid")

    @field_validator("file")
    @classmethod
    def _require_file(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Include file must not be empty.")
        return value.strip()

    @field_validator("output_file")
    @classmethod
    def _normalize_output(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    def get_output_file(self) -> str:
        """Return the output path as written in the manifest (not rooted).

        ``foo.css`` -> ``foo.min.css``, ``foo.less`` -> ``foo.min.css`` and
        ``foo.js.html`` -> ``foo.min.js``; names that are already minified pass
        through unchanged.
        """

        if self.output_file:
            return self.output_file
        name = self.file
        if is_minified(name):
            return name
        if is_less(name):
            name = name[: -len(".less")] + ".css"
        elif is_js_html(name):
            name = name[: -len(".js.html")] + ".js"
        return INCLUDE_OUTPUT_PATTERN.sub(r"\g<name>.min\g<ext>", name)

    def resolve_file(self, manifest_directory: str) -> str:
        return _rooted(manifest_directory, self.file)

    def resolve_output_file(self, manifest_directory: str) -> str:
        return _rooted(manifest_directory, self.get_output_file())


class BundleInclude(Include):
    """A manifest entry that pulls in every include of another manifest."""

    kind: Literal["bundle"] = "bundle"  # type: ignore[assignment]


class Bundle(BaseModel):
    """An ordered composition of includes, loaded from a manifest file."""

    file: Optional[str] = Field(default=None, description="Absolute path the manifest was loaded from.")
    output_file: Optional[str] = None
    includes: List[Union[BundleInclude, Include]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("output_file")
    @classmethod
    def _normalize_output(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    @property
    def directory(self) -> str:
        if not self.file:
            raise ArgumentError("Bundle has no source file; relative paths cannot be resolved.")
        return os.path.dirname(os.path.abspath(self.file))

    def get_output_file(self) -> str:
        """Return the absolute output path of the bundle.

        ``foo.css.bundle`` -> ``foo.min.css`` unless an explicit output file is
        set, in which case a relative value is rooted at the manifest directory.
        """

        directory = self.directory
        if self.output_file:
            return _rooted(directory, self.output_file)
        full = os.path.abspath(self.file or "")
        if not BUNDLE_OUTPUT_PATTERN.search(full):
            raise ArgumentError(
                f"Cannot derive an output file for bundle {full}; name it *.css.bundle or *.js.bundle "
                "or set OutputFile."
            )
        return BUNDLE_OUTPUT_PATTERN.sub(r"\g<name>.min\g<ext>", full)
