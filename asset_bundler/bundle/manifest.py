"""Manifest helpers: read and write ``*.bundle`` XML documents."""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from ..errors import ManifestError, NotFoundError
from ..schemas.manifest import Bundle, BundleInclude, Include

ROOT_TAG = "Bundle"
INCLUDE_TAG = "Include"
BUNDLE_TAG = "Bundle"
OUTPUT_TAG = "OutputFile"
FILE_ATTRIBUTE = "File"


def load_manifest(path: Union[str, Path, None]) -> Bundle:
    """Load a manifest from disk and remember where it came from."""

    if path is None or not os.fspath(path):
        raise NotFoundError("Bundle file path is empty.")
    manifest_path = Path(os.path.abspath(os.fspath(path)))
    if not manifest_path.is_file():
        raise NotFoundError(f"Bundle file does not exist: {manifest_path}", manifest_path)

    bundle = loads_manifest(manifest_path.read_text(encoding="utf-8-sig"), source=manifest_path)
    return bundle.model_copy(update={"file": str(manifest_path)})


def dump_manifest(bundle: Bundle, path: Path) -> Path:
    """Write a manifest to disk and return the path."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_manifest(bundle), encoding="utf-8")
    return path


def loads_manifest(text: str, *, source: Optional[Path] = None) -> Bundle:
    """Parse manifest XML into a :class:`Bundle`."""

    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ManifestError(f"Bundle file is not valid XML: {exc}", source) from exc

    if _local(root.tag) != ROOT_TAG:
        raise ManifestError(f"Expected <{ROOT_TAG}> root element, found <{_local(root.tag)}>.", source)

    output_file: Optional[str] = None
    includes: List[Include] = []
    for child in root:
        tag = _local(child.tag)
        if tag == OUTPUT_TAG:
            output_file = child.text
        elif tag in (INCLUDE_TAG, BUNDLE_TAG):
            includes.append(_parse_include(child, tag, source))
        else:
            raise ManifestError(f"Unexpected <{tag}> element in bundle.", source)

    try:
        return Bundle(output_file=output_file, includes=includes)
    except ValidationError as exc:
        raise ManifestError(f"Invalid bundle: {exc}", source) from exc


def dumps_manifest(bundle: Bundle) -> str:
    """Serialize a :class:`Bundle` to manifest XML."""

    root = ET.Element(ROOT_TAG)
    if bundle.output_file:
        ET.SubElement(root, OUTPUT_TAG).text = bundle.output_file
    for include in bundle.includes:
        tag = BUNDLE_TAG if isinstance(include, BundleInclude) else INCLUDE_TAG
        element = ET.SubElement(root, tag, {FILE_ATTRIBUTE: include.file})
        if include.output_file:
            ET.SubElement(element, OUTPUT_TAG).text = include.output_file
    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return '<?xml version="1.0" encoding="utf-8"?>\n' + body + "\n"


def _parse_include(element: ET.Element, tag: str, source: Optional[Path]) -> Include:
    file = _attribute(element, FILE_ATTRIBUTE)
    output_file: Optional[str] = None
    for child in element:
        if _local(child.tag) == OUTPUT_TAG:
            output_file = child.text
    model = BundleInclude if tag == BUNDLE_TAG else Include
    try:
        return model(file=file or "", output_file=output_file)
    except ValidationError as exc:
        raise ManifestError(f"Invalid <{tag}> entry: {exc}", source) from exc


def _attribute(element: ET.Element, name: str) -> Optional[str]:
    for key, value in element.attrib.items():
        if _local(key) == name:
            return value
    return None


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]
