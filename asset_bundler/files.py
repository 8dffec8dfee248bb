"""Filename classification for bundle includes."""

from __future__ import annotations

import os
import re
from enum import Enum
from typing import Union

from .errors import ArgumentError

PathLike = Union[str, "os.PathLike[str]"]

_MINIFIED_PATTERN = re.compile(r"\.min\.[^.]+$", re.IGNORECASE)
_CSS_PATTERN = re.compile(r"\.css$", re.IGNORECASE)
_LESS_PATTERN = re.compile(r"\.less$", re.IGNORECASE)
_JAVASCRIPT_PATTERN = re.compile(r"\.js$", re.IGNORECASE)
_JS_HTML_PATTERN = re.compile(r"\.js\.html$", re.IGNORECASE)


class FileKind(str, Enum):
    CSS = "css"
    LESS = "less"
    JAVASCRIPT = "js"
    JS_HTML = "js.html"
    UNKNOWN = "unknown"


def _name(file: PathLike) -> str:
    if file is None:
        raise ArgumentError("file must not be None")
    name = os.fspath(file)
    if not name:
        raise ArgumentError("file must not be empty")
    return name


def is_minified(file: PathLike) -> bool:
    """Return True for names ending in ``.min.<ext>``."""

    return _MINIFIED_PATTERN.search(_name(file)) is not None


def is_css(file: PathLike) -> bool:
    return _CSS_PATTERN.search(_name(file)) is not None


def is_less(file: PathLike) -> bool:
    return _LESS_PATTERN.search(_name(file)) is not None


def is_javascript(file: PathLike) -> bool:
    return _JAVASCRIPT_PATTERN.search(_name(file)) is not None


def is_js_html(file: PathLike) -> bool:
    """Return True for HTML templates compiled to JavaScript (``*.js.html``)."""

    return _JS_HTML_PATTERN.search(_name(file)) is not None


def is_stylesheet(file: PathLike) -> bool:
    """CSS and LESS sources are the ones scanned for ``@import`` statements."""

    return is_css(file) or is_less(file)


def classify(file: PathLike) -> FileKind:
    if is_less(file):
        return FileKind.LESS
    if is_css(file):
        return FileKind.CSS
    if is_js_html(file):
        return FileKind.JS_HTML
    if is_javascript(file):
        return FileKind.JAVASCRIPT
    return FileKind.UNKNOWN
