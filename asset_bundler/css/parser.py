"""``@import`` resolution and relative path rewriting for stylesheets."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Set

from ..errors import ArgumentError, TransformError

logger = logging.getLogger(__name__)

# @import "foo.css";  @import 'foo.css';  @import url("foo.css");
IMPORT_PATTERN = re.compile(
    r"""@import\s*(url\()?["'](?P<file>[^"'\n]+)["']\)?;""",
    re.IGNORECASE | re.DOTALL,
)

# url(...) with any quoting, or a bare quoted literal. Absolute urls, root-relative
# paths, data uris and fragment references are never matched.
PATH_PATTERN = re.compile(
    r"""(?P<pre>(?P<url>url\(["']?)|["'])(?!https?://|/|data:|\#)(?P<path>[^"'\n)]*)(?P<post>["']|\))""",
    re.IGNORECASE | re.DOTALL,
)

_SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*:", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class CssImport:
    """One ``@import`` statement found in a stylesheet."""

    import_file: str
    path: str
    statement: str
    file: str


MissingImportCallback = Callable[[CssImport], None]


def _native(token: str) -> str:
    return token.replace("\\", os.sep).replace("/", os.sep)


def _resolve_import(token: str, directory: str) -> Optional[str]:
    """Return the absolute path for a relative import token, None for urls and rooted paths."""

    if _SCHEME_PATTERN.match(token) or token.startswith(("/", "\\")):
        return None
    return os.path.normpath(os.path.join(directory, _native(token)))


def _read(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise TransformError(f"Unable to read stylesheet: {exc}.", path) from exc


def _require_file(file: object) -> str:
    if file is None:
        raise ArgumentError("file must not be None")
    name = os.fspath(file)  # type: ignore[arg-type]
    if not name:
        raise ArgumentError("file must not be empty")
    return name


def parse_imports(
    css: str,
    origin_file: str | os.PathLike[str],
    on_missing: Optional[MissingImportCallback] = None,
) -> List[CssImport]:
    """Return the transitive imports of ``css`` in depth-first, pre-order.

    Paths are resolved against the directory of ``origin_file``. Imports whose
    target does not exist are passed to ``on_missing`` and left out of the
    result; nothing below them is visited.
    """

    origin = os.path.abspath(_require_file(origin_file))
    imports: List[CssImport] = []
    _collect_imports(css, origin, imports, on_missing, {os.path.normcase(origin)})
    return imports


def _collect_imports(
    css: str,
    origin: str,
    imports: List[CssImport],
    on_missing: Optional[MissingImportCallback],
    active: Set[str],
) -> None:
    directory = os.path.dirname(origin)
    for match in IMPORT_PATTERN.finditer(css):
        token = match.group("file")
        target = _resolve_import(token, directory)
        if target is None:
            continue
        entry = CssImport(import_file=token, path=target, statement=match.group(0), file=origin)
        if not os.path.isfile(target):
            if on_missing is not None:
                on_missing(entry)
            continue
        imports.append(entry)
        key = os.path.normcase(target)
        if key in active:
            logger.warning("Circular @import of %s from %s; not descending again.", target, origin)
            continue
        active.add(key)
        try:
            _collect_imports(_read(target), target, imports, on_missing, active)
        finally:
            active.discard(key)


def get_file_imports(
    file: str | os.PathLike[str],
    on_missing: Optional[MissingImportCallback] = None,
) -> List[str]:
    """Return the absolute paths of every file ``file`` imports, recursively."""

    name = _require_file(file)
    return [entry.path for entry in parse_imports(_read(name), name, on_missing)]


def get_expanded_css(
    file: str | os.PathLike[str],
    on_missing: Optional[MissingImportCallback] = None,
) -> str:
    """Return the css of ``file`` with every resolvable ``@import`` inlined."""

    origin = os.path.abspath(_require_file(file))
    return _expand(origin, on_missing, {os.path.normcase(origin)})


def _expand(origin: str, on_missing: Optional[MissingImportCallback], active: Set[str]) -> str:
    directory = os.path.dirname(origin)

    def _inline(match: re.Match[str]) -> str:
        token = match.group("file")
        target = _resolve_import(token, directory)
        if target is None:
            return match.group(0)
        if not os.path.isfile(target):
            if on_missing is not None:
                on_missing(CssImport(import_file=token, path=target, statement=match.group(0), file=origin))
            return match.group(0)
        key = os.path.normcase(target)
        if key in active:
            logger.warning("Circular @import of %s from %s; leaving statement in place.", target, origin)
            return match.group(0)
        active.add(key)
        try:
            imported = _expand(target, on_missing, active)
        finally:
            active.discard(key)
        target_directory = os.path.dirname(target)
        if os.path.normcase(target_directory) != os.path.normcase(directory):
            imported = rewrite_relative_paths(imported, target_directory, directory)
        return imported

    return IMPORT_PATTERN.sub(_inline, _read(origin))


def extract_relative_paths(css: str) -> List[str]:
    """Return every relative path token found in ``url(...)`` or a quoted literal."""

    return [match.group("path") for match in PATH_PATTERN.finditer(css) if match.group("path")]


def rewrite_relative_paths(
    css: str,
    source_directory: str | os.PathLike[str],
    target_directory: str | os.PathLike[str],
) -> str:
    """Re-express relative paths in ``css`` so they resolve from ``target_directory``.

    Tokens are resolved against ``source_directory``. Only tokens wrapped in
    ``url(...)`` or naming a file that exists are rewritten; other string
    literals (font names, content strings) pass through untouched.
    """

    source_full = os.path.abspath(_require_file(source_directory))
    target_full = os.path.abspath(_require_file(target_directory))

    def _rewrite(match: re.Match[str]) -> str:
        token = match.group("path")
        if not token:
            return match.group(0)
        source_file = os.path.normpath(os.path.join(source_full, _native(token)))
        if match.group("url") is None and not os.path.isfile(source_file):
            return match.group(0)
        return match.group("pre") + _relative_uri(source_file, target_full) + match.group("post")

    return PATH_PATTERN.sub(_rewrite, css)


def _relative_uri(path: str, start: str) -> str:
    try:
        relative = os.path.relpath(path, start)
    except ValueError:
        # different drives; only an absolute reference can reach the file
        return Path(path).as_uri()
    return relative.replace(os.sep, "/")
