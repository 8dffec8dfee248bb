"""Bundle resolution and incremental build orchestration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

from ..css.parser import CssImport, get_expanded_css, get_file_imports, rewrite_relative_paths
from ..errors import (
    BuildError,
    BundlerError,
    ConcatenationError,
    ManifestCycleError,
    NotFoundError,
    TransformError,
)
from ..files import FileKind, classify, is_css, is_javascript, is_stylesheet
from ..schemas.manifest import Bundle, BundleInclude, Include
from ..settings import BundlerSettings
from .collaborators import CollaboratorFn, Collaborators
from .manifest import load_manifest
from .utils import is_stale, last_modified, newest_modified, pin_modified_time, write_text

logger = logging.getLogger(__name__)

ManifestPaths = Union[str, Path, Sequence[Union[str, Path]]]
MissingImportHook = Callable[[str, str, str], None]
FileAppendedHook = Callable[[str, str], None]


def _log_missing_import(file: str, import_file: str, statement: str) -> None:
    logger.warning("An import file could not be found. File: %s, Import: %s, Statement: %s", file, import_file, statement)


def _log_file_appended(output_file: str, file: str) -> None:
    logger.debug("Appended %s to %s", file, output_file)


@dataclass(slots=True)
class BuildHooks:
    """Notification sink for build events; used for logging and dependency tracking."""

    on_missing_import: MissingImportHook = _log_missing_import
    on_file_appended: FileAppendedHook = _log_file_appended


@dataclass(slots=True)
class IncludeState:
    include: Include
    file: Path
    output_file: Path
    imports: List[Path]
    transformed: bool = False


@dataclass(slots=True)
class BundleState:
    bundle: Bundle
    file: Path
    includes: List[IncludeState]
    transformed: bool = False
    bundled: bool = False

    @property
    def output_file(self) -> Path:
        return Path(self.bundle.get_output_file())


@dataclass(slots=True)
class BuildContext:
    """Caches and notification sink for one resolve/build call."""

    case_sensitive: bool
    hooks: BuildHooks = field(default_factory=BuildHooks)
    bundles: Dict[str, BundleState] = field(default_factory=dict)
    includes: Dict[str, IncludeState] = field(default_factory=dict)
    resolving: List[str] = field(default_factory=list)
    reported_missing: Set[Tuple[str, str]] = field(default_factory=set)
    written: List[Path] = field(default_factory=list)

    def key(self, path: Union[str, Path]) -> str:
        text = os.fspath(path)
        return text if self.case_sensitive else text.casefold()

    def report_missing(self, entry: CssImport) -> None:
        # one report per missing target and statement, whichever file repeats it
        marker = (self.key(entry.path), entry.statement)
        if marker in self.reported_missing:
            return
        self.reported_missing.add(marker)
        self.hooks.on_missing_import(entry.file, entry.path, entry.statement)


@dataclass(slots=True)
class BuildReport:
    """Outcome of :meth:`Bundler.build`."""

    bundles: List[Path] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    failures: List[Tuple[Path, BundlerError]] = field(default_factory=list)


class Bundler:
    """Transforms and combines LESS, CSS, JavaScript and JS template includes."""

    def __init__(
        self,
        collaborators: Collaborators,
        *,
        settings: Optional[BundlerSettings] = None,
        hooks: Optional[BuildHooks] = None,
    ) -> None:
        self.collaborators = collaborators
        self.settings = settings or BundlerSettings()
        self.hooks = hooks

    def new_context(self, hooks: Optional[BuildHooks] = None) -> BuildContext:
        return BuildContext(
            case_sensitive=self.settings.paths_case_sensitive(),
            hooks=hooks or self.hooks or BuildHooks(),
        )

    # -- public operations -------------------------------------------------

    def resolve(self, manifest_path: Union[str, Path], *, context: Optional[BuildContext] = None) -> List[str]:
        """Return the absolute source paths of a manifest, nested bundles flattened."""

        ctx = context or self.new_context()
        state = self._bundle_state(manifest_path, ctx)
        return [str(include.file) for include in state.includes]

    def get_import_files(self, manifest_path: Union[str, Path], *, context: Optional[BuildContext] = None) -> List[str]:
        """Return every distinct file pulled in through ``@import`` by the manifest's includes."""

        ctx = context or self.new_context()
        state = self._bundle_state(manifest_path, ctx)
        seen: Set[str] = set()
        files: List[str] = []
        for include in state.includes:
            for path in include.imports:
                key = ctx.key(path)
                if key not in seen:
                    seen.add(key)
                    files.append(str(path))
        return files

    def build(
        self,
        manifest_paths: ManifestPaths,
        *,
        context: Optional[BuildContext] = None,
        keep_going: Optional[bool] = None,
    ) -> BuildReport:
        """Bring the outputs of one or more manifests up to date.

        By default the first failing manifest aborts the call. With
        ``keep_going`` every manifest is attempted and a :class:`BuildError`
        listing all failures is raised at the end.
        """

        paths = [manifest_paths] if isinstance(manifest_paths, (str, Path)) else list(manifest_paths)
        ctx = context or self.new_context()
        keep_going = self.settings.keep_going if keep_going is None else keep_going
        report = BuildReport()

        for path in paths:
            try:
                state = self._bundle_state(path, ctx)
                self._bundle(state, ctx)
                if state.includes:
                    report.bundles.append(state.output_file)
            except BundlerError as exc:
                if not keep_going:
                    raise
                logger.error("Bundle %s failed: %s", path, exc)
                report.failures.append((Path(path), exc))

        report.written = list(ctx.written)
        if report.failures:
            raise BuildError(report.failures)
        return report

    # -- resolution --------------------------------------------------------

    def _bundle_state(self, manifest_path: Union[str, Path], ctx: BuildContext) -> BundleState:
        if manifest_path is None or not os.fspath(manifest_path):
            raise NotFoundError("Bundle file path is empty.")
        full = os.path.abspath(os.fspath(manifest_path))
        key = ctx.key(full)
        state = ctx.bundles.get(key)
        if state is not None:
            return state
        if key in ctx.resolving:
            start = ctx.resolving.index(key)
            raise ManifestCycleError([*ctx.resolving[start:], key])

        ctx.resolving.append(key)
        try:
            bundle = load_manifest(full)
            state = BundleState(bundle=bundle, file=Path(full), includes=self._include_states(bundle, ctx))
        finally:
            ctx.resolving.pop()
        ctx.bundles[key] = state
        return state

    def _include_states(self, bundle: Bundle, ctx: BuildContext) -> List[IncludeState]:
        directory = bundle.directory
        ordered: Dict[str, IncludeState] = {}
        for include in bundle.includes:
            if isinstance(include, BundleInclude):
                nested = self._bundle_state(include.resolve_file(directory), ctx)
                for nested_include in nested.includes:
                    ordered.setdefault(ctx.key(nested_include.file), nested_include)
                continue

            file = include.resolve_file(directory)
            key = ctx.key(file)
            if key in ordered:
                continue
            state = ctx.includes.get(key)
            if state is None:
                state = self._create_include_state(include, directory, ctx)
                ctx.includes[key] = state
            ordered[key] = state
        return list(ordered.values())

    def _create_include_state(self, include: Include, directory: str, ctx: BuildContext) -> IncludeState:
        file = Path(include.resolve_file(directory))
        imports: List[Path] = []
        if is_stylesheet(file) and file.is_file():
            seen: Set[str] = set()
            try:
                found = get_file_imports(file, ctx.report_missing)
            except TransformError as exc:
                raise TransformError(f"Unable to scan imports: {exc}", file) from exc
            for path in found:
                key = ctx.key(path)
                if key not in seen:
                    seen.add(key)
                    imports.append(Path(path))
        return IncludeState(
            include=include,
            file=file,
            output_file=Path(include.resolve_output_file(directory)),
            imports=imports,
        )

    # -- transforms --------------------------------------------------------

    def _bundle(self, state: BundleState, ctx: BuildContext) -> None:
        if state.bundled:
            return
        logger.info("Ensuring the bundle %s is up-to-date.", state.file)
        for include in state.includes:
            self._transform_include(include, ctx)
        self._transform_bundle(state, ctx)
        state.bundled = True

    def _transform_include(self, include: IncludeState, ctx: BuildContext) -> None:
        if include.transformed:
            return
        if not include.file.is_file():
            raise NotFoundError(f"Include file does not exist: {include.file}", include.file)

        logger.debug("Ensuring the include %s is up-to-date.", include.file)
        try:
            input_max = newest_modified([include.file, *(path for path in include.imports if path.exists())])
        except OSError as exc:
            raise TransformError(f"Unable to read modification times: {exc}", include.file) from exc

        compiled = include.file
        kind = classify(include.file)
        if kind in (FileKind.LESS, FileKind.JS_HTML):
            compiled = compiled_sibling(include.file)
            if is_stale(compiled, input_max):
                logger.info("The output %s for %s does not exist or is out-of-date.", compiled, include.file)
                compiler = (
                    self.collaborators.compile_less if kind is FileKind.LESS else self.collaborators.compile_template
                )
                self._invoke(compiler, include.file, compiled, include.file)
                self._pin(compiled, input_max, include.file, ctx)

        output = include.output_file
        if _same_file(output, compiled, ctx):
            # already-minified include; it is its own output
            include.transformed = True
            return

        threshold = max(input_max, last_modified(compiled))
        if is_stale(output, threshold):
            logger.info("The minified output %s for %s does not exist or is out-of-date.", output, compiled)
            if is_css(compiled):
                minifier = self.collaborators.minify_css
            elif is_javascript(compiled):
                minifier = self.collaborators.minify_js
            else:
                raise TransformError("Transformation of this file type is not supported.", include.file)
            self._invoke(minifier, compiled, output, include.file)
            self._pin(output, threshold, include.file, ctx)

        include.transformed = True

    def _transform_bundle(self, state: BundleState, ctx: BuildContext) -> None:
        if state.transformed:
            return
        if not state.includes:
            state.transformed = True
            return

        outputs = [include.output_file for include in state.includes]
        output_file = state.output_file
        try:
            input_max = newest_modified(outputs)
        except OSError as exc:
            raise ConcatenationError(f"Include output missing: {exc}.", output_file, outputs) from exc

        if is_stale(output_file, input_max):
            logger.info("The output %s for bundle %s does not exist or is out-of-date.", output_file, state.file)
            self._concat(state, output_file, ctx)
            try:
                pin_modified_time(output_file, input_max)
            except OSError as exc:
                raise ConcatenationError(
                    f"Unable to set modification time of {output_file}: {exc}.", output_file, outputs
                ) from exc
            ctx.written.append(output_file)
        else:
            logger.debug("The output %s for bundle %s is up-to-date.", output_file, state.file)

        state.transformed = True

    def _concat(self, state: BundleState, output_file: Path, ctx: BuildContext) -> None:
        inputs = [include.output_file for include in state.includes]
        parts: List[str] = []
        appended: List[Path] = []
        try:
            for path in inputs:
                parts.append(self._read_for_bundle(path, output_file, ctx))
                appended.append(path)
            write_text(output_file, "".join(parts), newline="")
        except (OSError, UnicodeDecodeError, BundlerError) as exc:
            raise ConcatenationError(f"Failed to create bundle output: {exc}.", output_file, inputs) from exc

        for path in appended:
            ctx.hooks.on_file_appended(str(output_file), str(path))

    def _read_for_bundle(self, path: Path, output_file: Path, ctx: BuildContext) -> str:
        if is_stylesheet(path):
            css = get_expanded_css(path, ctx.report_missing)
            return rewrite_relative_paths(css, path.parent, output_file.parent)
        with path.open("r", encoding="utf-8-sig", newline="") as handle:
            return handle.read()

    def _invoke(self, step: CollaboratorFn, input_path: Path, output_path: Path, include_file: Path) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            result = step(str(input_path), str(output_path))
        except Exception as exc:
            raise TransformError(f"Transform of {input_path} to {output_path} failed: {exc}.", include_file) from exc
        if result is False:
            raise TransformError(f"Transform of {input_path} to {output_path} reported failure.", include_file)
        if not output_path.exists():
            raise TransformError(f"Transform of {input_path} did not produce {output_path}.", include_file)

    def _pin(self, path: Path, mtime_ns: int, include_file: Path, ctx: BuildContext) -> None:
        try:
            pin_modified_time(path, mtime_ns)
        except OSError as exc:
            raise TransformError(f"Unable to set modification time of {path}: {exc}", include_file) from exc
        ctx.written.append(path)
        logger.info("The output %s for %s has been updated.", path, include_file)


def compiled_sibling(path: Path) -> Path:
    """``foo.less`` compiles to ``foo.less.css``; ``foo.js.html`` to ``foo.js.html.js``."""

    kind = classify(path)
    if kind is FileKind.LESS:
        return path.with_name(path.name + ".css")
    if kind is FileKind.JS_HTML:
        return path.with_name(path.name + ".js")
    return path


def _same_file(left: Path, right: Path, ctx: BuildContext) -> bool:
    return ctx.key(os.path.normpath(left)) == ctx.key(os.path.normpath(right))
