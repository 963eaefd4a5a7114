"""Bundle build engine contract and the default in-process engine.

The orchestration layer only talks to engines through :class:`BuildEngine`:
hand over an :class:`EngineRequest`, get back an :class:`EngineOutput` holding
the manifest, the archive entries and the raw messages. Deciding which of
those messages are fatal is not the engine's job.
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol

from osgibundle.classfile import ClassFormatError, ClassInfo, class_path, read_class
from osgibundle.errors import HostIOFailure
from osgibundle.manifest import (
    MANIFEST_PATH,
    MANIFEST_VERSION,
    Clause,
    HeaderSyntaxError,
    is_valid_header_name,
    is_valid_header_value,
    is_valid_version,
    parse_clause,
    render_manifest,
    split_clauses,
)

MessageLevel = Literal["error", "warning"]

SOURCES_PREFIX = "OSGI-OPT/src"
TOOL_NAME = "osgibundle"

CLAUSE_HEADERS = frozenset(
    {
        "Bundle-ClassPath",
        "Bundle-SymbolicName",
        "DynamicImport-Package",
        "Export-Package",
        "Fragment-Host",
        "Import-Package",
        "Private-Package",
        "Provide-Capability",
        "Require-Bundle",
        "Require-Capability",
    }
)

_SYSTEM_PACKAGE_PREFIX = "java."
# Headers whose value is rewritten from the expanded selectors.
_EXPANDED_HEADERS = frozenset({"Export-Package", "Import-Package"})


@dataclass(frozen=True, slots=True)
class EngineRequest:
    properties: Mapping[str, str]
    bundle_name: str
    classpath: tuple[Path, ...] = ()
    class_roots: tuple[Path, ...] = ()
    resource_roots: tuple[Path, ...] = ()
    source_roots: tuple[Path, ...] = ()
    embed_sources: bool = False
    trace: bool = False


@dataclass(frozen=True, slots=True)
class EngineMessage:
    kind: str
    level: MessageLevel
    text: str
    header: str | None = None


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    path: str
    content: bytes


@dataclass(frozen=True, slots=True)
class EngineOutput:
    manifest: bytes
    entries: tuple[ArchiveEntry, ...]
    messages: tuple[EngineMessage, ...] = ()
    trace: tuple[str, ...] = ()


class BuildEngine(Protocol):
    name: str

    def build(self, request: EngineRequest) -> EngineOutput:
        """Analyse inputs, synthesise the manifest and return archive content."""


@dataclass(slots=True)
class Builder:
    """Default engine: scans roots, reads class files, writes an OSGi manifest.

    One instance serves one build; it keeps the messages and trace of that
    build only.
    """

    name: str = "builder"
    _messages: list[EngineMessage] = field(init=False, default_factory=list, repr=False)
    _trace: list[str] = field(init=False, default_factory=list, repr=False)
    _tracing: bool = field(init=False, default=False, repr=False)

    def build(self, request: EngineRequest) -> EngineOutput:
        self._messages.clear()
        self._trace.clear()
        self._tracing = request.trace
        self._emit_trace("build")

        classpath_classes = self._index_classpath(request.classpath)

        content: dict[str, bytes] = {}
        for root in (*request.class_roots, *request.resource_roots):
            self._emit_trace(f"include {root}")
            for rel, data in _read_tree(root, operation="read_bundle_content"):
                if rel == MANIFEST_PATH:
                    continue
                if rel in content:
                    self._warning(
                        "duplicate-entry",
                        f"Duplicate entry {rel} in {root}; keeping the first one",
                    )
                    continue
                content[rel] = data
        if not content:
            self._warning(
                "empty-bundle",
                f"The JAR is empty: the instructions for {request.bundle_name} "
                "did not cause any content to be included",
            )

        self._emit_trace("analyze")
        classes = self._analyze(content)
        bundle_packages = {info.package for info in classes.values() if info.package}
        referenced = set().union(*(info.referenced_packages for info in classes.values()))
        external = sorted(
            pkg
            for pkg in referenced - bundle_packages
            if not pkg.startswith(_SYSTEM_PACKAGE_PREFIX)
        )
        self._emit_trace(f"bundle packages {sorted(bundle_packages)}")

        headers = self._headers(request.properties)
        clauses = self._parse_clause_headers(headers)
        manifest_headers = self._synthesise(
            request=request,
            headers=headers,
            clauses=clauses,
            bundle_packages=bundle_packages,
            external_packages=external,
            available=set(content) | classpath_classes,
        )

        entries: dict[str, bytes] = dict(content)
        if request.embed_sources:
            for root in request.source_roots:
                for rel, data in _read_tree(root, operation="read_sources"):
                    entry = f"{SOURCES_PREFIX}/{rel}"
                    if entry in entries:
                        continue
                    self._emit_trace(f"source {entry}")
                    entries[entry] = data

        self._emit_trace("manifest")
        manifest = render_manifest(manifest_headers)
        ordered = [ArchiveEntry(MANIFEST_PATH, manifest)]
        ordered.extend(ArchiveEntry(path, entries[path]) for path in sorted(entries))
        self._emit_trace("end build")
        return EngineOutput(
            manifest=manifest,
            entries=tuple(ordered),
            messages=tuple(self._messages),
            trace=tuple(self._trace),
        )

    # ── Inputs ──────────────────────────────────────────────────────

    def _index_classpath(self, classpath: Iterable[Path]) -> set[str]:
        found: set[str] = set()
        for entry in classpath:
            self._emit_trace(f"classpath {entry}")
            if entry.is_dir():
                found.update(rel for rel, _ in _walk(entry) if rel.endswith(".class"))
            elif entry.is_file():
                try:
                    with zipfile.ZipFile(entry) as archive:
                        found.update(
                            name for name in archive.namelist() if name.endswith(".class")
                        )
                except (zipfile.BadZipFile, OSError) as exc:
                    self._warning(
                        "invalid-classpath-entry",
                        f"Cannot read classpath entry {entry}: {exc}",
                    )
            else:
                self._warning(
                    "classpath-entry-missing",
                    f"Classpath entry does not exist: {entry}",
                )
        return found

    def _analyze(self, content: Mapping[str, bytes]) -> dict[str, ClassInfo]:
        classes: dict[str, ClassInfo] = {}
        for rel, data in content.items():
            if not rel.endswith(".class"):
                continue
            try:
                classes[rel] = read_class(data)
            except ClassFormatError as exc:
                self._warning("invalid-class-file", f"Invalid class file {rel}: {exc}")
        return classes

    def _headers(self, properties: Mapping[str, str]) -> dict[str, str]:
        headers: dict[str, str] = {}
        for key, value in properties.items():
            # Directives and lower-case properties never become headers.
            if not key[:1].isascii() or not key[:1].isupper():
                continue
            if not is_valid_header_name(key):
                self._error(
                    "invalid-header-name",
                    f"Invalid manifest header name: {key!r}",
                    header=key,
                )
                continue
            if not is_valid_header_value(value):
                self._error(
                    "invalid-header-value",
                    f"Line break or NUL in value of manifest header {key}: {value!r}",
                    header=key,
                )
                continue
            headers[key] = value
        return headers

    def _parse_clause_headers(self, headers: dict[str, str]) -> dict[str, list[Clause]]:
        parsed: dict[str, list[Clause]] = {}
        for name in sorted(CLAUSE_HEADERS & set(headers)):
            try:
                raw_clauses = split_clauses(headers[name])
                clauses: list[Clause] = []
                for raw in raw_clauses:
                    if not raw:
                        self._warning("empty-clause", f"Empty clause in {name}", header=name)
                        continue
                    clauses.append(parse_clause(raw))
            except HeaderSyntaxError as exc:
                self._error("malformed-header", f"Malformed {name} header: {exc}", header=name)
                del headers[name]
                continue
            parsed[name] = clauses
        return parsed

    # ── Manifest synthesis ──────────────────────────────────────────

    def _synthesise(
        self,
        *,
        request: EngineRequest,
        headers: dict[str, str],
        clauses: Mapping[str, list[Clause]],
        bundle_packages: set[str],
        external_packages: list[str],
        available: set[str],
    ) -> dict[str, str]:
        computed: dict[str, str] = {"Bundle-ManifestVersion": "2", "Tool": TOOL_NAME}

        symbolic = clauses.get("Bundle-SymbolicName")
        if symbolic is None and "Bundle-SymbolicName" not in headers:
            computed["Bundle-SymbolicName"] = request.bundle_name
        elif symbolic is not None and not _valid_symbolic_name(symbolic):
            self._error(
                "invalid-symbolic-name",
                f"Invalid Bundle-SymbolicName: {headers['Bundle-SymbolicName']!r}",
                header="Bundle-SymbolicName",
            )

        version = headers.get("Bundle-Version")
        if version is not None and not is_valid_version(version):
            self._error(
                "invalid-version",
                f"Invalid value for Bundle-Version: {version!r}",
                header="Bundle-Version",
            )

        if "Export-Package" in clauses:
            exported, unused = expand_selectors(clauses["Export-Package"], bundle_packages)
            if unused:
                self._warning(
                    "unused-export",
                    f"Unused Export-Package instructions: {unused}",
                    header="Export-Package",
                )
            computed["Export-Package"] = ",".join(exported)
            exported_names = {item.split(";", 1)[0] for item in exported}
        else:
            exported_names = set(bundle_packages)
            computed["Export-Package"] = ",".join(sorted(bundle_packages))
        self._emit_trace(f"exports {sorted(exported_names)}")

        if "Private-Package" in clauses:
            _, unused = expand_selectors(clauses["Private-Package"], bundle_packages)
            if unused:
                self._warning(
                    "unused-private",
                    f"Unused Private-Package instructions, no such package(s) on the "
                    f"class path: {unused}",
                    header="Private-Package",
                )
        else:
            private = sorted(bundle_packages - exported_names)
            computed["Private-Package"] = ",".join(private)

        import_clauses = clauses.get("Import-Package", [Clause(names=("*",))])
        imported, _ = expand_selectors(import_clauses, external_packages, keep_literals=True)
        computed["Import-Package"] = ",".join(imported)
        self._emit_trace(f"imports {imported}")

        activator = headers.get("Bundle-Activator", "").strip()
        if activator and class_path(activator) not in available:
            self._error(
                "activator-not-found",
                "Bundle-Activator not found on the bundle class path nor in imports: "
                f"{activator}",
                header="Bundle-Activator",
            )

        merged = dict(computed)
        for name, value in headers.items():
            if name in _EXPANDED_HEADERS and name in clauses:
                continue
            merged[name] = value
        manifest_version = merged.pop(MANIFEST_VERSION, "1.0")
        ordered = {MANIFEST_VERSION: manifest_version}
        for name in sorted(merged):
            if merged[name] != "":
                ordered[name] = merged[name]
        return ordered

    # ── Messages ────────────────────────────────────────────────────

    def _error(self, kind: str, text: str, *, header: str | None = None) -> None:
        self._messages.append(EngineMessage(kind=kind, level="error", text=text, header=header))

    def _warning(self, kind: str, text: str, *, header: str | None = None) -> None:
        self._messages.append(EngineMessage(kind=kind, level="warning", text=text, header=header))

    def _emit_trace(self, line: str) -> None:
        if self._tracing:
            self._trace.append(line)


def expand_selectors(
    clauses: Iterable[Clause],
    packages: Iterable[str],
    *,
    keep_literals: bool = False,
) -> tuple[list[str], list[str]]:
    """Expand package selectors (``a.b``, ``a.b.*``, ``*``, ``!a.b``) against packages.

    Returns the rendered clauses and the literal selectors that matched
    nothing. With ``keep_literals`` unmatched literal names are rendered
    as-is instead of being reported.
    """
    candidates = sorted(set(packages))
    taken: set[str] = set()
    rendered: list[str] = []
    unused: list[str] = []
    for clause in clauses:
        for name in clause.names:
            negated = name.startswith("!")
            pattern = name[1:] if negated else name
            matched = [pkg for pkg in candidates if pkg not in taken and _matches(pattern, pkg)]
            taken.update(matched)
            if negated:
                continue
            if not matched and not _is_wildcard(pattern):
                if pattern in taken:
                    continue
                if keep_literals:
                    taken.add(pattern)
                    rendered.append(clause.render(pattern))
                else:
                    unused.append(pattern)
                continue
            if not matched and not keep_literals:
                unused.append(pattern)
            rendered.extend(clause.render(pkg) for pkg in matched)
    return rendered, unused


def _is_wildcard(pattern: str) -> bool:
    return pattern == "*" or pattern.endswith(".*")


def _matches(pattern: str, package: str) -> bool:
    if pattern == "*":
        return True
    if pattern.endswith(".*"):
        prefix = pattern[:-2]
        return package == prefix or package.startswith(prefix + ".")
    return package == pattern


def _valid_symbolic_name(clauses: list[Clause]) -> bool:
    if len(clauses) != 1 or len(clauses[0].names) != 1:
        return False
    tokens = clauses[0].names[0].split(".")
    return all(token and all(c.isalnum() or c in "_-" for c in token) for token in tokens)


def _walk(root: Path) -> Iterator[tuple[str, Path]]:
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path.relative_to(root).as_posix(), path


def _read_tree(root: Path, *, operation: str) -> Iterator[tuple[str, bytes]]:
    """Yield ``(relative path, bytes)`` for every file below ``root``.

    A root that does not exist contributes nothing.
    """
    if not root.exists():
        return
    if not root.is_dir():
        raise HostIOFailure(
            "Build root is not a directory.",
            hint="Point class, resource and source roots at directories.",
            context={"operation": operation, "path": str(root)},
        )
    for rel, path in _walk(root):
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise HostIOFailure(
                "Failed to read build input.",
                hint=str(exc),
                context={"operation": operation, "path": str(path)},
            ) from exc
        yield rel, data
