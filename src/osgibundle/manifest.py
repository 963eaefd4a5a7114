"""JAR manifest codec and OSGi header clause parsing."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

MANIFEST_PATH = "META-INF/MANIFEST.MF"
MANIFEST_VERSION = "Manifest-Version"
MAX_LINE_BYTES = 72
MAX_HEADER_NAME_BYTES = 70
LINE_END = "\r\n"

_HEADER_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
_VERSION_RE = re.compile(r"^\d+(\.\d+(\.\d+(\.[A-Za-z0-9_-]+)?)?)?$")
_MAVEN_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+)(?:\.(\d+))?)?(?:[.\-_]?(.*))?$")
_QUALIFIER_JUNK_RE = re.compile(r"[^A-Za-z0-9_-]")
_FORBIDDEN_VALUE_CHARS = frozenset("\r\n\0")


class HeaderSyntaxError(ValueError):
    """Raised when a header value cannot be parsed or rendered."""


def is_valid_header_name(name: str) -> bool:
    return (
        bool(_HEADER_NAME_RE.match(name))
        and len(name.encode("utf-8")) <= MAX_HEADER_NAME_BYTES
    )


def is_valid_header_value(value: str) -> bool:
    """A value must stay on its logical line: no CR, LF or NUL."""
    return not _FORBIDDEN_VALUE_CHARS.intersection(value)


def is_valid_version(value: str) -> bool:
    return bool(_VERSION_RE.match(value.strip()))


def cleanup_version(value: str | None) -> str | None:
    """Turn a build-tool version such as ``1.0.2-SNAPSHOT`` into an OSGi version.

    Returns ``None`` when nothing numeric can be recovered (``unspecified``).
    """
    if value is None:
        return None
    candidate = value.strip()
    if is_valid_version(candidate):
        return candidate
    match = _MAVEN_VERSION_RE.match(candidate)
    if match is None:
        return None
    major, minor, micro, qualifier = match.groups()
    version = f"{int(major)}.{int(minor or 0)}.{int(micro or 0)}"
    if qualifier:
        version = f"{version}.{_QUALIFIER_JUNK_RE.sub('_', qualifier)}"
    return version


# ── Manifest rendering / parsing ────────────────────────────────────


def render_manifest(headers: Mapping[str, str]) -> bytes:
    """Render the main section; ``Manifest-Version`` always comes first."""
    lines: list[str] = []
    lines.extend(_wrap(f"{MANIFEST_VERSION}: {headers.get(MANIFEST_VERSION, '1.0')}"))
    for name, value in headers.items():
        if name == MANIFEST_VERSION:
            continue
        if not is_valid_header_value(value):
            raise HeaderSyntaxError(f"Line break or NUL in value of {name}")
        lines.extend(_wrap(f"{name}: {value}"))
    return (LINE_END.join(lines) + LINE_END + LINE_END).encode("utf-8")


def _wrap(line: str) -> list[str]:
    # Continuation lines start with one space, so they carry one byte less.
    out: list[str] = []
    current = ""
    for char in line:
        if len((current + char).encode("utf-8")) > MAX_LINE_BYTES:
            out.append(current)
            current = " "
        current += char
    out.append(current)
    return out


def parse_manifest(data: bytes) -> dict[str, str]:
    """Parse the main section of a manifest into an ordered header mapping."""
    text = data.decode("utf-8")
    headers: dict[str, str] = {}
    last: str | None = None
    for raw in text.splitlines():
        if not raw:
            break
        if raw.startswith(" "):
            if last is None:
                raise HeaderSyntaxError("Manifest continuation line without a header.")
            headers[last] += raw[1:]
            continue
        name, sep, value = raw.partition(": ")
        if not sep:
            raise HeaderSyntaxError(f"Invalid manifest line: {raw!r}")
        headers[name] = value
        last = name
    return headers


# ── OSGi header clauses ─────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Clause:
    """One comma-separated element of a header like ``Export-Package``."""

    names: tuple[str, ...]
    parameters: tuple[str, ...] = ()

    def directive(self, name: str) -> str | None:
        return self._lookup(f"{name}:=")

    def attribute(self, name: str) -> str | None:
        return self._lookup(f"{name}=")

    def _lookup(self, prefix: str) -> str | None:
        for parameter in self.parameters:
            if parameter.startswith(prefix):
                return parameter[len(prefix) :].strip().strip('"')
        return None

    def render(self, name: str | None = None) -> str:
        names = (name,) if name is not None else self.names
        return ";".join((*names, *self.parameters))


def split_outside_quotes(value: str, separator: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    quoted = False
    for char in value:
        if char == '"':
            quoted = not quoted
        if char == separator and not quoted:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    if quoted:
        raise HeaderSyntaxError(f"Unbalanced quote in header value: {value!r}")
    parts.append("".join(current).strip())
    return parts


def split_clauses(value: str) -> list[str]:
    """Split a header into raw clause strings; empty clauses are kept."""
    if not value.strip():
        return []
    return split_outside_quotes(value, ",")


def parse_clause(text: str) -> Clause:
    names: list[str] = []
    parameters: list[str] = []
    for part in split_outside_quotes(text, ";"):
        if not part:
            raise HeaderSyntaxError(f"Empty element in clause: {text!r}")
        if "=" in part:
            key = part.split("=", 1)[0].rstrip(":").strip()
            if not key:
                raise HeaderSyntaxError(f"Parameter without a name in clause: {text!r}")
            parameters.append(part)
        elif parameters:
            raise HeaderSyntaxError(f"Name {part!r} follows parameters in clause: {text!r}")
        else:
            names.append(part)
    if not names:
        raise HeaderSyntaxError(f"Clause has no name: {text!r}")
    return Clause(names=tuple(names), parameters=tuple(parameters))
