"""Structured logging and build report helpers."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import cbor2

from osgibundle.errors import HostIOFailure
from osgibundle.manifest import parse_manifest

if TYPE_CHECKING:
    from osgibundle.adapter import BuildResult

LogLevel = Literal["debug", "info", "warning", "error"]


@dataclass(slots=True)
class StructuredLogger:
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        phase: str | None,
        message: str,
        level: LogLevel = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "phase": phase,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

    def records_at(self, level: LogLevel) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("level") == level]

    def to_json_lines(self, path: str | Path) -> Path:
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        encoded = ("\n".join(lines) + "\n").encode("utf-8")
        return _write_output(path, encoded, what="log records")


@dataclass(frozen=True, slots=True)
class BuildReport:
    """Machine-readable summary of one bundle build."""

    archive: str | None
    succeeded: bool
    headers: dict[str, str] = field(default_factory=dict)
    entry_digests: dict[str, str] = field(default_factory=dict)
    advisory: tuple[str, ...] = ()
    fatal: tuple[str, ...] = ()
    trace: tuple[str, ...] = ()
    schema_version: int = 1

    @classmethod
    def from_result(cls, result: BuildResult, *, archive: str | Path | None = None) -> BuildReport:
        return cls(
            archive=str(archive) if archive is not None else None,
            succeeded=result.succeeded,
            headers=parse_manifest(result.manifest) if result.manifest else {},
            entry_digests={
                entry.path: hashlib.sha256(entry.content).hexdigest() for entry in result.entries
            },
            advisory=tuple(diagnostic.text for diagnostic in result.advisory),
            fatal=tuple(diagnostic.text for diagnostic in result.fatal),
            trace=result.trace,
        )

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            _write_output(path, encoded.encode("utf-8"), what="build report")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            _write_output(path, encoded, what="build report")
        return encoded

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "archive": self.archive,
            "succeeded": self.succeeded,
            "headers": dict(sorted(self.headers.items())),
            "entry_digests": dict(sorted(self.entry_digests.items())),
            "advisory": list(self.advisory),
            "fatal": list(self.fatal),
            "trace": list(self.trace),
        }


def _write_output(path: str | Path, data: bytes, *, what: str) -> Path:
    output_path = Path(path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    except OSError as exc:
        raise HostIOFailure(
            f"Failed to write {what}.",
            hint=str(exc),
            context={"operation": "write_output", "path": str(output_path)},
        ) from exc
    return output_path
