"""Write a finished build result to disk as a jar archive."""

from __future__ import annotations

import os
import tempfile
import zipfile
from pathlib import Path

from osgibundle.adapter import BuildResult
from osgibundle.errors import HostIOFailure, ValidationError

# Fixed timestamp so identical inputs give byte-identical archives.
ENTRY_DATE_TIME = (1980, 2, 1, 0, 0, 0)


def write_archive(result: BuildResult, path: str | Path) -> Path:
    """Write all entries to ``path`` through a temporary file in the same directory."""
    if not result.succeeded:
        raise ValidationError(
            "Refusing to write an archive for a failed build.",
            context={"path": str(path), "fatal": str(len(result.fatal))},
        )
    archive_path = Path(path)
    tmp_name: str | None = None
    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=archive_path.parent,
            prefix=f".{archive_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            with zipfile.ZipFile(handle, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for entry in result.entries:
                    info = zipfile.ZipInfo(entry.path, date_time=ENTRY_DATE_TIME)
                    info.compress_type = zipfile.ZIP_DEFLATED
                    info.external_attr = 0o644 << 16
                    archive.writestr(info, entry.content)
        os.replace(tmp_name, archive_path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise HostIOFailure(
            "Failed to write bundle archive.",
            hint=str(exc),
            context={"operation": "write_archive", "path": str(archive_path)},
        ) from exc
    return archive_path
