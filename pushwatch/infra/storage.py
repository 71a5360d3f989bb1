"""JSON document storage for recipients and dedup state."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any, Dict

from ..errors import StoreError


class JsonDocumentManager:
    """Read and wholesale-replace small JSON documents on disk."""

    def __init__(self) -> None:
        self._locks: Dict[Path, Lock] = {}
        self._lock = Lock()

    def _path_lock(self, path: Path) -> Lock:
        with self._lock:
            return self._locks.setdefault(path.resolve(), Lock())

    def read(self, path: Path, default: Any) -> Any:
        """Return the decoded document, or ``default`` when it does not exist yet."""

        with self._path_lock(path):
            try:
                raw = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return default
            except (OSError, UnicodeDecodeError) as exc:
                raise StoreError(f"Could not read {path}: {exc}") from exc
        if not raw.strip():
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Malformed document {path}: {exc}") from exc

    def write(self, path: Path, payload: Any) -> None:
        """Replace the document atomically (temp file + rename)."""

        with self._path_lock(path):
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as stream:
                        json.dump(payload, stream, indent=2, ensure_ascii=False)
                    os.replace(tmp_name, path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as exc:
                raise StoreError(f"Could not write {path}: {exc}") from exc


__all__ = ["JsonDocumentManager"]
