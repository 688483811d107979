"""
JSON File Key-Value Store

DESIGN DECISION: All keys live in one small JSON document on disk.
1. Human-readable, easy to inspect or delete
2. Written atomically (temp file + rename) so a crash never leaves
   half a snapshot behind
3. Writes are retried briefly on OSError (e.g. a file locked by a
   backup tool); reads are not
4. A corrupt document never blocks writes: it is logged and replaced
   by a fresh one

TRADEOFFS:
- Every write rewrites the whole document (fine for one expense list)
- No cross-process locking; a single store owns the file
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_sync.services.snapshot.interface import KeyValueStoreInterface, SnapshotError


logger = structlog.get_logger("expense_sync.snapshot")


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """Key-value store backed by a single JSON object on disk."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SnapshotError(f"Failed to read snapshot file {self._path}: {e}")
        if not isinstance(data, dict):
            raise SnapshotError(f"Snapshot file {self._path} is not a JSON object")
        return data

    def _read_for_write(self) -> dict[str, str]:
        try:
            return self._read_all()
        except SnapshotError as e:
            logger.warning("snapshot_file_reset", path=str(self._path), error=str(e))
            return {}

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        reraise=True,
    )
    def _write_all(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _set_sync(self, key: str, value: str) -> None:
        data = self._read_for_write()
        data[key] = value
        try:
            self._write_all(data)
        except OSError as e:
            raise SnapshotError(f"Failed to write snapshot file {self._path}: {e}")

    def _remove_sync(self, key: str) -> None:
        data = self._read_for_write()
        if key not in data:
            return
        del data[key]
        try:
            self._write_all(data)
        except OSError as e:
            raise SnapshotError(f"Failed to write snapshot file {self._path}: {e}")

    async def get(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read_all)
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set_sync, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove_sync, key)
