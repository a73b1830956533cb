"""JSON document store shared by every repository.

All collections live in one JSON document so a unit of work can commit
products, carts, sessions and orders in a single write. Access is
serialised across threads and processes with an exclusive ``flock`` on a
sidecar lock file; writes go to a temporary file that atomically replaces
the document.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import structlog
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_delay,
    wait_exponential,
)

from marketplace.domain.exceptions import ServiceUnavailableError

logger = structlog.get_logger(__name__)

DOCUMENT_NAME = "marketplace.json"
LOCK_NAME = "marketplace.lock"

COLLECTIONS: dict[str, type] = {
    "products": dict,
    "carts": dict,
    "sessions": dict,
    "orders": dict,
    "guest_merges": list,
    "meta": dict,
}


def empty_document() -> dict[str, Any]:
    return {name: factory() for name, factory in COLLECTIONS.items()}


class JsonDocumentStore:

    def __init__(self, data_dir: Path, lock_timeout: float = 5.0) -> None:
        self._data_dir = Path(data_dir)
        self._path = self._data_dir / DOCUMENT_NAME
        self._lock_path = self._data_dir / LOCK_NAME
        self._lock_timeout = lock_timeout
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._path

    # --- Locking --------------------------------------------------------------

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the exclusive store lock for the duration of the block."""
        handle = open(self._lock_path, "a+", encoding="utf-8")
        try:
            self._acquire(handle.fileno())
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            handle.close()

    def _acquire(self, fd: int) -> None:
        retrying = Retrying(
            stop=stop_after_delay(self._lock_timeout),
            wait=wait_exponential(multiplier=0.01, min=0.005, max=0.25),
            retry=retry_if_exception_type(BlockingIOError),
        )
        try:
            retrying(fcntl.flock, fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except RetryError as exc:
            logger.error(
                "store_lock_timeout",
                path=str(self._lock_path),
                timeout_seconds=self._lock_timeout,
            )
            raise ServiceUnavailableError(
                f"Store is busy; could not lock it within {self._lock_timeout}s"
            ) from exc

    # --- Document I/O ---------------------------------------------------------

    def read(self) -> dict[str, Any]:
        """Load the whole document. Call with the lock held."""
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("store_read_failed", path=str(self._path), error=str(exc))
            raise ServiceUnavailableError(f"Could not read {self._path}") from exc

        for name, factory in COLLECTIONS.items():
            document.setdefault(name, factory())
        return document

    def write(self, document: dict[str, Any]) -> None:
        """Atomically replace the document. Call with the lock held."""
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=".marketplace-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    json.dump(document, tmp, indent=2, sort_keys=True)
                    tmp.write("\n")
                    tmp.flush()
                    os.fsync(tmp.fileno())
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.error("store_write_failed", path=str(self._path), error=str(exc))
            raise ServiceUnavailableError(f"Could not write {self._path}") from exc

    def _ensure_file(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        if self._path.exists():
            return
        with self.locked():
            if not self._path.exists():
                self.write(empty_document())
