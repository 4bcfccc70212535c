"""
Routine Assistant: State Store.

One JSON document per domain on local disk. Every mutating operation is a
read-modify-write (load -> mutate -> save) under the store's own lock; no
state is cached between calls.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generic, Iterator, TypeVar

from pydantic import ValidationError

from src.core.errors import CorruptState, IOFailure
from src.data.models import RoutineDocument

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=RoutineDocument)


class StateStore(Generic[DocT]):
    """File-backed storage for a single domain document."""

    def __init__(
        self,
        path: str | Path,
        model: type[DocT],
        default_factory: Callable[[], DocT],
    ) -> None:
        self._path = Path(path)
        self._model = model
        self._default_factory = default_factory
        self._lock = threading.Lock()
        self._init_document()

    @classmethod
    def open(
        cls,
        path: str | Path,
        model: type[DocT],
        default_factory: Callable[[], DocT],
    ) -> StateStore[DocT]:
        """Create the data directory and the default document if absent."""
        return cls(path, model, default_factory)

    @property
    def path(self) -> Path:
        return self._path

    def _init_document(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IOFailure(f"Cannot create data directory {self._path.parent}") from exc

        with self._lock:
            if self._path.exists():
                logger.debug("State document present at %s", self._path)
                return
            self._write(self._default_factory())
        logger.info("Default state document created at %s", self._path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self) -> DocT:
        """Return the persisted document, or the default when none exists."""
        with self._lock:
            return self._read()

    def save(self, doc: DocT) -> None:
        """Overwrite the persisted document (write temp file, then rename)."""
        with self._lock:
            self._write(doc)

    @contextmanager
    def transaction(self) -> Iterator[DocT]:
        """Load, yield for mutation, then save, atomically w.r.t. this store.

        Nothing is written if the body raises.
        """
        with self._lock:
            doc = self._read()
            yield doc
            self._write(doc)

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _read(self) -> DocT:
        if not self._path.exists():
            return self._default_factory()
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise IOFailure(f"Cannot read {self._path.name}") from exc

        try:
            doc = self._model.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Corrupt state document %s: %s", self._path, exc)
            raise CorruptState(str(self._path), str(exc)) from exc
        logger.debug("Loaded %s", self._path)
        return doc

    def _write(self, doc: DocT) -> None:
        payload = doc.model_dump_json(indent=2)
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.stem}-",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.write("\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise IOFailure(f"Cannot write {self._path.name}") from exc
        logger.debug("Saved %s", self._path)
