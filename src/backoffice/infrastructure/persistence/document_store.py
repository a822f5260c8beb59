"""Whole-database document stores.

The database is one JSON-compatible document::

    {
      "products":  {id: {...}},
      "sales":     {id: {...}},
      "clients":   {id: {...}},
      "movements": [{...}, ...],
      "sequences": {"sale": 12}
    }

Reads hand out deep copies; ``apply`` merges a unit of work's staged rows
into the current document and saves it in one step.  Every load and every
load-then-save runs inside ``_guarded()``: a thread lock for the memory
store, plus an OS file lock next to the data file for the JSON store, so
separate processes never interleave their read-modify-write cycles.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock

logger = logging.getLogger(__name__)

TABLES = ("products", "sales", "clients")


def empty_document() -> dict:
    return {
        "products": {},
        "sales": {},
        "clients": {},
        "movements": [],
        "sequences": {},
    }


class DocumentStore(ABC):

    def __init__(self) -> None:
        self._lock = threading.RLock()

    # --- Reads ----------------------------------------------------------------

    def read_row(self, table: str, row_id: str) -> dict | None:
        with self._guarded():
            row = self._load()[table].get(row_id)
            return copy.deepcopy(row)

    def read_table(self, table: str) -> dict[str, dict]:
        with self._guarded():
            return copy.deepcopy(self._load()[table])

    def read_movements(self) -> list[dict]:
        with self._guarded():
            return copy.deepcopy(self._load()["movements"])

    # --- Writes ---------------------------------------------------------------

    def apply(
        self,
        rows: dict[str, dict[str, dict | None]] | None = None,
        movements: list[dict] | None = None,
    ) -> None:
        """Upsert (or delete, for ``None``) rows and append movements atomically."""
        rows = rows or {}
        unknown = set(rows) - set(TABLES)
        if unknown:
            raise KeyError(f"Unknown table(s): {sorted(unknown)}")
        with self._guarded():
            document = self._load()
            for table, changes in rows.items():
                for row_id, raw in changes.items():
                    if raw is None:
                        document[table].pop(row_id, None)
                    else:
                        document[table][row_id] = copy.deepcopy(raw)
            document["movements"].extend(copy.deepcopy(movements or []))
            self._save(document)

    def next_sequence(self, name: str) -> int:
        with self._guarded():
            document = self._load()
            value = document["sequences"].get(name, 0) + 1
            document["sequences"][name] = value
            self._save(document)
            return value

    # --- Backend hooks --------------------------------------------------------

    @contextmanager
    def _guarded(self) -> Iterator[None]:
        with self._lock:
            yield

    @abstractmethod
    def _load(self) -> dict:
        """Return the current document (may be the live object)."""

    @abstractmethod
    def _save(self, document: dict) -> None:
        """Make *document* the current one."""


class MemoryDocumentStore(DocumentStore):
    """Keeps the document in memory; used by tests and throwaway runs."""

    def __init__(self, document: dict | None = None) -> None:
        super().__init__()
        self._document = document if document is not None else empty_document()

    def _load(self) -> dict:
        return self._document

    def _save(self, document: dict) -> None:
        self._document = document


class JsonFileDocumentStore(DocumentStore):
    """Persists the document to a single JSON file.

    Saving writes a temporary file next to the target and renames it over
    the old one, so readers see either the previous or the new state.
    ``<file>.lock`` serializes access between processes sharing the file.
    """

    def __init__(self, file_path: Path) -> None:
        super().__init__()
        self._file_path = file_path
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = FileLock(f"{file_path}.lock")
        self._ensure_file()

    @contextmanager
    def _guarded(self) -> Iterator[None]:
        with self._lock, self._file_lock:
            yield

    def _load(self) -> dict:
        document = json.loads(self._file_path.read_text(encoding="utf-8"))
        for key, value in empty_document().items():
            document.setdefault(key, value)
        return document

    def _save(self, document: dict) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=self._file_path.name, suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(document, indent=2) + "\n")
            os.replace(tmp_name, self._file_path)
        except OSError:
            logger.exception("Could not write %s", self._file_path)
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _ensure_file(self) -> None:
        with self._guarded():
            if not self._file_path.exists():
                self._save(empty_document())
