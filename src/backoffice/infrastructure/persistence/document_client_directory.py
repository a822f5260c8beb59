"""Client directory read from (and seeded into) the document store."""

from __future__ import annotations

from backoffice.domain.repository.client_directory import ClientDirectory
from backoffice.infrastructure.persistence.document_store import DocumentStore


class DocumentClientDirectory(ClientDirectory):

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def exists(self, client_id: str) -> bool:
        return self._store.read_row("clients", client_id) is not None

    def get_name(self, client_id: str) -> str | None:
        raw = self._store.read_row("clients", client_id)
        return raw["name"] if raw is not None else None

    def register(self, client_id: str, name: str) -> None:
        self._store.apply(rows={"clients": {client_id: {"id": client_id, "name": name}}})
