"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache

from backoffice.application.reservation_coordinator import ReservationCoordinator
from backoffice.config import Settings, get_settings
from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.infrastructure.locking import FileRowLockManager, RowLockManager
from backoffice.infrastructure.persistence.document_client_directory import (
    DocumentClientDirectory,
)
from backoffice.infrastructure.persistence.document_store import (
    DocumentStore,
    JsonFileDocumentStore,
)
from backoffice.infrastructure.persistence.document_unit_of_work import (
    DocumentUnitOfWork,
)


@lru_cache
def row_locks() -> RowLockManager:
    # Every unit of work in the process shares it; the lock files are
    # shared with other processes using the same data directory.
    return FileRowLockManager(get_settings().lock_dir)


@lru_cache
def document_store() -> JsonFileDocumentStore:
    return JsonFileDocumentStore(get_settings().database_file)


def unit_of_work_factory(
    store: DocumentStore | None = None,
    settings: Settings | None = None,
) -> Callable[[], UnitOfWork]:
    store = store or document_store()
    settings = settings or get_settings()
    locks = row_locks()
    return lambda: DocumentUnitOfWork(store, locks, settings.lock_timeout_seconds)


def client_directory(store: DocumentStore | None = None) -> DocumentClientDirectory:
    return DocumentClientDirectory(store or document_store())


def reservation_coordinator(
    store: DocumentStore | None = None,
    settings: Settings | None = None,
) -> ReservationCoordinator:
    store = store or document_store()
    settings = settings or get_settings()
    return ReservationCoordinator(
        unit_of_work_factory(store, settings),
        client_directory(store),
        tolerance=settings.payment_tolerance,
        currency=settings.currency,
        contention_retries=settings.contention_retries,
        retry_backoff=settings.retry_backoff_seconds,
    )
