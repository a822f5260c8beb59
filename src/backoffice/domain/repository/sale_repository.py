"""Abstract repository for Sale aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from backoffice.domain.model.sale import Sale


class SaleRepository(ABC):

    @abstractmethod
    def get_by_id(self, sale_id: str) -> Sale | None:
        """Return a sale by its internal ID or public code, or None."""

    @abstractmethod
    def get_by_draft_id(self, draft_id: str) -> Sale | None:
        """Return the sale created from a client-supplied draft ID, or None."""

    @abstractmethod
    def list_all(self) -> list[Sale]:
        """Return every sale."""

    @abstractmethod
    def save(self, sale: Sale) -> None:
        """Persist a new or updated sale."""
