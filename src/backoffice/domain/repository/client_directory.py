"""Client directory as seen by the sale engine.

Client CRUD lives elsewhere; the engine only needs to know whether a
client exists and what to call it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ClientDirectory(ABC):

    @abstractmethod
    def exists(self, client_id: str) -> bool:
        """True if the client is registered."""

    @abstractmethod
    def get_name(self, client_id: str) -> str | None:
        """Return the client's display name, or None."""

    @abstractmethod
    def register(self, client_id: str, name: str) -> None:
        """Add or rename a client."""
