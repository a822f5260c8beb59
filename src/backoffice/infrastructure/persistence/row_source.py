"""What the document repositories need from their unit of work."""

from __future__ import annotations

from abc import ABC, abstractmethod


class RowSource(ABC):

    @abstractmethod
    def get_row(self, table: str, row_id: str) -> dict | None:
        """Staged row if any, otherwise the committed one."""

    @abstractmethod
    def all_rows(self, table: str) -> dict[str, dict]:
        """Committed rows overlaid with staged changes."""

    @abstractmethod
    def stage_row(self, table: str, row_id: str, raw: dict | None) -> None:
        """Stage an upsert, or a delete when *raw* is None."""

    @abstractmethod
    def all_movements(self) -> list[dict]:
        """Committed movements followed by staged ones."""

    @abstractmethod
    def stage_movement(self, raw: dict) -> None:
        """Stage an appended movement."""
