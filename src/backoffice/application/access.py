"""Who is calling, and what their role lets them do."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from backoffice.domain.exceptions import PermissionDenied


class Role(Enum):
    ADMIN = "admin"
    SELLER = "seller"


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def require_role(actor: Actor, *allowed: Role) -> None:
    if actor.role not in allowed:
        raise PermissionDenied(
            f"User '{actor.id}' ({actor.role.value}) is not allowed to do this"
        )
