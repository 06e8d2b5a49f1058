"""Acting distributor/admin context and deal access enforcement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.core.enums import ActorType
from app.core.exceptions import AuthorizationError, ValidationError


@dataclass(frozen=True)
class Actor:
    type: ActorType
    id: int

    @property
    def is_admin(self) -> bool:
        return self.type is ActorType.ADMIN


def actor_from(actor_type: str | ActorType, actor_id: Any) -> Actor:
    """Build an actor from loosely typed caller input."""
    try:
        resolved_type = ActorType(actor_type)
        resolved_id = int(actor_id)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Actor must be a distributor or admin with a numeric id.") from exc
    return Actor(type=resolved_type, id=resolved_id)


def enforce_deal_access(distributor_id: int, actor: Actor) -> None:
    """Distributors may only act on their own deals; admins act on any deal."""
    if actor.is_admin:
        return
    if int(distributor_id) != int(actor.id):
        raise AuthorizationError("Deal belongs to another distributor.")
