"""Domain service: role checks that do not depend on a particular order.

Order-level ownership (is this *the* store of the order?) lives on the
Order aggregate. What is left here are the coarse gates in front of
whole use cases.
"""

from __future__ import annotations

from marketplace.domain.exceptions import ForbiddenError
from marketplace.domain.model.actor import Actor, Role


def require_role(actor: Actor, *roles: Role, action: str = "do this") -> None:
    """Raise ForbiddenError unless ``actor`` holds one of ``roles`` (or is admin)."""
    if actor.is_admin or actor.role in roles:
        return
    allowed = ", ".join(role.value for role in roles) or "admin"
    raise ForbiddenError(f"A {actor.role.value} cannot {action} (requires {allowed})")
