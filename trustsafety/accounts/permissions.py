"""Role-based access control for enforcement operations.

Role hierarchy: system > admin > user
"""

from __future__ import annotations

from trustsafety.accounts.models import Actor, Role
from trustsafety.errors import Unauthorized


def has_permission(actor: Actor, required_role: Role) -> bool:
    """Check if an actor's role meets or exceeds the required role level.

    Parameters
    ----------
    actor:
        The principal performing the operation.
    required_role:
        The minimum role required.

    Returns
    -------
    bool
        True if actor's role level >= required role level.
    """
    actor_role = actor.role if isinstance(actor.role, Role) else Role(actor.role)
    return actor_role.level >= required_role.level


def require_role(actor: Actor, role: Role) -> None:
    """Raise ``Unauthorized`` if *actor* does not hold at least *role*."""
    if not has_permission(actor, role):
        raise Unauthorized(
            f"Actor '{actor.id}' requires role '{role.value}' or higher"
        )


def require_owner_or_role(actor: Actor, account_id: str, role: Role) -> None:
    """Allow the account owner, or anyone holding at least *role*."""
    if actor.id == account_id:
        return
    require_role(actor, role)
