"""FastAPI dependency functions for actor scoping and role gates."""

from fastapi import Depends

from arbiter.exceptions import ForbiddenException
from arbiter.models.enums import ActorRole
from arbiter.modules.authorization.auth import AuthenticatedActor, get_current_actor
from arbiter.modules.authorization.scoper import ActorScope


def get_actor_scope(
    actor: AuthenticatedActor = Depends(get_current_actor),
) -> ActorScope:
    return ActorScope.from_actor(actor)


def require_role(*roles: ActorRole):
    """Factory that returns a dependency accepting only the listed roles."""

    def _check(scope: ActorScope = Depends(get_actor_scope)) -> ActorScope:
        if scope.role not in roles:
            raise ForbiddenException("Not authorized to access this resource")
        return scope

    return _check
