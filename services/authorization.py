"""
Role allow-lists and per-resource ownership checks.

Ownership is resolved through an OwnerResolver: a function that, given a
session and a resource id, returns the id of the customer owning that
resource (or None when the resource does not exist). The check itself is
the same for every resource type.
"""

from typing import Annotated, Callable, Optional
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session
from starlette import status
from core.roles import Role
from schemas.auth_schemas import Principal
from utils.deps import get_current_user, get_db
from utils.logger import get_logger

logger = get_logger(__name__)

OwnerResolver = Callable[[Session, int], Optional[int]]


def direct_owner(db: Session, resource_id: int) -> int:
    """Resources keyed by the customer id itself (profiles, carts by user)."""
    return resource_id


def authorize_role(principal: Optional[Principal], allowed_roles: tuple[Role, ...]) -> Principal:
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Unauthorized: Authentication required")

    if principal.role not in allowed_roles:
        required = [role.value for role in allowed_roles]
        logger.warning(
            "Access denied - insufficient role",
            extra={"principal_id": principal.id, "role": principal.role.value, "required_roles": required}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Forbidden: Insufficient permissions",
                "required": required,
                "current": principal.role.value
            }
        )

    return principal


def require_role(*allowed_roles: Role):
    """
    Dependency factory. Usage:

        admin: Annotated[Principal, Depends(require_role(Role.ADMIN, Role.SUPER_ADMIN))]
    """
    allowed = tuple(Role(role) for role in allowed_roles)

    def dependency(principal: Annotated[Principal, Depends(get_current_user)]) -> Principal:
        return authorize_role(principal, allowed)

    return dependency


def ensure_owner(principal: Principal, owner_id: Optional[int], resource: str, resource_id) -> None:
    """
    Admins pass unconditionally; everyone else must own the resource.
    Denials are logged as potential IDOR attempts; the client only sees a
    generic 403.
    """
    if principal.is_admin:
        return

    if owner_id is None or owner_id != principal.id:
        logger.warning(
            "Potential IDOR attempt",
            extra={
                "principal_id": principal.id,
                "resource": resource,
                "resource_id": resource_id,
                "owner_id": owner_id
            }
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Forbidden: You can only access your own resources")


def check_ownership(db: Session, principal: Principal, resource_id: int,
                    resolver: OwnerResolver = direct_owner, resource: str = "resource") -> int:
    """
    Resolve the owning customer of `resource_id` and apply ensure_owner.
    Unknown resources are a 404, before any ownership decision.

    Returns:
        The owning customer id
    """
    owner_id = resolver(db, resource_id)

    if owner_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"{resource.capitalize()} not found")

    ensure_owner(principal, owner_id, resource, resource_id)
    return owner_id


class RequireOwnership:
    """
    Dependency form of check_ownership that reads the resource id from a
    path parameter:

        @router.get("/{userId}", dependencies=[Depends(RequireOwnership(param="userId", resource="cart"))])
    """

    def __init__(self, resolver: OwnerResolver = direct_owner, param: str = "id", resource: str = "resource"):
        self.resolver = resolver
        self.param = param
        self.resource = resource

    def __call__(self, request: Request,
                 principal: Annotated[Principal, Depends(get_current_user)],
                 db: Annotated[Session, Depends(get_db)]) -> Principal:
        raw = request.path_params.get(self.param)
        try:
            resource_id = int(raw)
        except (TypeError, ValueError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail=f"{self.param} must be an integer")

        check_ownership(db, principal, resource_id, self.resolver, self.resource)
        return principal


ADMIN_ONLY = (Role.ADMIN, Role.SUPER_ADMIN)
admin_dependency = Annotated[Principal, Depends(require_role(*ADMIN_ONLY))]
super_admin_dependency = Annotated[Principal, Depends(require_role(Role.SUPER_ADMIN))]
