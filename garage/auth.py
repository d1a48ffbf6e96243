from dataclasses import dataclass

from .errors import AccountDeactivated, AuthorizationError, Unauthenticated
from .models import Profile, RoleEnum as Role


@dataclass(frozen=True)
class Principal:
    id: int
    username: str
    role: Role
    is_active: bool

    @classmethod
    def from_profile(cls, profile: Profile) -> "Principal":
        role = profile.role.value if hasattr(profile.role, "value") else profile.role
        return cls(
            id=profile.id,
            username=profile.username,
            role=Role(role),
            is_active=bool(profile.is_active),
        )

    @property
    def is_admin(self) -> bool:
        return is_admin_role(self.role)


def is_admin_role(role: Role) -> bool:
    match role:
        case Role.ADMIN:
            return True
        case Role.EMPLOYEE:
            return False
    raise AuthorizationError(f"Unknown role: {role}")


def authorize(
    principal: Principal | None, required_role: Role | None = None
) -> Principal:
    """Allow or deny ``principal``; the active check precedes any role check."""
    if principal is None:
        raise Unauthenticated()
    if not principal.is_active:
        raise AccountDeactivated()
    if required_role is not None and principal.role != required_role:
        raise AuthorizationError(f"Requires the {required_role.value} role.")
    return principal
