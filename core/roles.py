from enum import Enum


class Role(str, Enum):
    """
    Closed set of account roles.

    Parsed once at the boundary (token decoding, request schemas) so the
    rest of the code compares enum members instead of raw strings.
    The legacy spelling "super admin" is accepted and normalized.
    """
    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def is_admin(self) -> bool:
        return self in ADMIN_ROLES


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
