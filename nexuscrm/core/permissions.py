"""Role capability checks."""
from nexuscrm.schemas.profile import Role

# Roles allowed to change other users' role/active flag and send invitations
USER_MANAGER_ROLES = frozenset({Role.ADMIN, Role.MANAGER})


def can_manage_users(role) -> bool:
    """
    Whether a role may administer other users.

    Accepts a Role or its string value; unknown strings are never privileged.
    """
    if role is None:
        return False
    try:
        return Role(role) in USER_MANAGER_ROLES
    except ValueError:
        return False
