from typing import Optional, Tuple

from reservations.models.users import UserRole, PRIVILEGED_ROLES


def get_caller(event: dict) -> Optional[Tuple[str, Optional[UserRole]]]:
    """Return (user_id, role) from the API Gateway authorizer context."""
    try:
        authorizer = event["requestContext"]["authorizer"]
        user_id = authorizer["user_id"]
    except (KeyError, TypeError):
        return None
    if not user_id:
        return None

    role = None
    role_raw = authorizer.get("role")
    if role_raw:
        try:
            role = UserRole(role_raw.upper())
        except ValueError:
            role = None
    return user_id, role


def acting_user(user_id: str, role: Optional[UserRole]) -> Optional[str]:
    """Owner check subject: None lets managers and admins act on any booking."""
    return None if role in PRIVILEGED_ROLES else user_id


def get_path_param(event: dict, name: str) -> Optional[str]:
    return (event.get("pathParameters") or {}).get(name)
