from enum import Enum


class UserRole(Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CUSTOMER = "CUSTOMER"


PRIVILEGED_ROLES = {UserRole.ADMIN, UserRole.MANAGER}
