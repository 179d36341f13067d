from enum import Enum


class UserRole(str, Enum):
    user = "user"
    ngo = "ngo"
    admin = "admin"
