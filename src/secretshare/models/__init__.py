"""SQLModel database models for secretshare."""

from secretshare.models.grants import Grant, GrantBase
from secretshare.models.secrets import Secret, SecretBase
from secretshare.models.users import User, UserBase

__all__ = [
    "Grant",
    "GrantBase",
    "Secret",
    "SecretBase",
    "User",
    "UserBase",
]
