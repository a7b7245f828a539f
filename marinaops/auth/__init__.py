"""JWT authentication and marina-scoped authorization."""

from marinaops.auth.dependencies import (
    SessionUser,
    get_current_user,
    require_manager,
    require_marina_access,
)
from marinaops.auth.jwt import create_access_token, create_user_token, decode_access_token
from marinaops.auth.passwords import hash_password, verify_password

__all__ = [
    "SessionUser",
    "create_access_token",
    "create_user_token",
    "decode_access_token",
    "get_current_user",
    "hash_password",
    "require_manager",
    "require_marina_access",
    "verify_password",
]
