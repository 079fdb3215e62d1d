"""Authentication helpers and FastAPI security dependency.

This module provides utilities to decode JWT tokens and a FastAPI
dependency `get_current_user` that validates the bearer token and
returns the corresponding `User` record from the users store.

The implementation is intentionally small: token verification raises
HTTPExceptions on failure so it can be used directly inside route
dependencies.
"""

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from .services import JWT_SECRET, JWT_ALGORITHM
from .database import get_user_store
from .models import User
from .repositories import RecordStore

bearer_scheme = HTTPBearer()

def decode_token(token: str):
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired')
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail='invalid token')


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    users: RecordStore = Depends(get_user_store),
) -> User:
    """FastAPI dependency that returns the authenticated user.

    The identity is the `user_id` claim; the record is looked up fresh on
    every request so deleted accounts stop authenticating immediately.
    """
    payload = decode_token(credentials.credentials)
    user_id = payload.get('user_id')
    if not user_id:
        raise HTTPException(status_code=401, detail='invalid token payload')
    user = users.fetch_by_id(user_id)
    if not user:
        raise HTTPException(status_code=401, detail='user not found')
    return user
