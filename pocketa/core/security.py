"""Stateless bearer tokens.

Tokens are itsdangerous timed signatures over ``{"user_id", "email"}``. Nothing
is persisted: verification needs only the token, the shared secret and the
clock, and never touches the record store.
"""

import hashlib
from typing import Any

import bcrypt
from beanie import PydanticObjectId
from bson import ObjectId
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from pocketa.core.config import get_settings
from pocketa.core.exceptions import InvalidTokenError, MissingTokenError

BEARER_PREFIX = "Bearer "
TOKEN_SALT = "pocketa-access-token"


def get_token_serializer(secret: str | None = None) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(
        secret or get_settings().token_secret,
        salt=TOKEN_SALT,
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


def create_access_token(user_id: Any, email: str, secret: str | None = None) -> str:
    serializer = get_token_serializer(secret)
    return serializer.dumps({"user_id": str(user_id), "email": email})


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token part of an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise MissingTokenError()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingTokenError()
    return token


def verify_token(token: str, secret: str | None = None, max_age: int | None = None) -> PydanticObjectId:
    """Check signature and age, then return the user id the token was issued for.

    Every failure, whether a foreign secret, expiry or a malformed payload,
    surfaces as the same InvalidTokenError so callers cannot tell them apart.
    """
    if max_age is None:
        max_age = get_settings().token_max_age_seconds
    serializer = get_token_serializer(secret)
    try:
        payload = serializer.loads(token, max_age=max_age)
    except (BadSignature, SignatureExpired):
        # SignatureExpired subclasses BadSignature; listed for readability
        raise InvalidTokenError() from None
    if not isinstance(payload, dict):
        raise InvalidTokenError()
    user_id = payload.get("user_id")
    if not isinstance(user_id, str) or not ObjectId.is_valid(user_id):
        raise InvalidTokenError()
    return PydanticObjectId(user_id)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
