import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from stevi.auth.session import decode_user_id, get_current_user_id
from stevi.config import JWT_ALGORITHM, JWT_SECRET


def _token(claims, secret=JWT_SECRET):
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def test_decode_user_id_returns_sub():
    assert decode_user_id(_token({"sub": "user_123"})) == "user_123"


def test_decode_user_id_rejects_bad_signature():
    assert decode_user_id(_token({"sub": "user_123"}, secret="not-the-secret")) is None


def test_decode_user_id_requires_sub():
    assert decode_user_id(_token({"email": "a@example.org"})) is None


@pytest.mark.anyio
async def test_get_current_user_id_without_credentials_is_none():
    assert await get_current_user_id(None) is None


@pytest.mark.anyio
async def test_get_current_user_id_with_bearer_token():
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=_token({"sub": "user_abc"}))

    assert await get_current_user_id(credentials) == "user_abc"
