import time

import pytest
from jose import jwt

from stockledger.core.config import Settings
from stockledger.core.errors import Unauthenticated
from stockledger.core.security import ALGORITHM, create_access_token, verify_token
from stockledger.schemas.auth import Identity


SETTINGS = Settings(secret_key="unit-test-secret", database_url="sqlite://")
IDENTITY = Identity(id=7, username="dana")


def test_token_carries_identity():
    token = create_access_token(IDENTITY, SETTINGS)

    assert verify_token(token, SETTINGS) == IDENTITY
    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == "7"
    assert claims["username"] == "dana"


def test_default_lifetime_is_eight_hours():
    before = time.time()
    token = create_access_token(IDENTITY, SETTINGS)
    claims = jwt.get_unverified_claims(token)

    assert before + 8 * 3600 - 5 <= claims["exp"] <= time.time() + 8 * 3600 + 5


def test_expired_token_is_rejected():
    token = create_access_token(IDENTITY, SETTINGS, expires_minutes=-1)

    with pytest.raises(Unauthenticated):
        verify_token(token, SETTINGS)


def test_token_signed_with_other_secret_is_rejected():
    other = Settings(secret_key="someone-else", database_url="sqlite://")
    token = create_access_token(IDENTITY, other)

    with pytest.raises(Unauthenticated):
        verify_token(token, SETTINGS)


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_missing_or_garbage_token_is_rejected(token):
    with pytest.raises(Unauthenticated):
        verify_token(token, SETTINGS)


@pytest.mark.parametrize("claims", [{"sub": "abc", "username": "dana"}, {"sub": "7"}, {"sub": "0", "username": "x"}])
def test_token_with_bad_claims_is_rejected(claims):
    token = jwt.encode(claims, SETTINGS.secret_key, algorithm=ALGORITHM)

    with pytest.raises(Unauthenticated):
        verify_token(token, SETTINGS)
