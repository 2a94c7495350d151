"""JWT helper tests."""

import jwt as pyjwt
import pytest

from leap.auth.jwt import TokenError, company_from_token, create_access_token, verify_token
from leap.config import settings


def test_token_round_trip():
    token = create_access_token("dash-user", company_id="acme")
    payload = verify_token(token)
    assert payload["sub"] == "dash-user"
    assert payload["company_id"] == "acme"
    assert payload["type"] == "access"


def test_company_from_token():
    assert company_from_token(create_access_token("u", company_id="acme")) == "acme"


def test_missing_company_claim():
    with pytest.raises(TokenError, match="company_id"):
        company_from_token(create_access_token("u"))


def test_expired_token():
    token = create_access_token("u", company_id="acme", expires_minutes=-1)
    with pytest.raises(TokenError, match="expired"):
        verify_token(token)


def test_wrong_secret():
    token = pyjwt.encode({"sub": "u", "company_id": "acme"}, "other-secret", algorithm=settings.jwt_algorithm)
    with pytest.raises(TokenError, match="Invalid token"):
        verify_token(token)
