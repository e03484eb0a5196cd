import base64
import datetime
import json

import jwt
import pytest

from taskboard.auth import TokenService
from taskboard.errors import InvalidToken

KEY = "unit-test-key"


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


def test_issue_then_verify_returns_user_id() -> None:
    tokens = TokenService(KEY)
    assert tokens.verify(tokens.issue("user-1")) == "user-1"


def test_token_expires_after_ttl() -> None:
    token = TokenService(KEY).issue("user-1")
    payload = jwt.decode(token, KEY, algorithms=["HS256"])
    assert payload["exp"] - payload["iat"] == 24 * 3600


def test_expired_token_is_rejected() -> None:
    tokens = TokenService(KEY, ttl_hours=-1)
    with pytest.raises(InvalidToken):
        tokens.verify(tokens.issue("user-1"))


def test_token_signed_with_other_key_is_rejected() -> None:
    token = TokenService("another-key").issue("user-1")
    with pytest.raises(InvalidToken):
        TokenService(KEY).verify(token)


def test_tampered_payload_is_rejected() -> None:
    tokens = TokenService(KEY)
    header, _, signature = tokens.issue("user-1").split(".")
    exp = int((datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=1)).timestamp())
    forged = ".".join([header, _b64({"id": "user-2", "exp": exp}), signature])
    with pytest.raises(InvalidToken):
        tokens.verify(forged)


def test_unsigned_token_is_rejected() -> None:
    exp = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=1)
    token = jwt.encode({"id": "user-1", "exp": exp}, None, algorithm="none")
    with pytest.raises(InvalidToken):
        TokenService(KEY).verify(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_rejected(token: str) -> None:
    with pytest.raises(InvalidToken):
        TokenService(KEY).verify(token)


def test_token_without_user_id_is_rejected() -> None:
    exp = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=1)
    token = jwt.encode({"exp": exp}, KEY, algorithm="HS256")
    with pytest.raises(InvalidToken):
        TokenService(KEY).verify(token)


def test_token_without_expiry_is_rejected() -> None:
    token = jwt.encode({"id": "user-1"}, KEY, algorithm="HS256")
    with pytest.raises(InvalidToken):
        TokenService(KEY).verify(token)
