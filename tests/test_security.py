from datetime import datetime, timedelta, timezone

import jwt
import pytest

from models.user import Role
from utils.exceptions import InvalidToken, TokenExpired
from utils.security import TokenSigner, hash_password, verify_password

SECRET = "unit-test-secret-0123456789abcdef0123"


@pytest.fixture
def signer():
    return TokenSigner(SECRET, access_ttl=timedelta(minutes=60))


def test_password_roundtrip():
    digest = hash_password("secret1")
    assert digest != "secret1"
    assert verify_password("secret1", digest)


def test_password_mismatch_returns_false():
    digest = hash_password("secret1")
    assert verify_password("secret2", digest) is False
    assert verify_password("secret1", hash_password("other")) is False


def test_password_hash_is_salted():
    assert hash_password("secret1") != hash_password("secret1")


def test_verify_against_garbage_digest_is_false():
    assert verify_password("secret1", "not-an-argon2-hash") is False


def test_issue_then_verify_returns_claims(signer):
    token = signer.issue_access(7, Role.ADMIN)
    claims = signer.verify_access(token)
    assert claims.user_id == 7
    assert claims.role is Role.ADMIN
    assert claims.expires_at - claims.issued_at == timedelta(minutes=60)


def test_role_may_be_given_as_string(signer):
    claims = signer.verify_access(signer.issue_access(3, "customer"))
    assert claims.role is Role.CUSTOMER


def test_expired_token(signer):
    issued = datetime.now(timezone.utc) - timedelta(minutes=61)
    token = signer.issue_access(7, Role.ADMIN, now=issued)
    with pytest.raises(TokenExpired):
        signer.verify_access(token)


def test_expired_is_an_invalid_token(signer):
    # callers catching InvalidToken also reject expired tokens
    assert issubclass(TokenExpired, InvalidToken)


def test_wrong_secret(signer):
    other = TokenSigner("another-secret-0123456789abcdef01234")
    with pytest.raises(InvalidToken) as exc:
        signer.verify_access(other.issue_access(7, Role.ADMIN))
    assert not isinstance(exc.value, TokenExpired)


def test_tampered_signature(signer):
    token = signer.issue_access(7, Role.ADMIN)
    head, payload, sig = token.split(".")
    tampered = ".".join([head, payload, ("A" if sig[0] != "A" else "B") + sig[1:]])
    with pytest.raises(InvalidToken):
        signer.verify_access(tampered)


def test_algorithm_mismatch(signer):
    other = TokenSigner(SECRET, algorithm="HS512")
    with pytest.raises(InvalidToken):
        signer.verify_access(other.issue_access(7, Role.ADMIN))


def test_malformed_token(signer):
    with pytest.raises(InvalidToken):
        signer.verify_access("not.a.jwt")


def test_unknown_role_claim_rejected(signer):
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"user_id": 1, "role": "root", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        signer.verify_access(token)


@pytest.mark.parametrize("user_id", [0, -1, "1", None, True, 2 ** 63])
def test_bad_user_id_claim_rejected(signer, user_id):
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"user_id": user_id, "role": "admin", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        signer.verify_access(token)


def test_missing_exp_rejected(signer):
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"user_id": 1, "role": "admin", "iat": now}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        signer.verify_access(token)


def test_empty_secret_fails_at_construction():
    with pytest.raises(ValueError):
        TokenSigner("")
    with pytest.raises(ValueError):
        TokenSigner.from_config({"JWT_SECRET": None})


def test_from_config_uses_ttl():
    s = TokenSigner.from_config({"JWT_SECRET": SECRET, "JWT_ACCESS_TTL": timedelta(minutes=5)})
    claims = s.verify_access(s.issue_access(1, Role.ADMIN))
    assert claims.expires_at - claims.issued_at == timedelta(minutes=5)
