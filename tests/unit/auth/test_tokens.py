"""Unit tests for auth backend (JWT and password handling)."""

from datetime import timedelta
from uuid import uuid4

from jose import jwt

from roster.config import settings
from roster.core.auth.backend import (
    extract_bearer_token,
    hash_password,
    hash_token,
    is_token_expired,
    sign_access_token,
    sign_refresh_token,
    sign_session_token,
    verify_access_token,
    verify_password,
    verify_refresh_token,
    verify_session_token,
)
from roster.core.auth.schemas import AccessClaims, TokenPair


def make_claims(**overrides) -> AccessClaims:
    data = {
        "id": uuid4(),
        "email": "jane@example.com",
        "name": "Jane Doe",
        "isadmin": False,
        "is_super_admin": False,
        "company_id": uuid4(),
    }
    data.update(overrides)
    return AccessClaims(**data)


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password_returns_hash(self):
        """hash_password should return a bcrypt hash."""
        password = "mysecretpassword"
        hashed = hash_password(password)

        assert hashed != password
        assert hashed.startswith("$2b$")  # bcrypt prefix

    def test_hash_password_different_each_time(self):
        """hash_password should produce different hashes for same password."""
        password = "mysecretpassword"

        # Different due to random salt
        assert hash_password(password) != hash_password(password)

    def test_verify_password_correct(self):
        """verify_password should return True for correct password."""
        hashed = hash_password("mysecretpassword")

        assert verify_password("mysecretpassword", hashed) is True

    def test_verify_password_incorrect(self):
        """verify_password should return False for incorrect password."""
        hashed = hash_password("mysecretpassword")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_garbage_hash(self):
        """A stored value that is not a bcrypt hash never verifies."""
        assert verify_password("anything", "not-a-hash") is False


class TestAccessTokens:
    """Tests for access token signing and verification."""

    def test_sign_access_token_returns_jwt(self):
        """sign_access_token should return a three-part JWT string."""
        token = sign_access_token(make_claims())

        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_verify_round_trips_identity(self):
        """verify_access_token returns the identity that was signed."""
        claims = make_claims(isadmin=True)

        verified = verify_access_token(sign_access_token(claims))

        assert verified is not None
        assert verified.identity() == claims.identity()
        assert verified.iss == settings.jwt_issuer
        assert verified.aud == settings.jwt_audience
        assert verified.exp is not None

    def test_company_id_may_be_absent(self):
        """Users without a company carry a null company claim."""
        verified = verify_access_token(sign_access_token(make_claims(company_id=None)))

        assert verified is not None
        assert verified.company_id is None

    def test_expired_token_rejected(self):
        """verify_access_token returns None once the token expired."""
        token = sign_access_token(make_claims(), expires_delta=timedelta(seconds=-10))

        assert verify_access_token(token) is None

    def test_invalid_token_rejected(self):
        """Garbage input is rejected without raising."""
        assert verify_access_token("invalid.token.here") is None
        assert verify_access_token("") is None

    def test_wrong_secret_rejected(self):
        """A token signed with another secret is rejected."""
        payload = {
            "id": str(uuid4()),
            "email": "x@example.com",
            "name": "X",
            "type": "access",
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
        }
        token = jwt.encode(payload, "some-other-secret", algorithm=settings.jwt_algorithm)

        assert verify_access_token(token) is None

    def test_wrong_audience_rejected(self):
        """A token for another audience is rejected."""
        payload = {
            "id": str(uuid4()),
            "email": "x@example.com",
            "name": "X",
            "type": "access",
            "iss": settings.jwt_issuer,
            "aud": "someone-else",
        }
        token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        assert verify_access_token(token) is None

    def test_refresh_token_is_not_an_access_token(self):
        """Refresh tokens cannot be used as access tokens."""
        refresh = sign_refresh_token(uuid4(), "x@example.com")

        assert verify_access_token(refresh) is None

    def test_malformed_claims_rejected(self):
        """A correctly signed token with an invalid payload is rejected."""
        payload = {
            "id": "not-a-uuid",
            "email": "x@example.com",
            "name": "X",
            "type": "access",
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
        }
        token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        assert verify_access_token(token) is None


class TestRefreshAndSessionTokens:
    """Tests for refresh and session tokens."""

    def test_refresh_round_trip(self):
        """verify_refresh_token returns the signed user id and email."""
        user_id = uuid4()

        claims = verify_refresh_token(sign_refresh_token(user_id, "x@example.com"))

        assert claims is not None
        assert claims.id == user_id
        assert claims.email == "x@example.com"

    def test_access_token_is_not_a_refresh_token(self):
        """Access tokens are signed with another secret and type."""
        assert verify_refresh_token(sign_access_token(make_claims())) is None

    def test_expired_refresh_rejected(self):
        token = sign_refresh_token(uuid4(), "x@example.com", expires_delta=timedelta(seconds=-1))

        assert verify_refresh_token(token) is None

    def test_session_round_trip(self):
        """verify_session_token returns the user behind the cookie."""
        user_id = uuid4()

        claims = verify_session_token(sign_session_token(user_id))

        assert claims is not None
        assert claims.user_id == user_id

    def test_session_rejects_other_tokens(self):
        assert verify_session_token(sign_access_token(make_claims())) is None
        assert verify_session_token("garbage") is None


class TestHelpers:
    """Tests for header parsing, expiry checks and token hashing."""

    def test_extract_bearer_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_extract_bearer_token_rejects_other_formats(self):
        """Anything but ``Bearer <token>`` yields None."""
        assert extract_bearer_token(None) is None
        assert extract_bearer_token("") is None
        assert extract_bearer_token("Basic dXNlcjpwYXNz") is None
        assert extract_bearer_token("Bearer ") is None
        assert extract_bearer_token("bearer abc") is None

    def test_is_token_expired(self):
        live = sign_access_token(make_claims())
        expired = sign_access_token(make_claims(), expires_delta=timedelta(seconds=-5))

        assert is_token_expired(live) is False
        assert is_token_expired(expired) is True
        assert is_token_expired("not-a-jwt") is True

    def test_hash_token_is_sha256_hex(self):
        """hash_token should return a stable 64 character hex digest."""
        hashed = hash_token("some-token")

        assert len(hashed) == 64
        assert hashed == hash_token("some-token")
        assert hashed != hash_token("other-token")


class TestTokenPair:
    """Tests for the token pair wire format."""

    def test_serializes_camel_case(self):
        pair = TokenPair(access_token="a", refresh_token="r", expires_in=3600)

        assert pair.model_dump(by_alias=True) == {
            "accessToken": "a",
            "refreshToken": "r",
            "expiresIn": 3600,
        }

    def test_omits_missing_refresh_token(self):
        """Refresh responses carry no refreshToken key at all."""
        pair = TokenPair(access_token="a", expires_in=3600)

        assert "refreshToken" not in pair.model_dump(by_alias=True)
