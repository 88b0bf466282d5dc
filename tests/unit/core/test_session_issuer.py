"""Unit tests for the session credential issuer."""

import pytest
from authlib.jose import jwt

from src.portal.core.exceptions import InvalidCredential, Unauthenticated
from src.portal.core.models.session import Identity
from src.portal.core.services import SessionIssuer
from src.portal.runtime.config.config_data import JWTConfig

SECRET = "unit-test-secret"


class FrozenClock:
    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def issuer(clock: FrozenClock) -> SessionIssuer:
    return SessionIssuer(SECRET, JWTConfig(), clock=clock)


@pytest.fixture
def identity() -> Identity:
    return Identity(external_id="42", display_name="alice", avatar_ref="hash", is_member=True)


class TestSessionIssuer:
    """Issue and verify session credentials."""

    def test_round_trip_returns_same_identity(self, issuer, identity):
        token = issuer.issue(identity)

        assert issuer.verify(token) == identity

    def test_round_trip_without_avatar(self, issuer):
        identity = Identity(external_id="7", display_name="bob", avatar_ref=None, is_member=False)

        assert issuer.verify(issuer.issue(identity)) == identity

    def test_claims_carry_issuer_audience_and_lifetime(self, issuer, identity, clock):
        claims = jwt.decode(issuer.issue(identity), SECRET)

        assert claims["iss"] == "whitelist-portal"
        assert claims["aud"] == "frontend"
        assert claims["sub"] == "42"
        assert claims["iat"] == int(clock.now)
        assert claims["exp"] == int(clock.now) + 3600

    def test_valid_until_expiry(self, issuer, identity, clock):
        token = issuer.issue(identity)
        clock.now += 3599

        assert issuer.verify(token).external_id == "42"

    def test_expired_credential_is_rejected(self, issuer, identity, clock):
        token = issuer.issue(identity)
        clock.now += 3601

        with pytest.raises(InvalidCredential):
            issuer.verify(token)

    def test_missing_credential_is_unauthenticated(self, issuer):
        with pytest.raises(Unauthenticated):
            issuer.verify(None)
        with pytest.raises(Unauthenticated):
            issuer.verify("")

    def test_wrong_secret_is_rejected(self, identity, clock):
        token = SessionIssuer("another-secret", JWTConfig(), clock=clock).issue(identity)

        with pytest.raises(InvalidCredential):
            SessionIssuer(SECRET, JWTConfig(), clock=clock).verify(token)

    def test_wrong_audience_is_rejected(self, identity, clock):
        token = SessionIssuer(SECRET, JWTConfig(audience="other"), clock=clock).issue(identity)

        with pytest.raises(InvalidCredential):
            SessionIssuer(SECRET, JWTConfig(), clock=clock).verify(token)

    def test_wrong_issuer_is_rejected(self, identity, clock):
        token = SessionIssuer(SECRET, JWTConfig(gen_issuer="someone-else"), clock=clock).issue(identity)

        with pytest.raises(InvalidCredential):
            SessionIssuer(SECRET, JWTConfig(), clock=clock).verify(token)

    def test_garbage_is_rejected(self, issuer):
        with pytest.raises(InvalidCredential):
            issuer.verify("not-a-jwt")

    def test_tampered_payload_is_rejected(self, issuer, identity):
        header, payload, signature = issuer.issue(identity).split(".")
        tampered = f"{header}.{payload[:-2]}AA.{signature}"

        with pytest.raises(InvalidCredential):
            issuer.verify(tampered)

    def test_empty_secret_is_refused(self):
        with pytest.raises(ValueError):
            SessionIssuer("", JWTConfig())
