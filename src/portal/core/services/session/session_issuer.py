"""Signed session credentials for the portal frontend."""

import time
from collections.abc import Callable

from authlib.jose import JoseError, JsonWebToken
from loguru import logger

from src.portal.core.exceptions import InvalidCredential, Unauthenticated
from src.portal.core.models.session import Identity, SessionClaims
from src.portal.runtime.config.config_data import JWTConfig


class SessionIssuer:
    """Issues and verifies the stateless session credential.

    The credential is a JWT signed with a server-held secret. Verification
    needs no database lookup; the membership snapshot inside it stays
    authoritative until it expires.
    """

    def __init__(
        self,
        secret: str,
        jwt_config: JWTConfig,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("Session signing secret not configured")
        self._secret = secret
        self._config = jwt_config
        self._clock = clock
        # Only the configured algorithm is accepted; this also rules out ``none``.
        self._jwt = JsonWebToken([jwt_config.algorithm])

    def issue(self, identity: Identity) -> str:
        """Sign a credential for ``identity``."""
        now = int(self._clock())
        payload = {
            "sub": identity.external_id,
            "name": identity.display_name,
            "avatar": identity.avatar_ref,
            "is_member": identity.is_member,
            "iat": now,
            "exp": now + self._config.lifetime_seconds,
            "iss": self._config.gen_issuer,
            "aud": self._config.audience,
        }
        header = {"alg": self._config.algorithm, "typ": "JWT"}
        token = self._jwt.encode(header, payload, self._secret)
        return token.decode() if isinstance(token, bytes) else token

    def verify(self, token: str | None) -> Identity:
        """Return the identity asserted by ``token``.

        Raises:
            Unauthenticated: No credential was presented
            InvalidCredential: Signature, issuer, audience or expiry failed
        """
        if not token:
            raise Unauthenticated()

        claims_options = {
            "iss": {"essential": True, "value": self._config.gen_issuer},
            "aud": {"essential": True, "value": self._config.audience},
            "exp": {"essential": True},
            "sub": {"essential": True},
        }
        try:
            claims = self._jwt.decode(token, self._secret, claims_options=claims_options)
            claims.validate(now=int(self._clock()), leeway=self._config.clock_skew)
            session_claims = SessionClaims.model_validate(dict(claims))
        except (JoseError, ValueError) as exc:
            # Callers only ever see the generic error.
            logger.debug("Session credential rejected: {}", type(exc).__name__)
            raise InvalidCredential() from exc

        return session_claims.to_identity()
