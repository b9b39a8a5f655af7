"""
Push Delivery Verifier
Authenticates Pub/Sub push deliveries by their signed OIDC identity token
"""

import asyncio
import logging

import jwt
from jwt import PyJWKClient

from shared.exceptions import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: str | None) -> str:
    """
    Extract the token from an `Authorization: Bearer <token>` header

    Raises:
        UnauthorizedError: If the header or the token is missing
    """
    if not authorization:
        raise UnauthorizedError("Missing Authorization header")

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError("Missing bearer token")

    return token


class PushTokenVerifier:
    """
    Verifies push identity tokens

    A token is accepted only if it is RS256-signed by a key from the JWKS
    endpoint, bound to the configured audience, issued by an accepted
    issuer, and names the configured service account as a verified email.
    """

    def __init__(
        self,
        audience: str | None,
        service_account: str | None,
        jwks_url: str,
        issuers: list[str],
        jwk_client: PyJWKClient | None = None
    ):
        self.audience = audience
        self.service_account = service_account
        self.issuers = issuers
        self._jwk_client = jwk_client or PyJWKClient(jwks_url)

    async def verify(self, token: str) -> dict:
        """
        Verify a push identity token

        Returns:
            Verified claims

        Raises:
            ForbiddenError: On any verification failure
        """
        if not self.audience or not self.service_account:
            logger.error("Push audience or service account is not configured")
            raise ForbiddenError("Push verification is not configured")

        try:
            # PyJWKClient fetches the key set with blocking I/O
            signing_key = await asyncio.to_thread(self._jwk_client.get_signing_key_from_jwt, token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.audience,
                options={"require": ["exp", "iat", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Push token has expired")
            raise ForbiddenError("Push token has expired") from None
        except jwt.InvalidAudienceError:
            logger.warning("Push token audience mismatch")
            raise ForbiddenError("Push token audience mismatch") from None
        except jwt.PyJWTError as e:
            logger.warning(f"Push token validation failed: {str(e)}")
            raise ForbiddenError("Push token validation failed") from None

        if claims.get("iss") not in self.issuers:
            logger.warning(f"Push token issuer not accepted: {claims.get('iss')}")
            raise ForbiddenError("Push token issuer not accepted")

        if claims.get("email") != self.service_account or claims.get("email_verified") is not True:
            logger.warning(f"Push token principal mismatch: {claims.get('email')}")
            raise ForbiddenError("Push token principal mismatch")

        logger.debug(f"Verified push token for {claims.get('email')}")
        return claims
