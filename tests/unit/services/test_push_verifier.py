"""
Unit tests for push delivery verification

Tokens are signed with a locally generated RSA key; the JWKS client is
mocked to hand back the matching public key.
"""

import time

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from unittest.mock import MagicMock

from shared.exceptions import ForbiddenError, UnauthorizedError
from shared.services.push_verifier import PushTokenVerifier, extract_bearer_token

AUDIENCE = "https://scan.example.com/push"
SERVICE_ACCOUNT = "pubsub-push@scan-project.iam.gserviceaccount.com"
ISSUERS = ["https://accounts.google.com", "accounts.google.com"]


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def other_signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwk_client(signing_key):
    client = MagicMock()
    client.get_signing_key_from_jwt.return_value = MagicMock(key=signing_key.public_key())
    return client


@pytest.fixture
def verifier(jwk_client):
    return PushTokenVerifier(
        audience=AUDIENCE,
        service_account=SERVICE_ACCOUNT,
        jwks_url="https://www.googleapis.com/oauth2/v3/certs",
        issuers=ISSUERS,
        jwk_client=jwk_client,
    )


def make_token(key, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": AUDIENCE,
        "email": SERVICE_ACCOUNT,
        "email_verified": True,
        "iat": now,
        "exp": now + 3600,
        "sub": "1234567890",
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, key, algorithm="RS256", headers={"kid": "test-key"})


class TestExtractBearerToken:
    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic dXNlcjpwYXNz", "abc"])
    def test_missing_token_is_unauthorized(self, header):
        with pytest.raises(UnauthorizedError):
            extract_bearer_token(header)


class TestPushTokenVerifier:
    async def test_valid_token(self, verifier, signing_key, jwk_client):
        token = make_token(signing_key)

        claims = await verifier.verify(token)

        assert claims["email"] == SERVICE_ACCOUNT
        jwk_client.get_signing_key_from_jwt.assert_called_once_with(token)

    async def test_short_issuer_form_is_accepted(self, verifier, signing_key):
        claims = await verifier.verify(make_token(signing_key, iss="accounts.google.com"))

        assert claims["iss"] == "accounts.google.com"

    async def test_principal_mismatch_is_forbidden(self, verifier, signing_key):
        token = make_token(signing_key, email="attacker@evil-project.iam.gserviceaccount.com")

        with pytest.raises(ForbiddenError, match="principal mismatch"):
            await verifier.verify(token)

    async def test_unverified_email_is_forbidden(self, verifier, signing_key):
        with pytest.raises(ForbiddenError, match="principal mismatch"):
            await verifier.verify(make_token(signing_key, email_verified=False))

    async def test_wrong_audience_is_forbidden(self, verifier, signing_key):
        with pytest.raises(ForbiddenError, match="audience"):
            await verifier.verify(make_token(signing_key, aud="https://other.example.com/push"))

    async def test_wrong_issuer_is_forbidden(self, verifier, signing_key):
        with pytest.raises(ForbiddenError):
            await verifier.verify(make_token(signing_key, iss="https://evil.example.com"))

    async def test_expired_token_is_forbidden(self, verifier, signing_key):
        past = int(time.time()) - 7200

        with pytest.raises(ForbiddenError, match="expired"):
            await verifier.verify(make_token(signing_key, iat=past, exp=past + 60))

    async def test_bad_signature_is_forbidden(self, verifier, other_signing_key):
        with pytest.raises(ForbiddenError):
            await verifier.verify(make_token(other_signing_key))

    async def test_garbage_token_is_forbidden(self, verifier, jwk_client):
        jwk_client.get_signing_key_from_jwt.side_effect = jwt.DecodeError("Invalid token")

        with pytest.raises(ForbiddenError):
            await verifier.verify("not-a-jwt")

    async def test_jwks_fetch_failure_is_forbidden(self, verifier, signing_key, jwk_client):
        jwk_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError("unreachable")

        with pytest.raises(ForbiddenError):
            await verifier.verify(make_token(signing_key))

    async def test_unconfigured_verifier_rejects_everything(self, jwk_client, signing_key):
        verifier = PushTokenVerifier(
            audience=None,
            service_account=None,
            jwks_url="https://www.googleapis.com/oauth2/v3/certs",
            issuers=ISSUERS,
            jwk_client=jwk_client,
        )

        with pytest.raises(ForbiddenError, match="not configured"):
            await verifier.verify(make_token(signing_key))
        jwk_client.get_signing_key_from_jwt.assert_not_called()
