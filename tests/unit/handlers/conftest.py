"""
Pytest fixtures for handler tests.

Builds an AppContext from real repositories (in-memory table client), real
ciphers, and a Slack OAuth client whose code exchange is mocked.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from shared.app_context import AppContext
from shared.config import Settings
from shared.models import OAuthAccessResponse
from shared.services.oauth_provider import SlackOAuthClient

AUTHORIZE_URL = "https://slack.com/oauth/v2/authorize"


@pytest.fixture
def exchange_response():
    return OAuthAccessResponse(
        ok=True,
        team={"id": "T1", "name": "Acme Corp"},
        authed_user={"id": "U1", "scope": "", "token_type": "user"},
    )


@pytest.fixture
def oauth_client(exchange_response):
    client = SlackOAuthClient(
        client_id="123.456",
        client_secret="client-secret",
        authorize_url=AUTHORIZE_URL,
        token_url="https://slack.com/api/oauth.v2.access",
    )
    client.exchange_code = AsyncMock(return_value=exchange_response)
    return client


@pytest.fixture
def push_verifier():
    verifier = MagicMock()
    verifier.verify = AsyncMock(return_value={"email": "pubsub@example.iam.gserviceaccount.com"})
    return verifier


@pytest.fixture
def scan_bridge():
    bridge = MagicMock()
    bridge.run = AsyncMock()
    return bridge


@pytest.fixture
def app_context(csrf_repo, state_codec, credential_vault, oauth_client, push_verifier, scan_bridge):
    return AppContext(
        settings=Settings(_env_file=None),
        csrf_tokens=csrf_repo,
        state_tokens=state_codec,
        credentials=credential_vault,
        oauth=oauth_client,
        push_verifier=push_verifier,
        scan_bridge=scan_bridge,
    )
