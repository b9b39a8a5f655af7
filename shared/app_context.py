"""
Application Context
Explicitly constructed collaborators shared by every request handler.
"""

import asyncio
import logging
from dataclasses import dataclass

from shared.config import Settings, get_settings
from shared.crypto import CredentialCipher, StateTokenCipher
from shared.keyvault import KeyVaultClient
from shared.repositories.credentials import CredentialRepository
from shared.repositories.csrf_tokens import CSRFTokenRepository
from shared.secrets import AppSecrets, SecretsCache, load_app_secrets
from shared.services.credential_vault import CredentialVault
from shared.services.oauth_provider import SlackOAuthClient
from shared.services.push_verifier import PushTokenVerifier
from shared.services.scan_bridge import ScanJobBridge
from shared.services.scanner_client import ScannerClient
from shared.services.slack_responder import SlackResponder
from shared.state_token import StateTokenCodec

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    csrf_tokens: CSRFTokenRepository
    state_tokens: StateTokenCodec
    credentials: CredentialVault
    oauth: SlackOAuthClient
    push_verifier: PushTokenVerifier
    scan_bridge: ScanJobBridge


def build_app_context(settings: Settings, app_secrets: AppSecrets) -> AppContext:
    """Wire every collaborator from settings and resolved secrets."""
    vault = CredentialVault(
        repository=CredentialRepository(settings.storage_connection_string),
        cipher=CredentialCipher(app_secrets.api_key_cipher_key),
        default_api_key=app_secrets.default_scanner_api_key,
    )

    return AppContext(
        settings=settings,
        csrf_tokens=CSRFTokenRepository(
            settings.storage_connection_string,
            lifetime_seconds=settings.csrf_token_lifetime_seconds,
        ),
        state_tokens=StateTokenCodec(
            StateTokenCipher(app_secrets.state_token_key, app_secrets.state_token_iv)
        ),
        credentials=vault,
        oauth=SlackOAuthClient(
            client_id=app_secrets.slack_client_id,
            client_secret=app_secrets.slack_client_secret,
            authorize_url=settings.slack_authorize_url,
            token_url=settings.slack_token_url,
            scopes=settings.slack_scopes,
            user_scopes=settings.slack_user_scopes,
            redirect_uri=settings.oauth_redirect_uri,
            timeout=settings.http_timeout_seconds,
        ),
        push_verifier=PushTokenVerifier(
            audience=settings.push_audience,
            service_account=settings.push_service_account,
            jwks_url=settings.push_jwks_url,
            issuers=settings.push_issuers,
        ),
        scan_bridge=ScanJobBridge(
            vault=vault,
            scanner=ScannerClient(
                submit_url=settings.scanner_submit_url,
                status_url=settings.scanner_status_url,
                insights=settings.scanner_insights,
                timeout=settings.http_timeout_seconds,
            ),
            responder=SlackResponder(timeout=settings.http_timeout_seconds),
            poll_interval=settings.poll_interval_seconds,
            max_retries=settings.poll_max_retries,
        ),
    )


async def create_app_context(settings: Settings | None = None) -> AppContext:
    """
    Single initialization point: load secrets from Key Vault and build the context.

    Raises:
        ConfigurationError: If a setting or secret is missing or malformed
    """
    settings = settings or get_settings()

    async with KeyVaultClient(settings.key_vault_url) as keyvault:
        app_secrets = await load_app_secrets(settings, SecretsCache(keyvault))

    logger.info("Application context created")
    return build_app_context(settings, app_secrets)


_context: AppContext | None = None
_context_lock = asyncio.Lock()


async def get_app_context() -> AppContext:
    """Create the context on first use and reuse it for the life of the worker."""
    global _context

    if _context is None:
        async with _context_lock:
            if _context is None:
                _context = await create_app_context()

    return _context
