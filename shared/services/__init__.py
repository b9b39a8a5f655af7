"""
Shared Services for the Scan Bridge

Services:
- oauth_provider: Slack OAuth client for the install exchange
- credential_vault: Encrypted per-principal scanner credentials
- scanner_client: CheckPhish scan submission and status
- slack_responder: Callback delivery to slash command response URLs
- push_verifier: Pub/Sub push identity verification
- scan_bridge: Submit-and-poll state machine
"""

from shared.services.credential_vault import CredentialVault
from shared.services.oauth_provider import SlackOAuthClient
from shared.services.push_verifier import PushTokenVerifier, extract_bearer_token
from shared.services.scan_bridge import ScanJobBridge
from shared.services.scanner_client import ScannerClient
from shared.services.slack_responder import SlackResponder

__all__ = [
    "CredentialVault",
    "SlackOAuthClient",
    "PushTokenVerifier",
    "extract_bearer_token",
    "ScanJobBridge",
    "ScannerClient",
    "SlackResponder",
]
