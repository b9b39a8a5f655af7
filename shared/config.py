"""
Application Configuration

Uses pydantic-settings for environment variable loading with validation.
Secret values (client secret, cipher keys, default scanner key) are NOT read
here; settings only name the Key Vault secrets that hold them.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

GOOGLE_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables use the SCANBRIDGE_ prefix, except the two
    connection settings which also accept the Azure Functions names.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCANBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # Azure resources
    # ==========================================================================
    key_vault_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SCANBRIDGE_KEY_VAULT_URL", "AZURE_KEY_VAULT_URL"),
        description="Azure Key Vault URL holding the application secrets"
    )

    storage_connection_string: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SCANBRIDGE_STORAGE_CONNECTION_STRING", "AzureWebJobsStorage"),
        description="Azure Storage connection string for Table Storage"
    )

    # ==========================================================================
    # Slack OAuth
    # ==========================================================================
    slack_authorize_url: str = Field(
        default="https://slack.com/oauth/v2/authorize",
        description="Slack OAuth authorization endpoint"
    )

    slack_token_url: str = Field(
        default="https://slack.com/api/oauth.v2.access",
        description="Slack OAuth code exchange endpoint"
    )

    slack_scopes: str = Field(
        default="commands",
        description="Comma-separated bot scopes requested on install"
    )

    slack_user_scopes: str = Field(
        default="",
        description="Comma-separated user scopes requested on install"
    )

    oauth_redirect_uri: str | None = Field(
        default=None,
        description="Redirect URI registered with Slack (omit to use the app default)"
    )

    # ==========================================================================
    # Scanner
    # ==========================================================================
    scanner_submit_url: str = Field(
        default="https://developers.checkphish.ai/api/neo/scan",
        description="Scanner job submission endpoint"
    )

    scanner_status_url: str = Field(
        default="https://developers.checkphish.ai/api/neo/scan/status",
        description="Scanner job status endpoint"
    )

    scanner_insights: bool = Field(
        default=True,
        description="Request an insights link with each job status"
    )

    # ==========================================================================
    # Polling
    # ==========================================================================
    poll_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Delay between job status polls"
    )

    poll_max_retries: int = Field(
        default=30,
        ge=0,
        description="Polls allowed after the first before giving up"
    )

    # ==========================================================================
    # CSRF
    # ==========================================================================
    csrf_token_lifetime_seconds: int = Field(
        default=3600,
        gt=0,
        description="Lifetime of an install CSRF token"
    )

    # ==========================================================================
    # Push delivery identity
    # ==========================================================================
    push_audience: str | None = Field(
        default=None,
        description="Audience the push identity token must be bound to"
    )

    push_service_account: str | None = Field(
        default=None,
        description="Email of the service account allowed to publish pushes"
    )

    push_jwks_url: str = Field(
        default=GOOGLE_JWKS_URL,
        description="JWKS endpoint used to verify push identity tokens"
    )

    push_issuers: list[str] = Field(
        default=["https://accounts.google.com", "accounts.google.com"],
        description="Accepted issuers for push identity tokens"
    )

    # ==========================================================================
    # Key Vault secret names
    # ==========================================================================
    slack_client_id_secret: str = Field(default="slack-client-id")
    slack_client_secret_secret: str = Field(default="slack-client-secret")
    state_token_key_secret: str = Field(default="state-token-cipher-key")
    state_token_iv_secret: str = Field(default="state-token-cipher-iv")
    api_key_cipher_key_secret: str = Field(default="api-key-cipher-key")
    default_scanner_api_key_secret: str = Field(default="default-checkphish-api-key")

    # ==========================================================================
    # HTTP
    # ==========================================================================
    http_timeout_seconds: int = Field(
        default=10,
        gt=0,
        description="Timeout for outbound HTTP requests"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance (cached after first call)
    """
    return Settings()
