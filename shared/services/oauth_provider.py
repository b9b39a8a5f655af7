"""
Slack OAuth Client
Builds the authorize URL and exchanges authorization codes for tokens
"""

import asyncio
import logging
from urllib.parse import urlencode

import aiohttp

from shared.exceptions import UpstreamError
from shared.models import OAuthAccessResponse

logger = logging.getLogger(__name__)


class SlackOAuthClient:
    """
    Client for the Slack three-legged install exchange

    Features:
    - Authorize URL construction (scopes, user scopes, opaque state)
    - Code exchange authenticated with HTTP Basic (client id / secret)
    - Retry logic with exponential backoff on network errors and 5xx
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        authorize_url: str,
        token_url: str,
        scopes: str = "commands",
        user_scopes: str = "",
        redirect_uri: str | None = None,
        timeout: int = 10,
        max_retries: int = 3
    ):
        self.client_id = client_id
        self._client_secret = client_secret
        self.authorize_endpoint = authorize_url
        self.token_url = token_url
        self.scopes = scopes
        self.user_scopes = user_scopes
        self.redirect_uri = redirect_uri
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_retries = max_retries
        logger.debug(f"SlackOAuthClient initialized (timeout={timeout}s, max_retries={max_retries})")

    def authorize_url(self, state: str) -> str:
        """
        Build the provider authorization URL carrying an opaque state

        Args:
            state: Encrypted state token

        Returns:
            Absolute URL to redirect the installer to
        """
        params = {
            "client_id": self.client_id,
            "scope": self.scopes,
            "user_scope": self.user_scopes,
        }
        if self.redirect_uri:
            params["redirect_uri"] = self.redirect_uri
        params["state"] = state

        return f"{self.authorize_endpoint}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> OAuthAccessResponse:
        """
        Exchange an authorization code for tokens (oauth.v2.access)

        Args:
            code: Authorization code from the OAuth callback

        Returns:
            Parsed exchange response

        Raises:
            UpstreamError: If Slack rejects the code or retries are exhausted
        """
        payload = {"code": code}
        if self.redirect_uri:
            payload["redirect_uri"] = self.redirect_uri

        logger.info(f"Exchanging authorization code for token at {self.token_url}")

        response_data = await self._make_token_request(payload)

        if not response_data.get("ok"):
            error = response_data.get("error") or "unknown_error"
            logger.error(f"Slack rejected the code exchange: {error}")
            raise UpstreamError(f"OAuth exchange failed: {error}", service="slack")

        result = OAuthAccessResponse.model_validate(response_data)
        if not result.team_id or not result.user_id:
            raise UpstreamError("OAuth exchange response is missing team or user", service="slack")

        logger.info(f"Token exchange successful for team {result.team_id}")
        return result

    async def _make_token_request(self, payload: dict) -> dict:
        """
        Make token request with retry logic

        Returns:
            Response JSON

        Raises:
            UpstreamError: On 4xx, or after all retries fail
        """
        last_error = None
        auth = aiohttp.BasicAuth(self.client_id, self._client_secret)

        for attempt in range(self.max_retries):
            try:
                async with aiohttp.ClientSession(timeout=self.timeout) as session:
                    async with session.post(self.token_url, data=payload, auth=auth) as response:
                        # Server errors (5xx) - retry
                        if response.status >= 500:
                            last_error = f"Server error: HTTP {response.status}"
                            logger.warning(
                                f"Token request failed: {last_error} (attempt {attempt + 1}/{self.max_retries})"
                            )
                        # Client errors (4xx) - don't retry
                        elif response.status >= 400:
                            logger.error(f"Token request failed with client error: HTTP {response.status}")
                            raise UpstreamError(
                                f"OAuth exchange failed: HTTP {response.status}",
                                service="slack",
                                status_code=response.status
                            )
                        else:
                            return await response.json(content_type=None)

            except aiohttp.ClientError as e:
                logger.warning(
                    f"Network error during token request: {str(e)} (attempt {attempt + 1}/{self.max_retries})"
                )
                last_error = str(e)

            except TimeoutError:
                logger.warning(f"Token request timed out (attempt {attempt + 1}/{self.max_retries})")
                last_error = "Request timed out"

            if attempt < self.max_retries - 1:
                # Exponential backoff: 1s, 2s, 4s
                await asyncio.sleep(2 ** attempt)

        logger.error(f"Token request failed after {self.max_retries} attempts: {last_error}")
        raise UpstreamError(
            f"OAuth exchange failed after {self.max_retries} attempts: {last_error}",
            service="slack"
        )
