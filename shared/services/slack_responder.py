"""
Slack Responder
Delivers messages to a slash command response_url
"""

import logging

import aiohttp

from shared.exceptions import UpstreamError
from shared.models import SlackMessage

logger = logging.getLogger(__name__)


class SlackResponder:
    def __init__(self, timeout: int = 10):
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def send(self, response_url: str, message: SlackMessage) -> None:
        """
        POST a message to the caller-supplied callback URL

        Raises:
            UpstreamError: If Slack does not accept the message
        """
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(response_url, json=message.to_payload()) as response:
                    if not 200 <= response.status < 300:
                        body = await response.text()
                        logger.error(f"Callback delivery failed: HTTP {response.status} {body[:200]}")
                        raise UpstreamError(
                            f"Callback delivery failed: HTTP {response.status}",
                            service="slack",
                            status_code=response.status
                        )
        except aiohttp.ClientError as e:
            logger.error(f"Network error delivering callback: {str(e)}")
            raise UpstreamError(f"Callback delivery failed: {str(e)}", service="slack") from e

        logger.info(f"Delivered callback message: {message.text}")
