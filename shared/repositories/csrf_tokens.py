"""
CSRF Token Repository
Single-use, time-limited tokens for the install flow
"""

import logging
import secrets
import time
from typing import Callable

from azure.core.exceptions import (
    AzureError,
    ResourceModifiedError,
    ResourceNotFoundError,
)

from shared.exceptions import InvalidCSRFError, ServiceUnavailableError

from .base import BaseRepository

logger = logging.getLogger(__name__)

CSRF_TABLE = "CSRFTokens"
CSRF_PARTITION = "csrf"
DEFAULT_LIFETIME_SECONDS = 3600


class CSRFTokenRepository(BaseRepository):
    """
    Repository for install CSRF tokens

    Tokens are stored in the CSRFTokens table with PartitionKey "csrf" and
    RowKey = token. Redemption claims the row with an ETag-conditional
    update before deleting it, so two concurrent validations of the same
    token can never both succeed.
    """

    def __init__(
        self,
        connection_string: str | None,
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(CSRF_TABLE, connection_string)
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock

    async def issue(self) -> str:
        """
        Generate and store a new token

        Returns:
            128-bit random token, hex encoded

        Raises:
            ServiceUnavailableError: If the token store cannot be written
        """
        token = secrets.token_hex(16)
        entity = {
            "PartitionKey": CSRF_PARTITION,
            "RowKey": token,
            "IssuedAt": self._clock(),
            "Redeemed": False,
        }

        try:
            await self.insert(entity)
        except AzureError as e:
            logger.error(f"Failed to store CSRF token: {str(e)}", exc_info=True)
            raise ServiceUnavailableError("CSRF token store is unavailable") from e

        logger.info("Issued CSRF token")
        return token

    async def validate(self, token: str | None) -> None:
        """
        Redeem a token exactly once

        Raises:
            InvalidCSRFError: If the token is empty, unknown, expired or
                already redeemed
            ServiceUnavailableError: If the token store cannot be reached
        """
        if not token:
            raise InvalidCSRFError("CSRF token is missing")

        try:
            entity = await self.get_by_id(CSRF_PARTITION, token)
            if entity is None or entity.get("Redeemed"):
                logger.warning("CSRF token not found or already redeemed")
                raise InvalidCSRFError()

            issued_at = float(entity.get("IssuedAt", 0))
            if self._clock() - issued_at > self.lifetime_seconds:
                logger.warning("CSRF token expired")
                raise InvalidCSRFError("CSRF token has expired")

            entity["Redeemed"] = True
            try:
                await self.update_with_etag(entity)
            except (ResourceModifiedError, ResourceNotFoundError):
                logger.warning("CSRF token redeemed concurrently")
                raise InvalidCSRFError() from None

            await self.delete(CSRF_PARTITION, token)

        except AzureError as e:
            logger.error(f"Failed to redeem CSRF token: {str(e)}", exc_info=True)
            raise ServiceUnavailableError("CSRF token store is unavailable") from e

        logger.info("Redeemed CSRF token")
