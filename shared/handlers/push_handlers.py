"""
Push Delivery Handlers
Business logic for the Pub/Sub push endpoint that runs scan jobs.
"""

import logging
from typing import Awaitable, Callable

import azure.functions as func
from azure.core.exceptions import AzureError

from shared.app_context import AppContext
from shared.exceptions import ConfigurationError, ForbiddenError, UnauthorizedError
from shared.handlers.response_helpers import forbidden, ok, service_unavailable, unauthorized
from shared.models import PushEnvelope
from shared.services.push_verifier import extract_bearer_token

logger = logging.getLogger(__name__)


async def push_delivery_handler(
    req: func.HttpRequest,
    get_context: Callable[[], Awaitable[AppContext]]
) -> func.HttpResponse:
    """
    Authenticate a push delivery, then scan and report.

    401/403 are returned before the body is read, and a delivery without a
    bearer token is rejected before the app context is loaded. Once the
    delivery is authenticated the response is always 200: the outcome
    reaches the user through the callback message, and a non-2xx would make
    Pub/Sub redeliver.
    """
    try:
        token = extract_bearer_token(req.headers.get("Authorization"))
    except UnauthorizedError as e:
        logger.warning(f"Push delivery rejected: {e.message}")
        return unauthorized(e.message)

    try:
        ctx = await get_context()
    except (ConfigurationError, AzureError) as e:
        logger.error(f"Push delivery could not load the app context: {str(e)}", exc_info=True)
        return service_unavailable("Push delivery cannot be verified right now")

    try:
        await ctx.push_verifier.verify(token)
    except ForbiddenError as e:
        logger.warning(f"Push delivery rejected: {e.message}")
        return forbidden(e.message)

    message_id = None
    try:
        envelope = PushEnvelope.model_validate(req.get_json())
        message_id = envelope.message.message_id
        command = envelope.decode_command()

        logger.info(
            f"Processing scan of {command.url}",
            extra={"message_id": message_id, "team_id": command.team_id}
        )
        outcome = await ctx.scan_bridge.run(command)
        logger.info(f"Scan finished: {outcome.value}", extra={"message_id": message_id})

    except Exception as e:
        logger.error(
            f"Error processing push delivery: {str(e)}",
            exc_info=True,
            extra={"message_id": message_id}
        )

    return ok()
