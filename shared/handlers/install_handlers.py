"""
Install Flow Handlers
Business logic for the Slack install / OAuth exchange endpoints.

AwaitingInstall -> AwaitingProviderCallback -> Completed | Failed
"""

import html
import logging
from urllib.parse import parse_qs, urlencode

import azure.functions as func

from shared.app_context import AppContext
from shared.exceptions import (
    CryptoError,
    InvalidCSRFError,
    ServiceUnavailableError,
)
from shared.handlers.response_helpers import (
    bad_request,
    html_response,
    invalid_csrf,
    redirect,
    service_unavailable,
)
from shared.models import StateToken

logger = logging.getLogger(__name__)

SUCCESS_PATH = "/success"
FAILED_PATH = "/failed"

EXPIRED_SESSION_ERROR = "Your install session has expired. Please start the install again."
GENERIC_INSTALL_ERROR = "Something went wrong while installing the app. Please try again."

INSTALL_PAGE = """<!DOCTYPE html>
<html>
<head><title>Install Scan Bridge</title></head>
<body>
<h1>Install Scan Bridge</h1>
<form method="post" action="/install">
<input type="hidden" name="csrftoken" value="{csrf_token}">
<label for="apiKey">CheckPhish API key (optional)</label>
<input type="password" id="apiKey" name="apiKey" autocomplete="off">
<button type="submit">Add to Slack</button>
</form>
</body>
</html>
"""


def render_install_page(csrf_token: str) -> str:
    return INSTALL_PAGE.format(csrf_token=html.escape(csrf_token, quote=True))


def render_result_page(title: str, message: str) -> str:
    return (
        f"<!DOCTYPE html><html><head><title>{html.escape(title)}</title></head>"
        f"<body><p>{html.escape(message)}</p></body></html>"
    )


def failed_redirect(error: str) -> func.HttpResponse:
    return redirect(f"{FAILED_PATH}?{urlencode({'error': error})}")


def parse_install_form(req: func.HttpRequest) -> dict:
    """
    Read the install submission as a flat dict of strings

    Accepts application/x-www-form-urlencoded or JSON bodies.

    Raises:
        ValueError: If a JSON body is not an object
    """
    content_type = (req.headers.get("Content-Type") or "").lower()

    if "application/json" in content_type:
        body = req.get_json()
        if not isinstance(body, dict):
            raise ValueError("Install submission must be a JSON object")
        return {k: v for k, v in body.items() if isinstance(v, str)}

    fields = parse_qs(req.get_body().decode("utf-8"), keep_blank_values=True)
    return {k: v[0] for k, v in fields.items() if v}


async def install_page_handler(req: func.HttpRequest, ctx: AppContext) -> func.HttpResponse:
    """Render the install form carrying a fresh CSRF token."""
    try:
        csrf_token = await ctx.csrf_tokens.issue()
    except ServiceUnavailableError as e:
        return service_unavailable(e.message)

    return html_response(render_install_page(csrf_token))


async def submit_install_handler(req: func.HttpRequest, ctx: AppContext) -> func.HttpResponse:
    """
    Accept the install form and redirect to Slack with an encrypted state.

    The state carries a fresh CSRF token for the callback leg and the
    trimmed API key when one was supplied.
    """
    try:
        form = parse_install_form(req)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Malformed install submission: {str(e)}")
        return bad_request("Invalid install submission")

    try:
        await ctx.csrf_tokens.validate(form.get("csrftoken"))
    except InvalidCSRFError as e:
        logger.warning(f"Install submission rejected: {e.message}")
        return invalid_csrf(e.message)
    except ServiceUnavailableError as e:
        return service_unavailable(e.message)

    try:
        next_csrf_token = await ctx.csrf_tokens.issue()
    except ServiceUnavailableError as e:
        return service_unavailable(e.message)

    api_key = (form.get("apiKey") or "").strip() or None
    state = ctx.state_tokens.encode(StateToken(csrf_token=next_csrf_token, api_key=api_key))

    logger.info(
        "Redirecting installer to Slack authorization",
        extra={"has_api_key": api_key is not None}
    )
    return redirect(ctx.oauth.authorize_url(state))


async def oauth_callback_handler(req: func.HttpRequest, ctx: AppContext) -> func.HttpResponse:
    """
    Complete the install: validate state, exchange the code, persist the record.

    Every failure ends on the failure page; nothing is persisted unless the
    state token and its CSRF token are valid.
    """
    error = req.params.get("error")
    if error:
        logger.info(f"Slack reported an install error: {error}")
        return failed_redirect(error)

    code = req.params.get("code")
    if not code:
        logger.warning("OAuth callback without an authorization code")
        return failed_redirect(GENERIC_INSTALL_ERROR)

    try:
        state = ctx.state_tokens.decode(req.params.get("state"))
        await ctx.csrf_tokens.validate(state.csrf_token)

        exchange = await ctx.oauth.exchange_code(code)
        record = await ctx.credentials.store(exchange, api_key=state.api_key)

    except InvalidCSRFError as e:
        logger.warning(f"OAuth callback rejected: {e.message}")
        return failed_redirect(EXPIRED_SESSION_ERROR)

    except CryptoError as e:
        logger.warning(f"OAuth callback carried an unreadable state token: {e.message}")
        return failed_redirect(GENERIC_INSTALL_ERROR)

    except Exception as e:
        logger.error(f"Error completing install: {str(e)}", exc_info=True)
        return failed_redirect(GENERIC_INSTALL_ERROR)

    logger.info(
        f"Install completed for {record.key}",
        extra={"team_id": record.team_id, "has_credential": record.has_credential}
    )
    return redirect(f"{SUCCESS_PATH}?{urlencode({'team': exchange.team_name})}")


async def install_success_handler(req: func.HttpRequest) -> func.HttpResponse:
    team = req.params.get("team") or "Unknown Team"
    return html_response(render_result_page("Installed", f"Scan Bridge was installed to {team}."))


async def install_failed_handler(req: func.HttpRequest) -> func.HttpResponse:
    error = req.params.get("error") or "Unknown Error"
    return html_response(render_result_page("Install failed", f"Install failed: {error}"))
