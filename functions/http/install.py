"""
Install endpoints
Slack app install form and OAuth exchange
"""

import azure.functions as func

from shared.app_context import get_app_context
from shared.handlers.install_handlers import (
    install_failed_handler,
    install_page_handler,
    install_success_handler,
    oauth_callback_handler,
    submit_install_handler,
)

# Create blueprint for install endpoints
bp = func.Blueprint()


@bp.function_name("install_page")
@bp.route(route="install", methods=["GET"])
async def install_page(req: func.HttpRequest) -> func.HttpResponse:
    """GET /install - Render the install form with a fresh CSRF token"""
    return await install_page_handler(req, await get_app_context())


@bp.function_name("install_submit")
@bp.route(route="install", methods=["POST"])
async def install_submit(req: func.HttpRequest) -> func.HttpResponse:
    """POST /install - Validate CSRF and redirect to Slack authorization"""
    return await submit_install_handler(req, await get_app_context())


@bp.function_name("install_callback")
@bp.route(route="callback", methods=["GET"])
async def install_callback(req: func.HttpRequest) -> func.HttpResponse:
    """GET /callback - Complete the OAuth exchange"""
    return await oauth_callback_handler(req, await get_app_context())


@bp.function_name("install_success")
@bp.route(route="success", methods=["GET"])
async def install_success(req: func.HttpRequest) -> func.HttpResponse:
    """GET /success?team=<name>"""
    return await install_success_handler(req)


@bp.function_name("install_failed")
@bp.route(route="failed", methods=["GET"])
async def install_failed(req: func.HttpRequest) -> func.HttpResponse:
    """GET /failed?error=<text>"""
    return await install_failed_handler(req)
