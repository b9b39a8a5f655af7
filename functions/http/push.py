"""
Push endpoint
Pub/Sub push subscription target that runs scan jobs
"""

import azure.functions as func

from shared.app_context import get_app_context
from shared.handlers.push_handlers import push_delivery_handler

bp = func.Blueprint()


@bp.function_name("push_delivery")
@bp.route(route="push", methods=["POST"])
async def push_delivery(req: func.HttpRequest) -> func.HttpResponse:
    """POST /push - Authenticated scan job delivery"""
    return await push_delivery_handler(req, get_app_context)
