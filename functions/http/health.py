"""
Health endpoint
- /health: Basic liveness check (always returns 200 if the app is running)
"""

import json

import azure.functions as func

from shared.handlers.health_handlers import perform_basic_health_check

bp = func.Blueprint()


@bp.function_name("health_general")
@bp.route(route="health", methods=["GET"])
async def general_health(req: func.HttpRequest) -> func.HttpResponse:
    """
    GET /health

    Does NOT check external dependencies.

    Example:
        Response: {"status": "healthy", "service": "Scan Bridge", "timestamp": "..."}
    """
    response = perform_basic_health_check()

    return func.HttpResponse(
        json.dumps(response.model_dump(mode="json")),
        status_code=200,
        mimetype="application/json"
    )
