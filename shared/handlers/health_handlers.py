"""
Health Check Handlers
Liveness only: no dependency is touched.
"""

from shared.models import HealthResponse


def perform_basic_health_check() -> HealthResponse:
    return HealthResponse()
