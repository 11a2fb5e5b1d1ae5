"""
Foundation API Backend — Metrics Route
========================================

What:  GET /metrics  Prometheus scrape endpoint (text exposition format).
How:   Serves prometheus_client's default registry, which carries the
       process, platform and GC collectors registered on import.
Who:   Prometheus. Anonymous, like /health, and skipped by the access log.
"""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter(tags=["Metrics"])


@router.get(
    "/metrics",
    response_class=Response,
    responses={200: {"content": {CONTENT_TYPE_LATEST: {}}, "description": "Prometheus metrics"}},
    summary="Prometheus metrics",
)
async def metrics() -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
