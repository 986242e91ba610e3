from fastapi import APIRouter, Request

from server.models.responses import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> HealthResponse:
    """Report whether the store and the inference provider are reachable.

    The service itself is up whenever this answers; ``ok`` only reflects the store,
    since journaling keeps working while the inference provider is down. The inference
    status is cached for INFERENCE_HEALTHCHECK_TTL seconds.
    """
    store_ok = await request.app.state.store_client.do_healthcheck()
    inference_ok = await request.app.state.inference_client.do_cached_healthcheck()
    return HealthResponse(ok=store_ok, service="journal_insight", store=store_ok, inference=inference_ok)
