"""Health router: health-checks every booted backend client."""

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from server.models.responses import HealthResponse
from shared.exceptions.pipeline_errors import ClientRequestError

health_router = APIRouter()


@health_router.get("/health", tags=["Health"])
async def handle_health(request: Request) -> JSONResponse:
    """Report "ok" when every backend answers its healthcheck, "degraded" otherwise (HTTP 503)."""
    backends: dict[str, str] = {}
    for client in request.app.state.clients:
        name = f"{client.get_client_type()}:{client.get_engine_name()}"
        try:
            await client.do_healthcheck()
            backends[name] = "ok"
        except (httpx.HTTPError, ClientRequestError) as exc:
            request.app.state.logging.warning("Healthcheck of %s failed: %s", name, exc)
            backends[name] = "unreachable"
    status = "ok" if all(v == "ok" for v in backends.values()) else "degraded"
    return JSONResponse(
        content=HealthResponse(status=status, backends=backends).model_dump(),
        status_code=200 if status == "ok" else 503,
    )
