from __future__ import annotations

import time

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from app_core.errors import UnknownResolverError
from config.logging_config import bind_request_context, configure_logging
from config.settings import settings
from persistence.database import init_db
from resolvers.registry import RESOLVERS, invoke
from schemas.resolver import ResolverRequest

log = structlog.get_logger("resolvers.server")

app = FastAPI(title="Cognitive Load Monitor — Resolvers", version="1.0.0")


@app.on_event("startup")
def startup():
    configure_logging()
    init_db()
    log.info("resolver_server_started", resolvers=len(RESOLVERS))


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/resolvers")
def list_resolvers():
    """Names accepted by POST /resolvers/{name}."""
    return {"resolvers": sorted(RESOLVERS)}


@app.post("/resolvers/{name}", response_model=None)
def invoke_resolver(name: str, request: ResolverRequest):
    """Run one resolver. Handler failures are reported in the body with HTTP 200."""
    request_id = bind_request_context(name)
    start = time.monotonic()
    try:
        result = invoke(name, request)
    except UnknownResolverError as exc:
        log.warning("resolver_unknown")
        raise HTTPException(status_code=404, detail=exc.message)

    success = result.get("success", True) if isinstance(result, dict) else True
    log.info(
        "resolver_request_completed",
        success=success,
        latency_ms=round((time.monotonic() - start) * 1000, 1),
    )
    return JSONResponse(content=result, headers={"X-Request-ID": request_id})


if __name__ == "__main__":
    uvicorn.run(
        "resolvers.server:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=False,
    )
