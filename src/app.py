"""Order-fulfillment FastAPI application.

Serves the Inventory and Ordering domains. Each request is wrapped in the
correct domain context based on URL prefix; the runtimes (stock store,
publisher, saga collaborators) are built on start-up and closed on shutdown.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from bootstrap import build_runtimes, init_domains, shutdown_runtimes
from inventory.domain import inventory
from ordering.domain import ordering
from shared.logging import bind_request_context, clear_request_context, configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV controls which config overlay is applied:
#   - unset/"test" → memory providers, sync processing
#   - "production" → postgres + redis, async processing via the Engine
configure_logging(service="fulfillment-api")
init_domains()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/inventory": inventory,
    "/locations": inventory,
    "/alerts": inventory,
    "/orders": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    inventory_runtime, _ = build_runtimes()
    yield
    shutdown_runtimes(inventory_runtime)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Order Fulfillment API",
    description="Inventory reservation ledger, order lifecycle and order sagas",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        bind_request_context(domain=domain.name, method=request.method, path=request.url.path)
        try:
            with domain.domain_context():
                return await call_next(request)
        finally:
            clear_request_context()
    # No domain match: pass through (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from inventory.api import alert_router, inventory_router, location_router  # noqa: E402
from ordering.api import order_router  # noqa: E402

app.include_router(inventory_router)
app.include_router(location_router)
app.include_router(alert_router)
app.include_router(order_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "inventory": {"name": inventory.name},
                "ordering": {"name": ordering.name},
            },
        }
    )
