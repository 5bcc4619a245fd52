"""QuickBite ordering FastAPI application.

Web server that processes cart, checkout and order commands synchronously
via HTTP. Every request runs inside the ordering domain context.

Usage:
    uvicorn app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - default      → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering
from ordering.utils.logging import bind_request_context, clear_request_context, configure_logging

configure_logging()
ordering.init()

_ORDERING_PREFIXES = ("/carts", "/checkout", "/orders", "/menu")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="QuickBite Ordering API",
    description="Food ordering — carts, checkout and order lifecycle",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context and bind request details to the logs."""
    if not request.url.path.startswith(_ORDERING_PREFIXES):
        # Health check, docs, etc.
        return await call_next(request)

    bind_request_context(
        method=request.method,
        path=request.url.path,
        user_id=request.headers.get("x-user-id"),
    )
    try:
        with ordering.domain_context():
            response = await call_next(request)
        return response
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers and error handlers
# ---------------------------------------------------------------------------
from ordering.api.errors import register_error_handlers  # noqa: E402
from ordering.api.routes import cart_router, checkout_router, menu_router, order_router  # noqa: E402

app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(menu_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "ordering": {"name": ordering.name},
            },
        }
    )
