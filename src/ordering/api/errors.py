"""HTTP error mapping for the Ordering API."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.exceptions import ForbiddenError


def register_error_handlers(app: FastAPI) -> None:
    """Protean's handlers (400/404/409) plus 403 for ownership and role failures."""
    register_exception_handlers(app)

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError):
        return JSONResponse(status_code=403, content={"error": exc.message})
