"""Exception-to-HTTP mapping for the Marketplace API."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from marketplace.shared.errors import UnauthorizedError


async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": exc.messages})


def register_error_handlers(app: FastAPI) -> None:
    """ValidationError → 400 and ObjectNotFoundError → 404 from Protean, UnauthorizedError → 403."""
    register_exception_handlers(app)
    app.add_exception_handler(UnauthorizedError, unauthorized_handler)
