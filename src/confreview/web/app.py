"""FastAPI application for the abstract review service.

This module defines the FastAPI application, maps workflow errors to
HTTP responses and includes the API routes.  It also provides a
convenience function to launch the server via Uvicorn.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from .routes import router
from ..core.errors import ReviewWorkflowError
from ..utils.logging import get_logger

logger = get_logger(__name__)


app = FastAPI(
    title="Conference Abstract Review",
    description="Reviewer assignment, review intake and decision notification",
    version="0.1.0",
)

app.include_router(router)


@app.exception_handler(ReviewWorkflowError)
async def workflow_error_handler(request: Request, exc: ReviewWorkflowError) -> JSONResponse:
    """Answer every workflow error with its own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


def start_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = True) -> None:
    """Start the Uvicorn web server.

    Parameters
    ----------
    host: str
        Host to bind the server to. Defaults to ``0.0.0.0``.
    port: int
        Port to listen on. Defaults to 8000.
    reload: bool
        Whether to enable auto-reload. Useful during development.
    """
    uvicorn.run(
        "confreview.web.app:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    start_server()
