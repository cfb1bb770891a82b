from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from plinth import __version__
from plinth.api.lifespan import lifespan
from plinth.api.routes.queue import router as queue_router
from plinth.api.routes.root import router as root_router
from plinth.api.routes.snapshot import router as snapshot_router
from plinth.api.routes.status import router as status_router
from plinth.core.errors import ItemNotFoundError, NotFoundError, QueueError, ValidationError

logger = logging.getLogger(__name__)


async def _validation_error(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


async def _not_found(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})


async def _queue_error(_request: Request, exc: Exception) -> JSONResponse:
    logger.error("Queue store failure: %s", exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Plinth Relay",
        description="Queue BuildPlans for a canvas and fetch snapshots of its current state.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ItemNotFoundError, _not_found)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(QueueError, _queue_error)

    app.include_router(root_router, include_in_schema=False)
    app.include_router(queue_router)
    app.include_router(status_router)
    app.include_router(snapshot_router)

    return app
