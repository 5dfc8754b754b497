"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ridelog.api.routes import rides
from ridelog.db.engine import get_engine, init_db
from ridelog.errors import (
    InvalidArgumentError,
    NoDataError,
    RideLogError,
    RideNotFoundError,
    StorageError,
)

_STATUS_BY_ERROR = (
    (InvalidArgumentError, 400),
    (RideNotFoundError, 404),
    (NoDataError, 409),
    (StorageError, 503),
)


async def _ridelog_error_handler(request: Request, exc: RideLogError) -> JSONResponse:
    status = next(
        (code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500
    )
    return JSONResponse(status_code=status, content={"detail": str(exc)})


def create_app(engine=None) -> FastAPI:
    """Build and return the FastAPI app.

    Args:
        engine: Engine to serve from; defaults to the configured one on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is None:
            app.state.engine = get_engine()
        else:
            # Create tables on startup (idempotent)
            init_db(engine)
            app.state.engine = engine
        yield

    app = FastAPI(
        title="Ride Telemetry API",
        description="Bike sensor ride storage and summary statistics",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(RideLogError, _ridelog_error_handler)
    app.include_router(rides.router, prefix="/rides", tags=["rides"])

    return app


# Module-level app instance for uvicorn
app = create_app()
