from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette import status
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from matchlog.config import config, environment
from matchlog.database import database
from matchlog.routes import physical
from matchlog.store.exceptions import StoreError
from matchlog.utils.alembic import alembic_run_migrations
from matchlog.utils.logging import logger


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if config.store_backend == "postgres":
        if config.auto_run_migrations:
            alembic_run_migrations()
        await database.connect()
    logger.info("Started matchlog in %s using the %s store", environment, config.store_backend)

    yield

    if database.is_connected:
        await database.disconnect()


app = FastAPI(title="Matchlog API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(f"Store failure while handling {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Could not reach the match store"},
    )


app.include_router(physical.router, tags=["physical"])
