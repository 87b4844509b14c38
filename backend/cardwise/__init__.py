import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardwise.config import settings
from cardwise.db import init_all_databases
from cardwise.errors import CardwiseError, NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[CardwiseError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    PersistenceError: 503,  # nothing was committed; safe to retry
}

STORAGE_UNAVAILABLE = "Storage unavailable, retry"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield


async def _handle_cardwise_error(request: Request, exc: CardwiseError) -> JSONResponse:
    status = _ERROR_STATUS.get(type(exc), 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content={"detail": STORAGE_UNAVAILABLE})
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


def create_app() -> FastAPI:
    application = FastAPI(
        title="Cardwise Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(CardwiseError, _handle_cardwise_error)

    from cardwise.routers import cards, health, stats, study, users

    application.include_router(health.router)
    application.include_router(
        users.router, prefix="/users", tags=["users"]
    )
    application.include_router(
        cards.router, prefix="/cards", tags=["cards"]
    )
    application.include_router(
        study.router, prefix="/study", tags=["study"]
    )
    application.include_router(
        stats.router, prefix="/stats", tags=["stats"]
    )

    return application


app = create_app()
