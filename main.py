import asyncio
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from core.config import settings
from core.database import close_engine, create_tables
from core.errors import NotAuthenticatedError, RateryError, TransientError
from models.base import Base
import models.photo  # noqa: F401  регистрируем таблицы в metadata
import models.rating  # noqa: F401
import models.rating_queue  # noqa: F401
import models.rating_stats  # noqa: F401
import models.user  # noqa: F401

from routers.auth import router as auth_router
from routers.users import router as users_router
from routers.photos import router as photos_router
from routers.rate import router as rate_router
from routers.stats import router as stats_router
from routers.health import router as health_router
from routers.admin import router as admin_router

app = FastAPI(
    title="Ratery Backend",
    version="0.1.0",
    description="Backend для Ratery: оценка фото и индекс восприятия",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger("uvicorn.error")


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    try:
        response = await asyncio.wait_for(
            call_next(request), timeout=settings.REQUEST_TIMEOUT_SECONDS
        )
    except asyncio.TimeoutError:
        logger.warning(f"{request.method} {request.url.path} timed out")
        error = TransientError("Превышено время ожидания запроса")
        return JSONResponse(status_code=error.status_code, content=error.to_payload())
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} completed in {process_time:.2f} ms"
    )
    return response


@app.exception_handler(RateryError)
async def ratery_error_handler(request: Request, exc: RateryError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NotAuthenticatedError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


@app.exception_handler(OperationalError)
async def database_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.exception("Database failure on %s %s", request.method, request.url.path, exc_info=exc)
    error = TransientError()
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(photos_router)
app.include_router(rate_router)
app.include_router(stats_router)
app.include_router(health_router)
app.include_router(admin_router)


@app.on_event("startup")
async def on_startup():
    await create_tables(Base.metadata)


@app.get("/")
async def root():
    return {"message": "Ratery Backend"}


@app.on_event("shutdown")
async def shutdown():
    await close_engine()
