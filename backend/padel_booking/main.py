import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .database import create_engine, create_sessionmaker
from .routers import admin, availability, blog, bookings, contact, courts, users
from .utils.locks import CourtDayLocks
from .utils.mailer import SmtpMailer
from .utils.request_id import REQUEST_ID_HEADER, generate_request_id, set_request_id

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    engine = create_engine(settings)
    app.state.sessionmaker = create_sessionmaker(engine)
    app.state.mailer = SmtpMailer(settings)
    app.state.court_day_locks = CourtDayLocks()
    try:
        yield
    finally:
        await engine.dispose()


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "booking store unavailable, please retry"},
    )


app = FastAPI(title="Padel Booking API", lifespan=lifespan)
app.middleware("http")(request_id_middleware)
app.add_exception_handler(SQLAlchemyError, store_error_handler)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(courts.router)
app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(users.router)
app.include_router(admin.router)
app.include_router(blog.router)
app.include_router(contact.router)
