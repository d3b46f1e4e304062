import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import models
from .config import LOG_LEVEL
from .database import engine
from .exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    StoreFailureError,
)
from .routers import admin, client, specialist

# Налаштування логування
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Створення таблиць
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="ServiceHub Booking", version="1.0.0")

app.include_router(specialist.router)
app.include_router(client.router)
app.include_router(admin.router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ForbiddenError)
async def forbidden_handler(request: Request, exc: ForbiddenError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(SlotUnavailableError)
async def slot_unavailable_handler(request: Request, exc: SlotUnavailableError):
    # Same slot id keeps failing; the client has to reload the slot list
    return JSONResponse(
        status_code=409,
        content={"detail": "Ця сесія вже заброньована. Оновіть список сесій.", "refresh": True},
    )


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "booking_ids": exc.booking_ids},
    )


@app.exception_handler(StoreFailureError)
async def store_failure_handler(request: Request, exc: StoreFailureError):
    logger.error(f"❌ {request.method} {request.url.path} failed in the store: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Сервіс тимчасово недоступний"})


@app.get("/health")
def health():
    return {"status": "ok"}
