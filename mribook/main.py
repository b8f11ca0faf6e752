import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, ProgrammingError

from . import models  # noqa: F401
from .auth import NOT_AUTHENTICATED
from .database import Base, engine
from .domain.admin.router import router as admin_router
from .domain.appointments.router import router as appointments_router
from .domain.patients.router import router as patients_router
from .domain.payments.router import router as payments_router
from .domain.payments.router import webhooks_router as payment_webhooks_router
from .domain.providers.router import router as providers_router
from .redis_client import get_optional_redis_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

for noisy in ("httpx", "httpcore", "botocore", "boto3"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:5174").split(",")
    if origin.strip()
]


def create_tables() -> None:
    """Create missing tables; several workers may race on a fresh database"""
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
    except (OperationalError, ProgrammingError) as e:
        if "already exists" not in str(e) and "duplicate key" not in str(e):
            raise
        logger.info("🗄️ Tables were created by another worker")
        return
    logger.info("🗄️ Database tables ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 MRI booking API starting")
    create_tables()

    if get_optional_redis_client() is None:
        logger.warning("⚠️ Running without Redis: rate limits and webhook dedupe are per process")

    yield
    logger.info("👋 MRI booking API stopped")


app = FastAPI(title="MRI Booking API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A malformed Authorization header is an auth failure, anything else a 422"""
    errors = exc.errors()
    if any("authorization" in str(error.get("loc", "")).lower() for error in errors):
        logger.warning(f"🔒 Bad Authorization header on {request.url.path}")
        return JSONResponse(status_code=401, content={"detail": NOT_AUTHENTICATED})

    logger.warning(f"⚠️ Invalid request to {request.url.path}: {len(errors)} error(s)")
    # ctx may hold exception instances that are not JSON serializable
    return JSONResponse(
        status_code=422,
        content={"detail": [{k: v for k, v in error.items() if k != "ctx"} for error in errors]},
    )


for router in (
    patients_router,
    appointments_router,
    payments_router,
    payment_webhooks_router,
    providers_router,
    admin_router,
):
    app.include_router(router)


@app.get("/")
def root():
    return {"message": "MRI Booking API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
