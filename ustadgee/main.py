import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401 - registers tables with Base
from .config import LOG_LEVEL, WS_REQUIRE_TOKEN
from .database import Base, SessionLocal, engine
from .domain.chat.router import router as chat_router
from .domain.notifications.router import router as notifications_router
from .domain.reviews.router import router as reviews_router
from .domain.tasks.router import router as tasks_router
from .realtime.endpoint import router as realtime_router
from .realtime.hub import RealtimeHub
from .store import SqlAlchemyStore

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")
    await app.state.hub.shutdown()


app = FastAPI(title="Ustadgee API", version="1.0.0", lifespan=lifespan)
app.state.hub = RealtimeHub(SqlAlchemyStore(SessionLocal), require_token=WS_REQUIRE_TOKEN)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173,http://localhost:8081",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(tasks_router)
app.include_router(notifications_router)
app.include_router(chat_router)
app.include_router(reviews_router)
app.include_router(realtime_router)


@app.get("/")
def root():
    return {"message": "Ustadgee API is running"}


@app.get("/health")
def health():
    hub: RealtimeHub = app.state.hub
    return {
        "status": "healthy",
        "online_users": len(hub.registry),
        "connections": hub.registry.connection_count,
    }
