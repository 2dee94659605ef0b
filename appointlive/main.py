import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from dotenv import load_dotenv

# Load environment variables as early as possible
load_dotenv()

from .config import settings
from .database import create_db_and_tables
from .exceptions import AppointLiveError, appointlive_exception_handler, http_exception_handler, request_validation_exception_handler
from .middleware import RateLimitMiddleware, SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware
from .routers import roles_router, doctors_router, appointments_router, queue_router, eta_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        create_db_and_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Keep serving; /health reports the failure
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(AppointLiveError, appointlive_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(RateLimitMiddleware)

app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.allowed_methods_list,
    allow_headers=settings.allowed_headers_list,
)

app.include_router(roles_router.router)
app.include_router(doctors_router.router)
app.include_router(appointments_router.router)
app.include_router(queue_router.router)
app.include_router(eta_router.router)


@app.get("/health")
def health_check():
    return {
        "status": "healthy" if getattr(app.state, "db_init_ok", True) else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.utcnow().isoformat(),
        "database": {
            "ok": getattr(app.state, "db_init_ok", True),
            "error": getattr(app.state, "db_init_error", None)
        },
        "auth": {
            "secret_key_configured": bool(settings.SECRET_KEY and settings.SECRET_KEY != "change-me-in-prod"),
            "jwt_algorithm": settings.ALGORITHM,
        },
        "eta": {
            "maps_key_configured": bool(settings.GOOGLE_MAPS_API_KEY),
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("appointlive.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
