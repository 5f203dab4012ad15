from contextlib import asynccontextmanager
from typing import Optional
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import Database, RetryPolicy
from app.routes import routers
from app.services.email_service import EmailService

# Enable logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def build_database() -> Database:
    return Database(
        settings.DATABASE_URL,
        retry_policy=RetryPolicy(
            max_attempts=settings.DB_CONNECT_MAX_ATTEMPTS,
            delay_seconds=settings.DB_CONNECT_RETRY_DELAY,
            backoff=settings.DB_CONNECT_BACKOFF,
        ),
        fallback_url=settings.LOCAL_FALLBACK_URL,
        create_tables=settings.AUTO_CREATE_TABLES,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 AFP Personnel backend starting up...")
    database: Database = app.state.database
    try:
        database.connect()
    except Exception as e:
        # requests will retry the connection and answer 503 until it succeeds
        logger.error(f"❌ Database unavailable at startup: {e}")
    logger.info(f"🌐 CORS enabled for origins: {settings.CORS_ORIGINS}")
    logger.info("✅ Server is ready to handle requests")
    yield
    database.dispose()
    logger.info("🛑 AFP Personnel backend shutting down...")


def _error(status_code: int, message, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
        return _error(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        logger.info(f"Validation failed on {request.method} {request.url.path}: {details}")
        return _error(400, "Missing required fields", details=details)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        extra = {}
        if settings.DEBUG:
            extra["trace"] = traceback.format_exception_only(type(exc), exc)[-1].strip()
        return _error(500, "Internal server error", **extra)


def create_app(database: Optional[Database] = None, mailer=None) -> FastAPI:
    app = FastAPI(title="AFP Personnel Management Backend", version="1.0.0", lifespan=lifespan)
    app.state.database = database or build_database()
    app.state.mailer = mailer or EmailService()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
        max_age=600,
    )

    register_exception_handlers(app)

    for router in routers:
        app.include_router(router)
        logger.debug(f"Included router: {router.prefix}")

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "status": "ok",
            "message": "AFP Personnel Management Backend API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(title=app.title, version=app.version, routes=app.routes)
        openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})["BearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Enter JWT token in the format: Bearer <token>",
        }
        for path_name, path_item in openapi_schema["paths"].items():
            if any(public in path_name for public in ("/login", "/refresh", "/health")):
                continue
            for method_name, method_item in path_item.items():
                if method_name in ("get", "post", "put", "delete", "patch"):
                    method_item.setdefault("security", []).append({"BearerAuth": []})

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi
    return app


app = create_app()
