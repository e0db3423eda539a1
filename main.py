import logging

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette import status as starlette_status

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config import settings
from routers import riftle, cron, health
from db import database, models  # noqa: F401  (registers the tables on Base)
from utils.errors import RiftleError, DataSourceUnavailable, ConcurrentUpdateConflict, AlreadyCompleted
from utils.limiter import limiter

logger = logging.getLogger(__name__)

if settings.ENV != "production":
    database.Base.metadata.create_all(bind=database.engine)

app = FastAPI(title="Riftle")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# === CORS per environment ===
# Common local origins in development
_local_dev = [
    "http://127.0.0.1:5500", "http://localhost:5500",
    "http://localhost:5173", "http://localhost:3000"
]
allow_origins = (
    settings.ALLOWED_ORIGINS
    if settings.ENV == "production"
    else list({*settings.ALLOWED_ORIGINS, *_local_dev})
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Length", "Content-Type"],
    max_age=600,
)

app.include_router(riftle.router)
app.include_router(cron.router)
app.include_router(health.router)


# === Consistent error handlers ===
@app.exception_handler(RiftleError)
async def riftle_exc_handler(request: Request, exc: RiftleError):
    if isinstance(exc, DataSourceUnavailable):
        logger.error(f"{exc.kind} on {request.url.path}: {exc.message}")
    elif isinstance(exc, ConcurrentUpdateConflict):
        logger.warning(f"{exc.kind} on {request.url.path}")
    else:
        # Gameplay outcomes, not system failures
        logger.info(f"{exc.kind} on {request.url.path}")

    content = {
        "error": exc.kind,
        "message": exc.message,
        "path": str(request.url.path),
    }
    if isinstance(exc, AlreadyCompleted) and exc.view is not None:
        content["status"] = exc.view.model_dump(mode="json", by_alias=True)

    headers = {"Retry-After": "1"} if isinstance(exc, (DataSourceUnavailable, ConcurrentUpdateConflict)) else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exc_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.status_code,
            "message": exc.detail or "HTTP error",
            "path": str(request.url.path),
        },
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exc_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=starlette_status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": 422,
            "message": "Invalid parameters",
            "details": jsonable_encoder(exc.errors()),
            "path": str(request.url.path),
        },
    )

@app.exception_handler(Exception)
async def unhandled_exc_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=starlette_status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": 500,
            "message": "An unexpected error occurred",
            "path": str(request.url.path),
        },
    )


@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse("/docs")
