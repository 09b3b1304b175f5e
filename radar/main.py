import json
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from radar.core.db import init_db
from radar.core.errors import AccountRequiredError
from radar.core.logging import setup_logging
from radar.core.settings import get_settings
from radar.routers import api
from radar.services.http import get_http_service

# Initialize
settings = get_settings()
logger = setup_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Initialize services on startup."""
    logger.info("Starting up...")
    init_db()
    logger.info("Database initialized")
    yield
    get_http_service().close()


# Create app
app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description="Multi-source content ingestion pipeline",
    lifespan=lifespan,
)


def _serialize_validation_errors(errors: list) -> list:
    """Convert validation errors to JSON-serializable format."""
    serialized = []
    for error in errors:
        serialized_error = {
            "loc": error.get("loc"),
            "msg": str(error.get("msg", "")),
            "type": error.get("type"),
        }
        if "input" in error:
            try:
                json.dumps(error["input"])
                serialized_error["input"] = error["input"]
            except (TypeError, ValueError):
                serialized_error["input"] = str(error["input"])
        serialized.append(serialized_error)
    return serialized


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log request bodies that fail validation before returning the standard 422."""
    try:
        body_text = (await request.body()).decode("utf-8")
    except Exception as e:
        body_text = f"<unable to read body: {e}>"

    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={
            "component": "api",
            "operation": "validate_request",
            "context_data": {"body": body_text[:2000], "errors": _serialize_validation_errors(exc.errors())},
        },
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": _serialize_validation_errors(exc.errors())},
    )


@app.exception_handler(AccountRequiredError)
async def account_required_handler(request: Request, exc: AccountRequiredError):
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


# Request logging middleware with timing
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming HTTP requests with timing information."""
    start_time = time.perf_counter()

    logger.info(f">>> {request.method} {request.url.path}")

    response = await call_next(request)

    duration_ms = (time.perf_counter() - start_time) * 1000
    response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

    method = request.method
    path = request.url.path
    status_code = response.status_code
    time_str = f"{duration_ms:.2f}ms"

    # Fetch cycles are network-bound, so only warn past a few seconds
    if duration_ms < 5000:
        logger.info(f"<<< {method} {path} - {status_code} [{time_str}]")
    else:
        logger.warning(f"<<< {method} {path} - {status_code} [{time_str}] (very slow)")

    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api.router, prefix="/api")


# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.app_name}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
