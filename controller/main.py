"""Entry point for the upload Controller service."""

import math
import uvicorn
import time
import uuid
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chunkserver.chunk_storage import ChunkStore
from chunkserver.merge_engine import MergeEngine
from chunkserver.upload_registry import UploadRegistry
from common.logging_config import setup_logging
from common.exceptions import (
    UploadsException,
    InvalidRequestError,
    FileMissingError,
    StorageIOError,
    RateLimitExceededError
)
from controller.config import (
    CONTROLLER_HOST,
    CONTROLLER_PORT,
    COPY_BUFFER_SIZE,
    FINAL_DIR,
    MERGE_WORKERS,
    RATE_LIMIT_MAX,
    RATE_LIMIT_WINDOW,
    TEMP_DIR
)
from controller.rate_limit import RateLimiter, enforce_rate_limit
from controller.routes.upload_routes import router as upload_router
from controller.schemas.common import ErrorResponse
from controller.service_locator import set_chunk_store, set_merge_engine, set_rate_limiter

logger = setup_logging('controller')
setup_logging('chunkserver')

app = FastAPI(
    title="Chunked Uploads Controller",
    description="Accepts file chunks and merges them into final files",
    version="1.0.0",
    dependencies=[Depends(enforce_rate_limit)]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"]
)


def init_services(
    final_dir: str = FINAL_DIR,
    temp_dir: str = TEMP_DIR,
    merge_workers: int = MERGE_WORKERS,
    buffer_size: int = COPY_BUFFER_SIZE
) -> ChunkStore:
    """
    Create the chunk store and merge engine and ensure their directories exist.

    Returns:
        The initialized ChunkStore
    """
    store = ChunkStore(
        temp_dir=temp_dir,
        final_dir=final_dir,
        buffer_size=buffer_size,
        registry=UploadRegistry()
    )
    store.ensure_directories()

    set_chunk_store(store)
    set_merge_engine(MergeEngine(store, max_workers=merge_workers))
    return store


def _error_response(status_code: int, exc: UploadsException, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=exc.message, details=exc.details, code=code).model_dump()
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Prepare storage directories and shared components on application startup.
    """
    logger.info("Controller service starting up...")

    store = init_services()
    logger.info(f"Storage ready [temp_dir={store.temp_dir}, final_dir={store.final_dir}]")

    if RATE_LIMIT_MAX > 0:
        set_rate_limiter(RateLimiter(RATE_LIMIT_MAX, RATE_LIMIT_WINDOW))
        logger.info(f"Rate limiting enabled: {RATE_LIMIT_MAX} requests per {RATE_LIMIT_WINDOW:g}s")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    )
    logger.warning(
        f"Invalid request data: {details} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        InvalidRequestError("Invalid request data", details),
        "INVALID_REQUEST"
    )


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid request error: {exc} ({exc.details}) [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "INVALID_REQUEST")


@app.exception_handler(FileMissingError)
async def file_missing_handler(request: Request, exc: FileMissingError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"File missing error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "FILE_MISSING")


@app.exception_handler(StorageIOError)
async def storage_io_handler(request: Request, exc: StorageIOError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage I/O error: {exc} ({exc.details}) [request_id={request_id}] path={request.url.path}",
        exc_info=exc
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "IO_FAILURE")


@app.exception_handler(RateLimitExceededError)
async def rate_limit_handler(request: Request, exc: RateLimitExceededError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Rate limit exceeded: {exc.details} [request_id={request_id}] path={request.url.path}"
    )
    response = _error_response(status.HTTP_429_TOO_MANY_REQUESTS, exc, "RATE_LIMITED")
    response.headers["Retry-After"] = str(max(1, math.ceil(exc.retry_after)))
    return response


@app.exception_handler(UploadsException)
async def uploads_exception_handler(request: Request, exc: UploadsException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Uploads exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=exc
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


app.include_router(upload_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "Chunked Uploads Controller API", "status": "running"}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "controller.main:app",
        host=CONTROLLER_HOST,
        port=CONTROLLER_PORT,
        log_level="info"
    )


if __name__ == "__main__":
    main()
