"""
Responses Gateway Application

Builds the FastAPI app: lifespan (response store, tool loading), CORS,
error rendering and the /v1/responses routes.
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from responses_gateway.api import responses_router
from responses_gateway.api.deps import get_tool_service, reset_dependencies
from responses_gateway.common.errors import AppError, InvalidInputError
from responses_gateway.config import Settings, get_settings
from responses_gateway.db.redis import close_redis, init_redis
from responses_gateway.logging_config import setup_logging

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the response store and load tools; release both on shutdown."""
    settings = get_settings()
    uses_redis = settings.RESPONSE_STORE_TYPE == "redis"
    if uses_redis:
        await init_redis()

    tool_service = get_tool_service()
    await tool_service.load(settings)
    logger.info(
        "Responses gateway ready: store=%s tools=%s",
        settings.RESPONSE_STORE_TYPE,
        [tool.name for tool in tool_service.list_tools()],
    )

    yield

    await tool_service.close()
    reset_dependencies()
    if uses_redis:
        await close_redis()


def cors_origins(settings: Settings) -> list[str]:
    """
    Origins allowed by CORS

    ALLOWED_ORIGINS is comma separated. When it is empty only DEBUG mode
    opens the local dev server origins.
    """
    origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]
    if not origins and settings.DEBUG:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    return origins


settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    description="Responses API gateway in front of Chat Completions providers",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(settings),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    # Provider error bodies are only echoed in DEBUG mode
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=get_settings().DEBUG),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render request body validation failures like other invalid requests"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    error = InvalidInputError(message, details={"param": location or None})
    return JSONResponse(status_code=error.status_code, content=error.to_dict(include_details=False))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Log the traceback; clients only see it in DEBUG mode."""
    trace = traceback.format_exc()
    logger.error("Unhandled error on %s %s: %s\n%s", request.method, request.url.path, exc, trace)

    error = {"message": "Internal server error", "type": "internal_error", "code": "internal_error"}
    if get_settings().DEBUG:
        error.update(message=str(exc), type=type(exc).__name__, traceback=trace.split("\n"))
    return JSONResponse(status_code=500, content={"error": error})


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe"""
    return {"status": "healthy"}


@app.get("/", tags=["Health"])
async def root():
    return {"name": settings.APP_NAME, "version": VERSION}


app.include_router(responses_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("responses_gateway.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
