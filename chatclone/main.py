"""
ASGI application factory and server entry point.

There is no module-level app: settings are validated when the app is built.
Start with the `chatclone` console script, or
`uvicorn chatclone.main:create_app --factory`.
"""
import logging
import sys
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SettingsValidationError

from chatclone.config import get_settings
from chatclone.errors import ChatCloneError
from chatclone.routers import auth, chat, conversations, users

logger = logging.getLogger(__name__)

LOG_LINE_MAX = 80


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ChatCloneError)
    async def chatclone_error_handler(request: Request, exc: ChatCloneError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(title="ChatClone API", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Response bodies are not logged: sign-in responses carry session tokens.
    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            duration_ms = int((time.monotonic() - start) * 1000)
            line = f"{request.method} {request.url.path} {response.status_code} in {duration_ms}ms"
            if len(line) > LOG_LINE_MAX:
                line = line[: LOG_LINE_MAX - 1] + "…"
            logger.info(line)
        return response

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(conversations.router)
    app.include_router(chat.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run() -> None:
    """Entry point: validate required configuration, then serve with uvicorn."""
    import uvicorn

    try:
        settings = get_settings()
    except SettingsValidationError as e:
        configure_logging()
        missing = ", ".join(".".join(str(p) for p in err["loc"]).upper() for err in e.errors())
        logger.error("Missing or invalid required environment variables: %s", missing)
        sys.exit(1)

    configure_logging(settings.log_level)
    logger.info("Auth enabled: %s", bool(settings.secret_key))
    logger.info("Google auth configured: %s", bool(settings.google_client_id))
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
