"""
FastAPI Application Entry Point

Integrates:
  - WeWork callback handler (GET/POST /callback)
  - Health check
  - Forward dispatcher lifecycle
  - Middleware for logging & error handling

Run: uvicorn main:app --host 0.0.0.0 --port 8000
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from config import Config
from infra import InfraBootstrap, bootstrap_infrastructure
from wework.webhook import router as callback_router

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONLineFormatter(logging.Formatter):
    """One JSON object per line, with any extra={...} fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS:
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = Config.LOG_LEVEL, fmt: str = Config.LOG_FORMAT) -> None:
    """Configure root logging once for the process."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        handlers=[handler],
        force=True,
    )


def create_app(bootstrap: Optional[InfraBootstrap] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        bootstrap: Pre-built infrastructure (tests). When omitted the
            process singleton is created from the environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan: startup and shutdown handlers.
        """
        # Startup
        infra = bootstrap or bootstrap_infrastructure()
        app.state.infra = infra
        app.state.callback_handler = infra.get_callback_handler()
        await infra.start()

        logger.info("=" * 60)
        logger.info("WeWork callback relay starting up...")
        logger.info(f"Infrastructure: {infra!r}")
        logger.info(f"Environment: {Config.ENVIRONMENT}")
        logger.info("=" * 60)

        yield

        # Shutdown
        logger.info("WeWork callback relay shutting down...")
        await infra.stop()

    app = FastAPI(
        title="WeWork Callback Relay",
        description="Verifies and decrypts WeWork callbacks, relays mentions to an AI assistant",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Middleware for logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return PlainTextResponse("internal server error", status_code=500)

    # Include routers
    app.include_router(callback_router)

    # Health check endpoint
    @app.get("/health", response_class=PlainTextResponse)
    async def health():
        """Liveness probe. No dependency on the callback engine."""
        return PlainTextResponse("ok")

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=Config.SERVER_HOST,
        port=Config.SERVER_PORT,
        reload=Config.ENVIRONMENT == "development",
    )
