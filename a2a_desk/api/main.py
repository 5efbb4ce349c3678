"""FastAPI application for the A2A Desk local API.

Provides the main application instance with routers and exception
handlers configured. Every route answers with the result envelope, so
request validation failures are converted as well.
"""

import logging
import os
import sys
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
# Ensure our application loggers are captured
logging.getLogger("a2a_desk").setLevel(logging.INFO)

from a2a_desk import __version__
from a2a_desk.api.envelope import InvokeResponse
from a2a_desk.api.routes import a2a, agents, chat, models
from a2a_desk.config import load_config
from a2a_desk.db.connection import DatabaseHandle, create_db_engine, init_db
from a2a_desk.services.llm_client import create_llm_client
from a2a_desk.services.stream_events import StreamBroadcaster

logger = logging.getLogger(__name__)

_startup_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database and shared services; close them on shutdown."""
    global _startup_time

    # --- Startup ---
    _startup_time = _time.time()
    config = load_config(config_path=os.environ.get("A2A_DESK_CONFIG_PATH"))
    engine = create_db_engine(config.database.url)
    init_db(engine)

    app.state.config = config
    app.state.db = DatabaseHandle(engine, lock_timeout=config.database.lock_timeout_seconds)
    app.state.broadcaster = StreamBroadcaster()
    logger.info("A2A Desk API ready (LLM endpoint %s)", config.llm.base_url)

    yield

    # --- Shutdown ---
    app.state.db.close()


app = FastAPI(
    title="A2A Desk API",
    description="Local control surface for LLM providers and A2A agent servers",
    version=__version__,
    lifespan=lifespan,
)

# Injection points for tests; None means the real network.
app.state.a2a_transport = None
app.state.llm_client_factory = create_llm_client


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies in the result envelope.

    Args:
        request: The incoming request.
        exc: The validation failure raised by FastAPI.

    Returns:
        JSONResponse with status 200 and error code E-2002.
    """
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    logger.warning("Rejected request to %s: %s", request.url.path, details)
    body = InvokeResponse.fail(f"Invalid request: {details}", "E-2002")
    return JSONResponse(status_code=200, content=body.model_dump())


# Include routers
app.include_router(models.router, prefix="/api/v1")
app.include_router(agents.router, prefix="/api/v1")
app.include_router(a2a.router, prefix="/api/v1")
app.include_router(chat.router, prefix="/api/v1")


@app.get("/health")
def health_check() -> dict:
    """Liveness check with version and uptime."""
    uptime = int(_time.time() - _startup_time) if _startup_time else 0
    return {
        "status": "healthy",
        "version": __version__,
        "uptime_seconds": uptime,
    }
