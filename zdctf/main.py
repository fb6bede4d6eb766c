"""
ZeroDelta CTF Main Application
- Serves the submission API and the health check.
"""

import logging

from fastapi import FastAPI

from zdctf.apps.ctf.main import ctf_app
from zdctf.config import settings
from zdctf.core.data.database import create_tables, get_database_info
from zdctf.core.error_handlers import register_error_handlers
from zdctf.logging_config import setup_logging

setup_logging()

logger = logging.getLogger(__name__)


app = FastAPI(
    title="ZeroDelta CTF",
    description="ZeroDelta CTF flag submission service",
    version="0.1.0",
)

# Register error handlers
register_error_handlers(app)


@app.get("/health")
async def health():
    """Database connectivity check"""
    info = get_database_info()
    status = "healthy" if info.get("connected") else "unhealthy"
    return {
        "status": status,
        "database": info.get("type"),
        "connected": info.get("connected"),
    }


# (TODO): move to a lifespan handler
@app.on_event("startup")
async def startup_event():
    """Application startup tasks"""
    try:
        create_tables()
    except Exception as e:
        raise RuntimeError(f"Database setup failed: {e}") from e

    if settings.LOAD_DEFINITIONS_ON_STARTUP:
        # pylint: disable=import-outside-toplevel
        from zdctf.ctf.definitions import load_definitions_on_startup

        load_definitions_on_startup()


# Submission API is mounted at the root, after the routes above
app.mount("/", ctf_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
