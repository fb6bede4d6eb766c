"""CTF Submission API FastAPI Application"""

from fastapi import FastAPI

from zdctf.apps.ctf.routes import submissions
from zdctf.core.error_handlers import register_error_handlers

ctf_app = FastAPI(
    title="ZeroDelta CTF API",
    description="Capture The Flag submission and scoring API",
    version="0.1.0",
)

register_error_handlers(ctf_app)

# Include routers
ctf_app.include_router(submissions.router)
