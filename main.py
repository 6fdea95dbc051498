"""
Entry point for the study-notes HTTP service.

Run with:
    uvicorn main:app --reload --port 8200
    python main.py
"""
import uvicorn

from config import get_settings
from studynotes.api.main import app  # noqa: F401
from studynotes.core.logging import configure_logging

settings = get_settings()

if __name__ == "__main__":
    configure_logging(settings)
    uvicorn.run(
        "studynotes.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
