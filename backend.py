"""Yomikata — English phrases to validated Japanese readings.

Run with:  uvicorn backend:app --port 8000   (pip install -e .[serve])
"""
from fastapi import FastAPI

from log import get_logger
from routes import router

logger = get_logger("yomikata")

app = FastAPI(title="Yomikata")
app.include_router(router)

logger.info("Yomikata app created", extra={"component": "backend"})
