"""
asgi.py -- Server entry point for TaskDesk.

Run with:  uvicorn asgi:app --reload
           python asgi.py
"""

import uvicorn

from api.main import app
from core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
