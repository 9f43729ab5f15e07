"""
ASGI entrypoint: `billetterie.asgi:app` pour uvicorn/gunicorn
(ex: gunicorn -k uvicorn.workers.UvicornWorker billetterie.asgi:app).
"""
from billetterie.app import app

__all__ = ["app"]
