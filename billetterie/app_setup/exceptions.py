"""
Gestionnaires d'exceptions de l'application.
- BilletterieError: rendu JSON {detail, code, ...details} avec le code HTTP de l'erreur.
- InternalError: message générique, la cause est journalisée (jamais exposée).
- HTTPException: réponse JSON FastAPI standard (ex: 429 du rate limit).
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from billetterie.errors import BilletterieError, InternalError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BilletterieError)
    async def billetterie_error(request: Request, exc: BilletterieError):
        if isinstance(exc, InternalError):
            logger.error(
                "internal_error path=%s cause=%s",
                request.url.path, exc.message,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("unexpected_error path=%s", request.url.path)
        return JSONResponse(status_code=500, content=InternalError("unexpected").to_dict())
