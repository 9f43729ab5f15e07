"""
Lance l'API billetterie sous uvicorn: `python -m billetterie`.

Variables lues: HOST, PORT, LOG_LEVEL, UVICORN_RELOAD ("1"/"true"/"yes", désactivé par défaut).
"""
import logging
import os

import uvicorn

def _truthy(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")

def main() -> None:
    log_level = os.environ.get("LOG_LEVEL", "info").lower()
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(
        "billetterie.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=_truthy("UVICORN_RELOAD"),
        log_level=log_level,
    )

if __name__ == "__main__":
    main()
