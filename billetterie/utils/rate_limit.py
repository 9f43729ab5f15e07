from typing import Any, Dict, List
from fastapi import Request, HTTPException
import os
import time
import logging

logger = logging.getLogger(__name__)

def _client_key(request: Request) -> str:
    # Clé par IP cliente et par route
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{request.url.path}"

def _local_hit(request: Request, times: int, seconds: int) -> None:
    """Fenêtre glissante en mémoire (un seul process, dev uniquement)."""
    now = time.time()
    key = _client_key(request)
    store: Dict[str, List[float]] = getattr(request.app.state, "_rl_store", {})
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Too Many Requests")
    hits.append(now)
    store[key] = hits
    request.app.state._rl_store = store

def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance FastAPI de limitation de débit.
    - LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire
    - limiteur désactivé (app.state.rate_limit_enabled=False): no-op
    - sinon: fastapi-limiter (Redis), sans 429 si Redis échoue
    """
    async def _dep(request: Request):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_hit(request, times, seconds)
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return _client_key(req)
        try:
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request)
        except HTTPException:
            raise
        except Exception:
            logger.warning("rate_limit backend unavailable path=%s", request.url.path)
            return
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    from fastapi_limiter import FastAPILimiter
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    ready = getattr(FastAPILimiter, "redis", None) is not None
    return {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": ready,
        "backend": "redis" if ready else None,
    }
