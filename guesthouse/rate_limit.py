"""Request rate limiting with SlowAPI."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .config import get_settings

settings = get_settings()

# Per-route limits; everything else falls back to settings.default_rate_limit.
AUTH_LIMIT = "10/minute"
BOOKING_WRITE_LIMIT = "20/minute"
ADMIN_WRITE_LIMIT = "30/minute"
PUBLIC_READ_LIMIT = "120/minute"


def client_key(request: Request) -> str:
    """Peer address, or the client a trusted proxy reports in X-Forwarded-For."""

    peer = get_remote_address(request)
    trusted = set(get_settings().trusted_proxies)
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded or peer not in trusted:
        return peer
    # Nearest hop first; the first address no trusted proxy vouches for is the client.
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return peer


limiter = Limiter(key_func=client_key, default_limits=[settings.default_rate_limit], enabled=settings.rate_limiting_enabled)


def rate_limit_handler(_: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": f"Too many requests: {exc.detail}"})


def apply_rate_limiter(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
