from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from . import __version__
from .config import get_settings
from .database import Base, engine
from .errors import apply_error_handlers
from .logging_middleware import add_audit_middleware
from .rate_limit import apply_rate_limiter
from .routers import auth, bookings, facilities, rooms

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title="Guesthouse API",
        description="Rooms, facilities and conflict-free bookings for a small guesthouse",
        version=__version__,
        lifespan=lifespan,
    )
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    apply_rate_limiter(fastapi_app)
    apply_error_handlers(fastapi_app)
    add_audit_middleware(fastapi_app, "guesthouse")
    Instrumentator().instrument(fastapi_app).expose(fastapi_app)

    fastapi_app.include_router(auth.router)
    fastapi_app.include_router(rooms.router)
    fastapi_app.include_router(facilities.router)
    fastapi_app.include_router(bookings.router)
    return fastapi_app


app = create_app()


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "guesthouse"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
