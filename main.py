from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus_notify.config import get_settings
from campus_notify.infrastructure.database import engine, initialize_database
from campus_notify.infrastructure.push import build_push_provider
from campus_notify.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database and the push provider, then release them on shutdown."""

    initialize_database()
    provider = build_push_provider(get_settings())
    app.state.push_provider = provider
    try:
        yield
    finally:
        if provider is not None:
            provider.close()
        app.state.push_provider = None
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="campus-notify", lifespan=lifespan)

    origins = get_settings().allowed_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_routes(app)
    return app


app = create_app()
