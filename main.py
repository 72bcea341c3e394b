import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from taskhub.config.settings import Settings, get_settings
from taskhub.database import build_engine, build_session_factory, create_all
from taskhub.routers import auth, project, task
from taskhub.utils.dates import utcnow
from taskhub.utils.errors import register_exception_handlers
from taskhub.utils.logger import setup_logging
from taskhub.utils.responses import envelope

logger = logging.getLogger("taskhub.main")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its own engine, session factory and handlers"""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    engine = build_engine(settings)

    # Startup and shutdown events
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting TaskHub API ({settings.environment})...")
        create_all(engine)
        yield
        logger.info("Shutting down TaskHub API...")
        engine.dispose()

    app = FastAPI(title="TaskHub API", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    # Route registration
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(project.router, prefix="/api/projects", tags=["Projects"])
    app.include_router(task.router, prefix="/api/tasks", tags=["Tasks"])

    @app.get("/api/health")
    def health(request: Request):
        return envelope(
            "TaskHub API is running",
            {
                "timestamp": utcnow().isoformat() + "Z",
                "environment": request.app.state.settings.environment,
            },
        )

    return app


app = create_app()
