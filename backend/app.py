from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from backend.application import Services, build_services
from backend.core.config import Settings, load_settings
from backend.core.log import setup_logging
from backend.routes import notifications, recommendations, workspace


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level, log_file=settings.log_file)

    app = FastAPI(title="Service Request Collaboration API", version="0.1.0")
    app.state.services = services or build_services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(workspace.router, prefix="/api")
    app.include_router(notifications.router, prefix="/api")
    app.include_router(recommendations.router, prefix="/api")

    if not app.state.services.workspaces.initialize(app):
        logger.warning("Real-time workspace collaboration is disabled")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Service Request Collaboration API",
                "docs": "/docs",
                "workspaces": "/api/workspaces",
                "socket": settings.ws_path,
            }
        )

    return app


app = create_app()
