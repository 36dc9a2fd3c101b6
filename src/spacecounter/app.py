from typing import Optional

from fastapi import FastAPI
from fastapi import Response
from fastapi import status
from fastapi.middleware.cors import CORSMiddleware

from spacecounter.hub import Hub
from spacecounter.routes.register import router as register_router
from spacecounter.routes.spaces import router as spaces_router
from spacecounter.routes.ws import router as ws_router
from spacecounter.settings import settings as default_settings
from spacecounter.settings import Settings


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(title="spacecounter")
    app.state.settings = settings
    app.state.hub = Hub.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(register_router)
    app.include_router(spaces_router)
    app.include_router(ws_router)

    @app.get("/health")
    def health():
        return Response(status_code=status.HTTP_200_OK)

    return app


app = create_app()
