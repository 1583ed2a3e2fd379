from __future__ import annotations

import os
from typing import List, Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chat_assistant.markup import MessageRenderService

from api.dependencies import get_service
from api.routes.cache import router as cache_router
from api.routes.messages import router as messages_router


def _allowed_origins() -> List[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


def create_app(service: Optional[MessageRenderService] = None) -> FastAPI:
    """
    Build the rendering API. Passing `service` pins every route to that
    instance instead of the env-configured singleton.
    """
    app = FastAPI(title="Chat Assistant Rendering API", version="0.1.0")
    origins = _allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    if service is not None:
        app.dependency_overrides[get_service] = lambda: service

    app.include_router(messages_router)
    app.include_router(cache_router)

    @app.get("/healthz")
    def health(current: MessageRenderService = Depends(get_service)) -> dict:
        return {"status": "ok", "parser": current.parser.version}

    return app


app = create_app()
